"""Exception types raised by the extraction pipeline."""
from __future__ import annotations

from typing import Optional


class ExtractionError(Exception):
    """Base class for every error raised by dendrocut."""


class MalformedHierarchyError(ExtractionError, ValueError):
    """Pointer representation is inconsistent (cycle, non-monotone heights, bad arrays)."""

    def __init__(self, message: str, object_index: Optional[int] = None):
        if object_index is not None:
            message = f"{message} (object {object_index})"
        super().__init__(message)
        self.object_index = object_index


class InvalidConfigurationError(ExtractionError, ValueError):
    """An extraction parameter is out of range."""


class EmptyInputError(ExtractionError):
    """The hierarchy holds zero objects, so there is no tree to build."""
