"""Configuration helpers for flat cluster extraction."""
from __future__ import annotations

import math
import numbers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from dendrocut.errors import InvalidConfigurationError

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_PATH = PROJECT_ROOT / ".env"

# Load environment variables early so downstream modules can rely on them.
load_dotenv(ENV_PATH, override=False)

CUT_HEIGHT_ENV = "DENDROCUT_CUT_HEIGHT"
N_CLUSTERS_ENV = "DENDROCUT_N_CLUSTERS"
MIN_CLUSTER_SIZE_ENV = "DENDROCUT_MIN_CLUSTER_SIZE"
ALLOW_SINGLE_CLUSTER_ENV = "DENDROCUT_ALLOW_SINGLE_CLUSTER"
LOG_LEVEL_ENV = "DENDROCUT_LOG_LEVEL"

DEFAULT_ALGORITHM = "single"
DEFAULT_CUT_HEIGHT = 0.0
DEFAULT_N_CLUSTERS = 2
DEFAULT_MIN_CLUSTER_SIZE = 5
DEFAULT_LOG_LEVEL = "INFO"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _is_integer(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass(frozen=True)
class HeightCutConfig:
    """Cut the dendrogram at a fixed merge height."""

    height: float
    algorithm: str = DEFAULT_ALGORITHM

    def __post_init__(self) -> None:
        if isinstance(self.height, bool) or not isinstance(self.height, numbers.Real):
            raise InvalidConfigurationError(f"Cut height must be a real number, got {self.height!r}")
        if math.isnan(self.height) or self.height < 0:
            raise InvalidConfigurationError(f"Cut height must be non-negative, got {self.height}")


@dataclass(frozen=True)
class ClusterCountConfig:
    """Cut the dendrogram so that a given number of components remains."""

    n_clusters: int
    algorithm: str = DEFAULT_ALGORITHM

    def __post_init__(self) -> None:
        if not _is_integer(self.n_clusters) or self.n_clusters < 1:
            raise InvalidConfigurationError(
                f"Number of clusters must be a positive integer, got {self.n_clusters!r}"
            )


@dataclass(frozen=True)
class StabilityConfig:
    """Excess-of-mass extraction with a minimum cluster size."""

    min_cluster_size: int
    allow_single_cluster: bool = False
    algorithm: str = DEFAULT_ALGORITHM

    def __post_init__(self) -> None:
        if not _is_integer(self.min_cluster_size) or self.min_cluster_size < 1:
            raise InvalidConfigurationError(
                f"Minimum cluster size must be a positive integer, got {self.min_cluster_size!r}"
            )


ExtractionConfig = Union[HeightCutConfig, ClusterCountConfig, StabilityConfig]


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidConfigurationError(f"{name} must be an integer; received '{raw}'.") from exc


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise InvalidConfigurationError(f"{name} must be a boolean flag; received '{raw}'.")


def get_height_cut_config() -> HeightCutConfig:
    """Resolve the threshold cut height from the environment."""

    raw = _get_env(CUT_HEIGHT_ENV)
    if raw is None:
        return HeightCutConfig(height=DEFAULT_CUT_HEIGHT)
    try:
        height = float(raw)
    except ValueError as exc:
        raise InvalidConfigurationError(f"{CUT_HEIGHT_ENV} must be a number; received '{raw}'.") from exc
    return HeightCutConfig(height=height)


def get_cluster_count_config() -> ClusterCountConfig:
    """Resolve the target number of clusters from the environment."""

    raw = _get_env(N_CLUSTERS_ENV)
    n_clusters = _parse_int(N_CLUSTERS_ENV, raw) if raw is not None else DEFAULT_N_CLUSTERS
    return ClusterCountConfig(n_clusters=n_clusters)


def get_stability_config() -> StabilityConfig:
    """Resolve stability extraction settings from the environment."""

    raw_size = _get_env(MIN_CLUSTER_SIZE_ENV)
    raw_single = _get_env(ALLOW_SINGLE_CLUSTER_ENV)
    min_size = _parse_int(MIN_CLUSTER_SIZE_ENV, raw_size) if raw_size is not None else DEFAULT_MIN_CLUSTER_SIZE
    allow_single = _parse_bool(ALLOW_SINGLE_CLUSTER_ENV, raw_single) if raw_single is not None else False
    return StabilityConfig(min_cluster_size=min_size, allow_single_cluster=allow_single)


def get_log_level() -> str:
    """Return the configured log level name (upper case)."""

    level = (_get_env(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise InvalidConfigurationError(f"{LOG_LEVEL_ENV} must be a logging level name; received '{level}'.")
    return level
