"""Shared pytest configuration and fixtures for the test suite.

This module centralizes:
- Path setup (so scripts/ is importable)
- Pytest markers for test categorization (unit, integration, property)
- Small hand-built hierarchies with known trees
- A seeded synthetic dataset with dense groups and scattered noise
"""
from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

import numpy as np
import pytest

from dendrocut.hierarchy import PointerHierarchy, pointer_hierarchy_from_points


# ==============================================================================
# Path Setup
# ==============================================================================

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# ==============================================================================
# Pytest Configuration
# ==============================================================================

def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "unit: Fast tests on small hand-built hierarchies",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests running scipy linkage, the full pipeline or the CLI",
    )
    config.addinivalue_line(
        "markers",
        "property: Hypothesis property-based tests over random point sets",
    )


# ==============================================================================
# Hierarchy Fixtures
# ==============================================================================

@pytest.fixture
def balanced_hierarchy() -> PointerHierarchy:
    """4 objects: 0+1 at 1.0, 2+3 at 1.5, then both pairs at 2.0.

    Resulting merge tree (children listed predecessor side first):

              6 (h=2.0)
             / \\
            5   4
           / \\ / \\
          3  2 1  0
    """
    return PointerHierarchy(
        predecessor=[1, 3, 3, 3],
        height=[1.0, 2.0, 1.5, np.inf],
        order=[0, 2, 1, 3],
    )


@pytest.fixture
def line_hierarchy() -> PointerHierarchy:
    """Single linkage over the points 0, 1, 3, 10, 12, 30 on a line.

    Merges: 0+1 at 1, {0,1}+2 at 2, 3+4 at 2, {0,1,2}+{3,4} at 7, 5 at 18.
    """
    points = np.array([0.0, 1.0, 3.0, 10.0, 12.0, 30.0]).reshape(-1, 1)
    return pointer_hierarchy_from_points(points)


def make_blobs_with_noise(seed: int = 7):
    """Three dense groups of different size plus uniform background noise."""
    rng = np.random.default_rng(seed)
    centers = np.array([[0.0, 0.0], [5.0, 5.0], [10.0, 0.0]])
    sizes = [60, 40, 30]
    groups = [rng.normal(loc=c, scale=0.25, size=(s, 2)) for c, s in zip(centers, sizes)]
    noise = rng.uniform(low=-3.0, high=13.0, size=(10, 2))
    points = np.vstack(groups + [noise])
    truth = np.concatenate([np.full(s, i) for i, s in enumerate(sizes)] + [np.full(10, -1)])
    return points, truth


@pytest.fixture
def blobs():
    """(points, ground-truth labels) for the three-group dataset."""
    return make_blobs_with_noise()


@pytest.fixture
def blobs_hierarchy(blobs) -> PointerHierarchy:
    points, _ = blobs
    return pointer_hierarchy_from_points(points)


# ==============================================================================
# Logging Fixtures
# ==============================================================================

@pytest.fixture
def restore_root_logger():
    """Remove handlers installed by setup_logging() once the test is done."""
    from dendrocut.logging_utils import ConsoleFilter

    root = logging.getLogger()
    level = root.level
    yield root
    for handler in root.handlers[:]:
        ours = isinstance(handler, logging.handlers.RotatingFileHandler) or any(
            isinstance(f, ConsoleFilter) for f in handler.filters
        )
        if ours:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
