"""Flat cluster extraction from agglomerative clustering hierarchies."""

__version__ = "0.1.0"

from .config import (
    ClusterCountConfig,
    HeightCutConfig,
    StabilityConfig,
)
from .errors import (
    EmptyInputError,
    ExtractionError,
    InvalidConfigurationError,
    MalformedHierarchyError,
)
from .extraction import (
    NOISE,
    FlatCluster,
    FlatClustering,
    extract,
    extract_by_cluster_count,
    extract_by_height,
    extract_stable_clusters,
)
from .hierarchy import (
    MergeTree,
    PointerHierarchy,
    build_merge_tree,
    from_linkage,
    pointer_hierarchy_from_points,
    to_linkage,
)

__all__ = [
    "ClusterCountConfig",
    "HeightCutConfig",
    "StabilityConfig",
    "EmptyInputError",
    "ExtractionError",
    "InvalidConfigurationError",
    "MalformedHierarchyError",
    "NOISE",
    "FlatCluster",
    "FlatClustering",
    "extract",
    "extract_by_cluster_count",
    "extract_by_height",
    "extract_stable_clusters",
    "MergeTree",
    "PointerHierarchy",
    "build_merge_tree",
    "from_linkage",
    "pointer_hierarchy_from_points",
    "to_linkage",
]
