"""Flat cluster extraction policies."""
from dendrocut.extraction.models import (
    NOISE,
    FlatCluster,
    FlatClustering,
    StabilityAnnotation,
    StabilityTable,
)
from dendrocut.extraction.cut import cut_by_cluster_count, cut_by_height
from dendrocut.extraction.stability import compute_stability
from dendrocut.extraction.selection import select_clusters
from dendrocut.extraction.emitter import emit_flat_clustering
from dendrocut.extraction.pipeline import (
    extract,
    extract_by_cluster_count,
    extract_by_height,
    extract_stable_clusters,
)
