"""Entry points running one extraction policy end to end."""
from __future__ import annotations

import logging
from typing import Optional, Union

from dendrocut.config import (
    ClusterCountConfig,
    ExtractionConfig,
    HeightCutConfig,
    StabilityConfig,
)
from dendrocut.errors import InvalidConfigurationError
from dendrocut.extraction.cut import cut_by_cluster_count, cut_by_height
from dendrocut.extraction.emitter import POLICY_STABILITY, emit_flat_clustering
from dendrocut.extraction.models import FlatClustering
from dendrocut.extraction.selection import select_clusters
from dendrocut.extraction.stability import compute_stability
from dendrocut.hierarchy.builder import build_merge_tree
from dendrocut.hierarchy.models import MergeTree, PointerHierarchy
from dendrocut.profiling import PerformanceReport, profile_phase

logger = logging.getLogger(__name__)


def extract_by_height(
    hierarchy: PointerHierarchy,
    config: Union[HeightCutConfig, float],
    report: Optional[PerformanceReport] = None,
) -> FlatClustering:
    """Threshold cut: one cluster per component after all merges <= height."""
    if not isinstance(config, HeightCutConfig):
        config = HeightCutConfig(height=config)

    with profile_phase("cut_by_height", report, {"objects": hierarchy.n, "height": config.height}):
        result = cut_by_height(hierarchy, config.height)
    logger.info(
        "Height cut at %s over %d objects: %d clusters",
        config.height, hierarchy.n, result.n_clusters,
    )
    return result


def extract_by_cluster_count(
    hierarchy: PointerHierarchy,
    config: Union[ClusterCountConfig, int],
    report: Optional[PerformanceReport] = None,
) -> FlatClustering:
    """Cut so that the requested number of components remains."""
    if not isinstance(config, ClusterCountConfig):
        config = ClusterCountConfig(n_clusters=config)

    with profile_phase("cut_by_cluster_count", report, {"objects": hierarchy.n, "n_clusters": config.n_clusters}):
        result = cut_by_cluster_count(hierarchy, config.n_clusters)
    logger.info(
        "Cluster-count cut (%d requested) over %d objects: %d clusters",
        config.n_clusters, hierarchy.n, result.n_clusters,
    )
    return result


def extract_stable_clusters(
    hierarchy: PointerHierarchy,
    config: Union[StabilityConfig, int],
    tree: Optional[MergeTree] = None,
    report: Optional[PerformanceReport] = None,
) -> FlatClustering:
    """Stability-optimal extraction; objects outside the chosen clusters are noise.

    ``tree`` may be a merge tree previously built from the same hierarchy; it
    is only read, so one tree can serve several concurrent runs.
    """
    if not isinstance(config, StabilityConfig):
        config = StabilityConfig(min_cluster_size=config)

    if hierarchy.n == 0:
        logger.info("Stability extraction over an empty hierarchy: nothing to do")
        return FlatClustering.empty(POLICY_STABILITY)

    if tree is None:
        with profile_phase("build_merge_tree", report, {"objects": hierarchy.n}):
            tree = build_merge_tree(hierarchy)
    elif tree.n_objects != hierarchy.n:
        raise InvalidConfigurationError(
            f"Merge tree covers {tree.n_objects} objects but the hierarchy has {hierarchy.n}"
        )

    with profile_phase("compute_stability", report, {"nodes": len(tree)}):
        table = compute_stability(tree, config.min_cluster_size, config.allow_single_cluster)
    with profile_phase("select_clusters", report, {"candidates": len(table.candidates)}):
        table = select_clusters(tree, table)
    with profile_phase("emit_flat_clustering", report):
        result = emit_flat_clustering(tree, table)

    logger.info(
        "Stability extraction (min_cluster_size=%d) over %d objects: %d clusters, %d noise",
        config.min_cluster_size, hierarchy.n, result.n_clusters, len(result.noise),
    )
    return result


def extract(
    hierarchy: PointerHierarchy,
    config: ExtractionConfig,
    report: Optional[PerformanceReport] = None,
) -> FlatClustering:
    """Run the policy matching the config type."""
    if isinstance(config, HeightCutConfig):
        return extract_by_height(hierarchy, config, report=report)
    if isinstance(config, ClusterCountConfig):
        return extract_by_cluster_count(hierarchy, config, report=report)
    if isinstance(config, StabilityConfig):
        return extract_stable_clusters(hierarchy, config, report=report)
    raise InvalidConfigurationError(f"Unsupported extraction config: {type(config).__name__}")

