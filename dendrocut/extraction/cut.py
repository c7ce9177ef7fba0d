"""Flat clusterings from cutting the hierarchy (union-find flattener).

Both cuts work directly on the pointer hierarchy; no merge tree is needed.
Every component that survives the cut is reported as a cluster, including
singletons, so these policies never produce noise.
"""
from __future__ import annotations

import logging
import math
import numbers
from typing import Dict, List

import numpy as np

from dendrocut.errors import InvalidConfigurationError, MalformedHierarchyError
from dendrocut.extraction.models import FlatCluster, FlatClustering
from dendrocut.hierarchy.models import PointerHierarchy
from dendrocut.hierarchy.unionfind import UnionFind

logger = logging.getLogger(__name__)

POLICY_HEIGHT = "height"
POLICY_COUNT = "count"


def cut_by_height(hierarchy: PointerHierarchy, height: float) -> FlatClustering:
    """Union every merge at or below ``height`` and report the components."""
    if isinstance(height, bool) or not isinstance(height, numbers.Real):
        raise InvalidConfigurationError(f"Cut height must be a real number, got {height!r}")
    if math.isnan(height) or height < 0:
        raise InvalidConfigurationError(f"Cut height must be non-negative, got {height}")

    n = hierarchy.n
    uf = UnionFind(n)
    top_height = np.zeros(n, dtype=np.float64)
    applied = 0
    for obj, pred, h in hierarchy.merges():
        if h > height:
            continue
        _apply_merge(uf, top_height, obj, pred, h)
        applied += 1

    result = _components_to_clustering(uf, top_height, n, POLICY_HEIGHT)
    logger.debug(
        "Height cut at %s: %d merges applied, %d clusters over %d objects",
        height, applied, result.n_clusters, n,
    )
    return result


def cut_by_cluster_count(hierarchy: PointerHierarchy, n_clusters: int) -> FlatClustering:
    """Apply merges in ``order`` until only ``n_clusters`` components remain.

    A hierarchy with fewer objects (or with several roots that never merge)
    yields as many components as it can.
    """
    if (
        isinstance(n_clusters, bool)
        or not isinstance(n_clusters, numbers.Real)
        or not math.isfinite(n_clusters)
        or int(n_clusters) != n_clusters
        or n_clusters < 1
    ):
        raise InvalidConfigurationError(f"Number of clusters must be a positive integer, got {n_clusters!r}")

    n = hierarchy.n
    uf = UnionFind(n)
    top_height = np.zeros(n, dtype=np.float64)
    for obj, pred, h in hierarchy.merges():
        if uf.n_components <= n_clusters:
            break
        _apply_merge(uf, top_height, obj, pred, h)

    result = _components_to_clustering(uf, top_height, n, POLICY_COUNT)
    if n and result.n_clusters != min(n_clusters, n):
        logger.warning(
            "Requested %d clusters but the hierarchy yields %d", n_clusters, result.n_clusters
        )
    return result


def _apply_merge(uf: UnionFind, top_height: np.ndarray, obj: int, pred: int, h: float) -> None:
    ra, rb = uf.find(obj), uf.find(pred)
    if ra == rb:
        raise MalformedHierarchyError(
            f"merge with predecessor {pred} closes a cycle", object_index=obj
        )
    merged_top = max(h, top_height[ra], top_height[rb])
    top_height[uf.union(ra, rb)] = merged_top


def _components_to_clustering(uf: UnionFind, top_height: np.ndarray, n: int, policy: str) -> FlatClustering:
    # Iterating objects in index order makes cluster ids follow each
    # component's smallest member.
    members: Dict[int, List[int]] = {}
    for obj in range(n):
        members.setdefault(uf.find(obj), []).append(obj)

    clusters = [
        FlatCluster(
            id=cluster_id,
            members=tuple(objs),
            height=float(top_height[root]),
        )
        for cluster_id, (root, objs) in enumerate(members.items())
    ]
    return FlatClustering.from_clusters(n, clusters, policy)
