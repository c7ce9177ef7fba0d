"""Conversions between pointer hierarchies and scipy linkage matrices."""
from __future__ import annotations

import logging

import numpy as np
from scipy.cluster.hierarchy import is_valid_linkage, linkage

from dendrocut.errors import MalformedHierarchyError
from dendrocut.hierarchy.models import PointerHierarchy
from dendrocut.hierarchy.unionfind import UnionFind

logger = logging.getLogger(__name__)


def empty_hierarchy() -> PointerHierarchy:
    return PointerHierarchy(
        predecessor=np.empty(0, dtype=np.int64),
        height=np.empty(0, dtype=np.float64),
        order=np.empty(0, dtype=np.int64),
    )


def from_linkage(linkage_matrix: np.ndarray) -> PointerHierarchy:
    """Convert a scipy linkage matrix into a pointer hierarchy.

    Each cluster is represented by its largest object id. When two clusters
    merge, the smaller representative points to the larger one at the merge
    distance, so the overall root is object ``n - 1``.
    """
    Z = np.asarray(linkage_matrix, dtype=np.float64)
    if Z.ndim != 2 or Z.shape[1] != 4:
        raise MalformedHierarchyError(f"linkage matrix must have shape (n-1, 4), got {Z.shape}")
    if Z.shape[0] and not is_valid_linkage(Z):
        raise MalformedHierarchyError("linkage matrix is not a valid scipy linkage")

    n = Z.shape[0] + 1
    predecessor = np.arange(n, dtype=np.int64)
    height = np.full(n, np.inf, dtype=np.float64)
    order = []
    representative = list(range(n)) + [0] * Z.shape[0]

    for row, (a, b, dist, _count) in enumerate(Z):
        rep_a, rep_b = representative[int(a)], representative[int(b)]
        lo, hi = min(rep_a, rep_b), max(rep_a, rep_b)
        predecessor[lo] = hi
        height[lo] = dist
        order.append(lo)
        representative[n + row] = hi

    order.append(n - 1)
    logger.debug("Converted linkage matrix with %d merges into pointer hierarchy", Z.shape[0])
    return PointerHierarchy(predecessor=predecessor, height=height, order=np.array(order, dtype=np.int64))


def to_linkage(hierarchy: PointerHierarchy) -> np.ndarray:
    """Convert a connected pointer hierarchy into a scipy linkage matrix.

    Rows follow ``order``; leaves keep their object ids and the cluster
    created by row ``k`` gets id ``n + k`` as scipy expects.
    """
    n = hierarchy.n
    if n == 0:
        raise MalformedHierarchyError("cannot express an empty hierarchy as a linkage matrix")

    uf = UnionFind(n)
    cluster_id = {i: i for i in range(n)}
    rows = []
    for obj, pred, h in hierarchy.merges():
        rep_pred, rep_obj = uf.find(pred), uf.find(obj)
        if rep_pred == rep_obj:
            raise MalformedHierarchyError(
                f"merge with predecessor {pred} closes a cycle", object_index=obj
            )
        size = uf.size(rep_pred) + uf.size(rep_obj)
        left, right = cluster_id.pop(rep_pred), cluster_id.pop(rep_obj)
        rows.append((min(left, right), max(left, right), h, size))
        cluster_id[uf.union(rep_pred, rep_obj)] = n + len(rows) - 1

    if len(rows) != n - 1:
        raise MalformedHierarchyError(
            f"hierarchy is disconnected: {n - len(rows)} components, linkage needs exactly one"
        )
    return np.array(rows, dtype=np.float64).reshape(n - 1, 4)


def pointer_hierarchy_from_points(points, metric: str = "euclidean") -> PointerHierarchy:
    """Run single linkage over ``points`` and return its pointer hierarchy."""
    X = np.asarray(points, dtype=np.float64)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    n = X.shape[0]
    if n == 0:
        return empty_hierarchy()
    if n == 1:
        return PointerHierarchy(predecessor=[0], height=[np.inf], order=[0])
    logger.info("Computing single linkage over %d points (metric=%s)", n, metric)
    return from_linkage(linkage(X, method="single", metric=metric))
