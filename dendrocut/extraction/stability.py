"""Excess-of-mass stability of candidate clusters in a merge tree.

Heights are turned into densities with ``lambda = 1 / height``. A node whose
subtree holds at least ``min_cluster_size`` objects qualifies. Candidate
clusters start at the root and wherever a node splits into two or more
qualifying children; a qualifying node that is its parent's only qualifying
child continues the parent's candidate, and objects in undersized children
fall out of the candidate at the parent's lambda.

The stability of a candidate is the sum over its objects of
``lambda_leave - lambda_birth``, where ``lambda_leave`` is the lambda at
which the object fell out or the candidate split.
"""
from __future__ import annotations

import logging
import math
import numbers
from typing import Callable, List, Optional

from dendrocut.errors import InvalidConfigurationError
from dendrocut.extraction.models import StabilityAnnotation, StabilityTable
from dendrocut.hierarchy.models import MergeTree
from dendrocut.hierarchy.traversal import iter_pre_order

logger = logging.getLogger(__name__)


def validate_min_cluster_size(min_cluster_size) -> int:
    if (
        isinstance(min_cluster_size, bool)
        or not isinstance(min_cluster_size, numbers.Integral)
        or min_cluster_size < 1
    ):
        raise InvalidConfigurationError(
            f"Minimum cluster size must be a positive integer, got {min_cluster_size!r}"
        )
    return int(min_cluster_size)


def density_function(tree: MergeTree) -> Callable[[float], float]:
    """Return ``height -> lambda`` for this tree.

    Zero heights would give an infinite density; they are clamped to the
    smallest positive merge height in the tree (or 1.0 when there is none).
    Infinite heights map to zero.
    """
    positive = [node.height for node in tree.merge_nodes if 0 < node.height < math.inf]
    floor = min(positive) if positive else 1.0

    def to_lambda(height: float) -> float:
        if math.isinf(height):
            return 0.0
        if height <= 0:
            return 1.0 / floor
        return 1.0 / height

    return to_lambda


def compute_stability(
    tree: MergeTree,
    min_cluster_size: int,
    allow_single_cluster: bool = False,
) -> StabilityTable:
    """Annotate every node of ``tree`` with its candidate cluster and stability."""
    min_cluster_size = validate_min_cluster_size(min_cluster_size)
    to_lambda = density_function(tree)
    nodes = tree.nodes
    qualifying = [node.size >= min_cluster_size for node in nodes]

    head: List[Optional[int]] = [None] * len(nodes)
    birth_height = [math.inf] * len(nodes)
    candidates: List[int] = []

    for node_id in iter_pre_order(tree):
        if not qualifying[node_id]:
            continue
        parent = tree.parent[node_id]
        if parent is None or _qualifying_children(tree, parent, qualifying) >= 2:
            head[node_id] = node_id
            birth_height[node_id] = math.inf if parent is None else nodes[parent].height
            candidates.append(node_id)
        else:
            head[node_id] = head[parent]
            birth_height[node_id] = birth_height[parent]

    # Objects leaving each candidate, weighted by the lambda they leave at.
    mass = {h: 0.0 for h in candidates}
    for node in nodes:
        h = head[node.id]
        if h is None or node.is_leaf:
            continue
        continuing = [c for c in node.children if qualifying[c] and head[c] == h]
        staying = nodes[continuing[0]].size if continuing else 0
        mass[h] += (node.size - staying) * to_lambda(node.height)

    stability = {}
    for h in candidates:
        if nodes[h].is_leaf:
            stability[h] = 0.0
            continue
        excess = mass[h] - nodes[h].size * to_lambda(birth_height[h])
        stability[h] = max(excess, 0.0)

    annotations = tuple(
        StabilityAnnotation(
            node_id=node.id,
            qualifying=qualifying[node.id],
            head=head[node.id],
            stability=stability.get(node.id, 0.0),
            birth_height=birth_height[node.id],
        )
        for node in nodes
    )
    logger.debug(
        "Stability pass: min_cluster_size=%d, %d qualifying nodes, %d candidate clusters",
        min_cluster_size, sum(qualifying), len(candidates),
    )
    return StabilityTable(
        annotations=annotations,
        min_cluster_size=min_cluster_size,
        candidates=tuple(candidates),
        allow_single_cluster=allow_single_cluster,
    )


def _qualifying_children(tree: MergeTree, node_id: int, qualifying: List[bool]) -> int:
    return sum(1 for c in tree.node(node_id).children if qualifying[c])
