"""Map a cluster selection back onto a per-object labeling."""
from __future__ import annotations

import logging
from typing import List

from dendrocut.errors import InvalidConfigurationError
from dendrocut.extraction.models import FlatCluster, FlatClustering, StabilityTable
from dendrocut.hierarchy.models import MergeTree
from dendrocut.hierarchy.traversal import get_subtree_leaves

logger = logging.getLogger(__name__)

POLICY_STABILITY = "stability"


def emit_flat_clustering(tree: MergeTree, table: StabilityTable) -> FlatClustering:
    """Walk the tree top-down, left to right, numbering selected subtrees.

    Objects outside every selected subtree are noise.
    """
    if len(table) != len(tree):
        raise InvalidConfigurationError(
            f"Stability table covers {len(table)} nodes but the tree has {len(tree)}"
        )

    clusters: List[FlatCluster] = []
    stack = [tree.root]
    while stack:
        node_id = stack.pop()
        annotation = table[node_id]
        if annotation.selected:
            node = tree.node(node_id)
            clusters.append(
                FlatCluster(
                    id=len(clusters),
                    members=tuple(sorted(get_subtree_leaves(tree, node_id))),
                    height=node.height,
                    node_id=node_id,
                    stability=annotation.stability,
                )
            )
            continue
        if not annotation.qualifying:
            # nothing below an undersized node can be selected
            continue
        stack.extend(reversed(tree.node(node_id).children))

    result = FlatClustering.from_clusters(tree.n_objects, clusters, POLICY_STABILITY)
    logger.debug(
        "Emitted %d clusters, %d noise objects", result.n_clusters, len(result.noise)
    )
    return result
