"""Bottom-up selection of the most stable non-overlapping candidate clusters."""
from __future__ import annotations

import logging
from typing import Dict, List

from dendrocut.errors import InvalidConfigurationError
from dendrocut.extraction.models import StabilityTable
from dendrocut.hierarchy.models import MergeTree
from dendrocut.hierarchy.traversal import iter_post_order

logger = logging.getLogger(__name__)


def select_clusters(tree: MergeTree, table: StabilityTable) -> StabilityTable:
    """Pick the candidate clusters maximizing total stability.

    A candidate is kept when its own stability is at least the best total
    its descendant candidates can reach; ties keep the coarser candidate.
    The root candidate is only eligible with ``allow_single_cluster``.
    Returns a new table; ``table`` is left untouched.
    """
    if len(table) != len(tree):
        raise InvalidConfigurationError(
            f"Stability table covers {len(table)} nodes but the tree has {len(tree)}"
        )
    if not table.candidates:
        return table.with_selection(())

    child_heads: Dict[int, List[int]] = {h: [] for h in table.candidates}
    for h in table.candidates:
        parent = tree.parent[h]
        if parent is not None:
            child_heads[table[parent].head].append(h)

    effective: Dict[int, float] = {}
    chosen: Dict[int, List[int]] = {}
    for h in iter_post_order(tree):
        if not table[h].is_head:
            continue
        subs = child_heads[h]
        subtotal = sum(effective[c] for c in subs)
        own = table[h].stability
        eligible = tree.parent[h] is not None or table.allow_single_cluster
        if eligible and own >= subtotal:
            effective[h] = own
            chosen[h] = [h]
        else:
            effective[h] = subtotal
            chosen[h] = [s for c in subs for s in chosen[c]]

    result = table.with_selection(chosen[table.candidates[0]])
    logger.debug(
        "Selected %d of %d candidate clusters (total stability %.6g)",
        len(result.selected), len(table.candidates), result.total_stability,
    )
    return result
