"""Tree traversal utilities for merge tree navigation."""
from __future__ import annotations

from typing import Iterator, List, Optional

from dendrocut.hierarchy.models import MergeTree


def get_subtree_leaves(tree: MergeTree, node_id: int) -> List[int]:
    """Object ids under this node, in left-to-right order."""
    leaves: List[int] = []
    stack = [node_id]
    while stack:
        current = tree.node(stack.pop())
        if current.is_leaf:
            leaves.append(current.object_id)
        else:
            stack.extend(reversed(current.children))
    return leaves


def is_descendant(tree: MergeTree, node_id: int, ancestor_id: int) -> bool:
    """Check if node_id is a descendant of ancestor_id (or equal to it)."""
    current: Optional[int] = node_id
    while current is not None:
        if current == ancestor_id:
            return True
        if current > ancestor_id:
            # parents always have larger ids than their children
            return False
        current = tree.parent[current]
    return False


def iter_post_order(tree: MergeTree) -> Iterator[int]:
    """Yield node ids children-first.

    Children always carry smaller ids than their parent, so ascending id
    order is a valid post-order.
    """
    return iter(range(len(tree)))


def iter_pre_order(tree: MergeTree, start: Optional[int] = None) -> Iterator[int]:
    """Yield node ids top-down, left-to-right."""
    stack = [tree.root if start is None else start]
    while stack:
        node_id = stack.pop()
        yield node_id
        stack.extend(reversed(tree.node(node_id).children))
