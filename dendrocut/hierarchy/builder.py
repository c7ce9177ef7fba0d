"""Merge tree construction from a pointer hierarchy."""
from __future__ import annotations

import logging
from typing import Dict, List

from dendrocut.errors import EmptyInputError, MalformedHierarchyError
from dendrocut.hierarchy.models import MergeTree, PointerHierarchy, TreeNode
from dendrocut.hierarchy.unionfind import UnionFind

logger = logging.getLogger(__name__)


def build_merge_tree(hierarchy: PointerHierarchy) -> MergeTree:
    """Build an explicit merge tree by replaying the merges in ``order``.

    Raises:
        EmptyInputError: the hierarchy has no objects.
        MalformedHierarchyError: a merge closes a cycle, a merge height is
            below the height of one of the components it joins, or more than
            one component remains at the end.
    """
    n = hierarchy.n
    if n == 0:
        raise EmptyInputError("Cannot build a merge tree over zero objects")

    nodes: List[TreeNode] = [
        TreeNode(id=i, height=0.0, size=1, object_id=i) for i in range(n)
    ]
    uf = UnionFind(n)
    # component representative -> id of the tree node standing for it
    component_node: Dict[int, int] = {i: i for i in range(n)}
    n_flattened = 0

    for obj, pred, h in hierarchy.merges():
        rep_pred, rep_obj = uf.find(pred), uf.find(obj)
        if rep_pred == rep_obj:
            raise MalformedHierarchyError(
                f"merge with predecessor {pred} closes a cycle", object_index=obj
            )
        left = nodes[component_node.pop(rep_pred)]
        right = nodes[component_node.pop(rep_obj)]
        if h < left.height or h < right.height:
            raise MalformedHierarchyError(
                "merge height %r is below the height of a component it joins (%r)"
                % (h, max(left.height, right.height)),
                object_index=obj,
            )

        children: List[int] = []
        for part in (left, right):
            # Equal-height chains are a single merge event with several children.
            if not part.is_leaf and part.height == h:
                children.extend(part.children)
                n_flattened += 1
            else:
                children.append(part.id)

        merged = TreeNode(
            id=len(nodes),
            height=h,
            size=left.size + right.size,
            children=tuple(children),
        )
        nodes.append(merged)
        component_node[uf.union(rep_pred, rep_obj)] = merged.id

    if len(component_node) != 1:
        orphan = min(component_node)
        raise MalformedHierarchyError(
            f"hierarchy is disconnected: {len(component_node)} components remain after all merges",
            object_index=orphan,
        )

    root = next(iter(component_node.values()))
    nodes = _compact(nodes, root)
    logger.debug(
        "Built merge tree: %d objects, %d merge nodes, %d equal-height merges flattened",
        n, len(nodes) - n, n_flattened,
    )
    return MergeTree(nodes=tuple(nodes), root=len(nodes) - 1, n_objects=n)


def _compact(nodes: List[TreeNode], root: int) -> List[TreeNode]:
    """Drop merge nodes that were absorbed into an equal-height parent and renumber."""
    reachable = set()
    stack = [root]
    while stack:
        node_id = stack.pop()
        reachable.add(node_id)
        stack.extend(nodes[node_id].children)

    remap: Dict[int, int] = {}
    compacted: List[TreeNode] = []
    for node in nodes:
        if node.id not in reachable:
            continue
        remap[node.id] = len(compacted)
        compacted.append(
            TreeNode(
                id=remap[node.id],
                height=node.height,
                size=node.size,
                children=tuple(remap[c] for c in node.children),
                object_id=node.object_id,
            )
        )
    return compacted
