"""Pointer hierarchies and the merge trees built from them."""
from dendrocut.hierarchy.models import (
    MergeTree,
    PointerHierarchy,
    TreeNode,
)
from dendrocut.hierarchy.builder import build_merge_tree
from dendrocut.hierarchy.pointer import (
    empty_hierarchy,
    from_linkage,
    pointer_hierarchy_from_points,
    to_linkage,
)
from dendrocut.hierarchy.unionfind import UnionFind
