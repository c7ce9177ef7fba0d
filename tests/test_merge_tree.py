"""Tests for dendrocut/hierarchy/builder.py and traversal.py - merge tree construction.

These tests verify the explicit tree built from a pointer hierarchy and the
navigation helpers the extraction stages rely on.
"""
from __future__ import annotations

import numpy as np
import pytest

from dendrocut.errors import EmptyInputError, MalformedHierarchyError
from dendrocut.hierarchy import PointerHierarchy, build_merge_tree, empty_hierarchy
from dendrocut.hierarchy.traversal import (
    get_subtree_leaves,
    is_descendant,
    iter_post_order,
    iter_pre_order,
)


@pytest.fixture
def balanced_tree(balanced_hierarchy):
    return build_merge_tree(balanced_hierarchy)


# ==============================================================================
# Builder
# ==============================================================================

@pytest.mark.unit
class TestBuildMergeTree:
    def test_balanced_structure(self, balanced_tree):
        """Merge nodes follow the leaves; children list the predecessor side first."""
        assert len(balanced_tree) == 7
        assert balanced_tree.root == 6
        assert balanced_tree.node(4).children == (1, 0)
        assert balanced_tree.node(5).children == (3, 2)
        assert balanced_tree.node(6).children == (5, 4)
        assert [balanced_tree.node(i).height for i in (4, 5, 6)] == [1.0, 1.5, 2.0]
        assert [balanced_tree.node(i).size for i in (4, 5, 6)] == [2, 2, 4]

    def test_leaves_keep_object_ids(self, balanced_tree):
        for i in range(4):
            leaf = balanced_tree.node(i)
            assert leaf.is_leaf
            assert leaf.object_id == i
            assert leaf.size == 1
            assert leaf.height == 0.0

    def test_single_object_tree_is_a_leaf(self):
        tree = build_merge_tree(PointerHierarchy(predecessor=[0], height=[np.inf], order=[0]))
        assert len(tree) == 1
        assert tree.root == 0
        assert tree.root_node.is_leaf

    def test_empty_hierarchy_raises(self):
        with pytest.raises(EmptyInputError):
            build_merge_tree(empty_hierarchy())

    def test_equal_height_chain_becomes_one_node(self):
        """Three objects merged at the same height form one ternary merge event."""
        h = PointerHierarchy(predecessor=[1, 2, 2], height=[1.0, 1.0, np.inf], order=[0, 1, 2])
        tree = build_merge_tree(h)
        assert len(tree) == 4
        assert tree.root_node.children == (2, 1, 0)
        assert tree.root_node.size == 3
        assert tree.root_node.height == 1.0

    def test_equal_heights_in_separate_components_stay_binary(self):
        h = PointerHierarchy(
            predecessor=[1, 3, 3, 3],
            height=[1.0, 2.0, 1.0, np.inf],
            order=[0, 2, 1, 3],
        )
        tree = build_merge_tree(h)
        assert len(tree) == 7
        assert all(len(node.children) == 2 for node in tree.merge_nodes)

    def test_cycle_raises_with_object_index(self):
        h = PointerHierarchy(predecessor=[1, 0, 2], height=[1.0, 1.0, np.inf], order=[0, 1, 2])
        with pytest.raises(MalformedHierarchyError, match="cycle") as excinfo:
            build_merge_tree(h)
        assert excinfo.value.object_index == 1

    def test_height_below_component_raises(self):
        """A merge may not happen below the height its component already reached."""
        h = PointerHierarchy(predecessor=[1, 2, 2], height=[2.0, 1.0, np.inf], order=[0, 1, 2])
        with pytest.raises(MalformedHierarchyError, match="below the height") as excinfo:
            build_merge_tree(h)
        assert excinfo.value.object_index == 1

    def test_disconnected_hierarchy_raises(self):
        h = PointerHierarchy(predecessor=[1, 1, 2], height=[1.0, np.inf, np.inf], order=[0, 1, 2])
        with pytest.raises(MalformedHierarchyError, match="disconnected"):
            build_merge_tree(h)

    def test_unreferenced_first_object_waits_as_leaf(self):
        """Object 2 has no merge of its own until object 1 points at it."""
        h = PointerHierarchy(predecessor=[1, 2, 2], height=[0.5, 3.0, np.inf], order=[0, 1, 2])
        tree = build_merge_tree(h)
        assert tree.root_node.children == (2, 3)
        assert tree.node(3).children == (1, 0)

    def test_tree_invariants_on_real_data(self, blobs_hierarchy):
        tree = build_merge_tree(blobs_hierarchy)
        assert tree.root_node.size == blobs_hierarchy.n
        for node in tree.merge_nodes:
            assert len(node.children) >= 2
            assert node.size == sum(tree.node(c).size for c in node.children)
            assert all(tree.node(c).height <= node.height for c in node.children)
            assert all(c < node.id for c in node.children)


# ==============================================================================
# Traversal
# ==============================================================================

@pytest.mark.unit
class TestTraversal:
    def test_parent_links(self, balanced_tree):
        assert balanced_tree.parent[0] == 4
        assert balanced_tree.parent[5] == 6
        assert balanced_tree.parent[6] is None

    def test_subtree_leaves_left_to_right(self, balanced_tree):
        assert get_subtree_leaves(balanced_tree, 6) == [3, 2, 1, 0]
        assert get_subtree_leaves(balanced_tree, 4) == [1, 0]
        assert get_subtree_leaves(balanced_tree, 2) == [2]

    def test_is_descendant(self, balanced_tree):
        assert is_descendant(balanced_tree, 0, 4)
        assert is_descendant(balanced_tree, 4, 4)
        assert is_descendant(balanced_tree, 0, 6)
        assert not is_descendant(balanced_tree, 0, 5)
        assert not is_descendant(balanced_tree, 6, 4)

    def test_orders(self, balanced_tree):
        assert list(iter_pre_order(balanced_tree)) == [6, 5, 3, 2, 4, 1, 0]
        post = list(iter_post_order(balanced_tree))
        position = {node_id: i for i, node_id in enumerate(post)}
        for node in balanced_tree.nodes:
            for child in node.children:
                assert position[child] < position[node.id]
