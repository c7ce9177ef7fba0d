"""Data models for pointer hierarchies and merge trees."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple

import numpy as np

from dendrocut.errors import MalformedHierarchyError


def _frozen_array(values, dtype) -> np.ndarray:
    array = np.array(values, dtype=dtype, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class PointerHierarchy:
    """Pointer representation of an agglomerative merge sequence.

    Object ``i`` was merged into the component of ``predecessor[i]`` at
    distance ``height[i]``. ``order`` lists the objects by ascending merge
    height. The root points to itself; its height is usually ``+inf``.
    """

    predecessor: np.ndarray
    height: np.ndarray
    order: np.ndarray

    def __post_init__(self) -> None:
        predecessor = _frozen_array(self.predecessor, np.int64)
        height = _frozen_array(self.height, np.float64)
        order = _frozen_array(self.order, np.int64)
        if predecessor.ndim != 1 or height.ndim != 1 or order.ndim != 1:
            raise MalformedHierarchyError("predecessor, height and order must be one-dimensional")
        n = predecessor.shape[0]
        if height.shape[0] != n or order.shape[0] != n:
            raise MalformedHierarchyError(
                "predecessor, height and order lengths differ: %d, %d, %d"
                % (n, height.shape[0], order.shape[0])
            )
        if n:
            out_of_range = np.flatnonzero((predecessor < 0) | (predecessor >= n))
            if out_of_range.size:
                i = int(out_of_range[0])
                raise MalformedHierarchyError(
                    f"predecessor {int(predecessor[i])} out of range", object_index=i
                )
            bad_height = np.flatnonzero(np.isnan(height) | (height < 0))
            if bad_height.size:
                i = int(bad_height[0])
                raise MalformedHierarchyError(
                    f"merge height {height[i]} is not a non-negative number", object_index=i
                )
            seen = np.zeros(n, dtype=bool)
            for position, obj in enumerate(order):
                if obj < 0 or obj >= n or seen[obj]:
                    raise MalformedHierarchyError(
                        f"order is not a permutation of the objects (position {position})",
                        object_index=int(obj),
                    )
                seen[obj] = True
        object.__setattr__(self, "predecessor", predecessor)
        object.__setattr__(self, "height", height)
        object.__setattr__(self, "order", order)

    @property
    def n(self) -> int:
        return int(self.predecessor.shape[0])

    def __len__(self) -> int:
        return self.n

    @property
    def roots(self) -> Tuple[int, ...]:
        """Objects without a distinct predecessor."""
        return tuple(int(i) for i in np.flatnonzero(self.predecessor == np.arange(self.n)))

    def merges(self) -> Iterator[Tuple[int, int, float]]:
        """Yield ``(object, predecessor, height)`` in merge order, skipping roots."""
        for obj in self.order:
            obj = int(obj)
            pred = int(self.predecessor[obj])
            if pred == obj:
                continue
            yield obj, pred, float(self.height[obj])

    @classmethod
    def from_arrays(cls, predecessor, height, order=None) -> "PointerHierarchy":
        """Build a hierarchy, deriving ``order`` from the heights when omitted.

        Ties keep the object index order (stable sort).
        """
        if order is None:
            order = np.argsort(np.asarray(height, dtype=np.float64), kind="stable")
        return cls(predecessor=predecessor, height=height, order=order)


@dataclass(frozen=True)
class TreeNode:
    """One node of a merge tree. Leaves carry the object id they stand for."""

    id: int
    height: float
    size: int
    children: Tuple[int, ...] = ()
    object_id: Optional[int] = None

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class MergeTree:
    """Explicit merge tree stored as an arena of nodes addressed by integer id.

    Leaves occupy ids ``0..n_objects-1`` (equal to the object ids); merge
    nodes follow in creation order, so every child id is smaller than its
    parent id.
    """

    nodes: Tuple[TreeNode, ...]
    root: int
    n_objects: int
    parent: Tuple[Optional[int], ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        parent = [None] * len(self.nodes)
        for node in self.nodes:
            for child in node.children:
                parent[child] = node.id
        object.__setattr__(self, "parent", tuple(parent))

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, node_id: int) -> TreeNode:
        return self.nodes[node_id]

    @property
    def root_node(self) -> TreeNode:
        return self.nodes[self.root]

    @property
    def merge_nodes(self) -> Tuple[TreeNode, ...]:
        return self.nodes[self.n_objects:]
