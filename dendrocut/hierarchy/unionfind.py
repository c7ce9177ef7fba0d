"""Union-find over object indices (path compression, union by size)."""
from __future__ import annotations

import numpy as np


class UnionFind:
    """Disjoint sets over ``0..n-1``."""

    def __init__(self, n: int):
        self._parent = np.arange(n, dtype=np.int64)
        self._size = np.ones(n, dtype=np.int64)
        self.n_components = n

    def find(self, x: int) -> int:
        parent = self._parent
        root = x
        while parent[root] != root:
            root = parent[root]
        while parent[x] != root:
            parent[x], x = root, parent[x]
        return int(root)

    def union(self, a: int, b: int) -> int:
        """Join the sets of ``a`` and ``b``; return the surviving root."""
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return ra
        if self._size[ra] < self._size[rb]:
            ra, rb = rb, ra
        self._parent[rb] = ra
        self._size[ra] += self._size[rb]
        self.n_components -= 1
        return ra

    def size(self, x: int) -> int:
        return int(self._size[self.find(x)])
