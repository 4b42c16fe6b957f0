"""
Arena-indexed union-find.

Forest contraction during sketch reconstruction works on vertex ids
only, so components live in two fixed-size integer arrays instead of an
adjacency structure.
"""

import numpy as np


class UnionFind:
    """Disjoint sets over ``{0, ..., n-1}`` with path halving and union by size."""

    def __init__(self, n: int):
        self.parent = np.arange(n, dtype=np.int64)
        self.size = np.ones(n, dtype=np.int64)
        self.count = n

    def __len__(self) -> int:
        return len(self.parent)

    def find(self, x: int) -> int:
        parent = self.parent
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return int(x)

    def union(self, a: int, b: int) -> bool:
        """Merge the sets of ``a`` and ``b``; False if already together."""
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return False
        if self.size[ra] < self.size[rb]:
            ra, rb = rb, ra
        self.parent[rb] = ra
        self.size[ra] += self.size[rb]
        self.count -= 1
        return True

    def connected(self, a: int, b: int) -> bool:
        return self.find(a) == self.find(b)

    def groups(self) -> dict[int, list[int]]:
        """Map each root to the sorted list of its members."""
        result: dict[int, list[int]] = {}
        for x in range(len(self.parent)):
            result.setdefault(self.find(x), []).append(x)
        return result

    def components(self) -> list[list[int]]:
        """Components as sorted member lists, ordered by smallest member."""
        return sorted(self.groups().values(), key=lambda members: members[0])
