"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/union_find.py
Disjoint-set forest used to cluster similar images transitively.
"""
from typing import List


class UnionFind:
    """Disjoint sets over the integers 0..size-1, with path halving."""

    def __init__(self, size: int):
        self.parent: List[int] = list(range(size))

    def find(self, x: int) -> int:
        parent = self.parent
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    def union(self, a: int, b: int) -> bool:
        """Merge the sets containing a and b. Returns False if they were already joined."""
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return False
        self.parent[root_a] = root_b
        return True

    def connected(self, a: int, b: int) -> bool:
        return self.find(a) == self.find(b)

    def __len__(self):
        return len(self.parent)
