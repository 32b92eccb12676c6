"""
Unit tests for the disjoint-set forest.
"""
from lookalike.core.union_find import UnionFind


class TestUnionFind:
    def test_initially_disjoint(self):
        sets = UnionFind(3)
        assert len({sets.find(i) for i in range(3)}) == 3

    def test_union_is_transitive(self):
        sets = UnionFind(4)
        assert sets.union(0, 1)
        assert sets.union(1, 2)
        assert sets.connected(0, 2)
        assert not sets.connected(0, 3)

    def test_union_of_joined_sets_returns_false(self):
        sets = UnionFind(2)
        sets.union(0, 1)
        assert sets.union(1, 0) is False

    def test_long_chain_is_compressed(self):
        sets = UnionFind(100)
        for i in range(99):
            sets.union(i, i + 1)
        root = sets.find(0)
        assert all(sets.find(i) == root for i in range(100))
        assert len(sets) == 100
