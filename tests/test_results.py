"""Tests for query results, configuration and union-find."""

import pytest

from streamgraph.config import SketchConfig, SketchLayout, default_rounds, level_count
from streamgraph.errors import CapacityError
from streamgraph.graph.edges import Edge
from streamgraph.graph.unionfind import UnionFind
from streamgraph.results import (
    ExactResult,
    ForestResult,
    ProbabilisticResult,
    ResultKind,
    StructureResult,
    normal_error_bound,
)


class TestResults:
    def test_kinds(self):
        assert ExactResult(value=3).is_exact
        assert ProbabilisticResult(value=1.0).kind is ResultKind.PROBABILISTIC
        assert StructureResult().kind is ResultKind.STRUCTURE

    def test_interval(self):
        r = ProbabilisticResult(value=10.0, error_bound=2.0)
        assert r.interval == (8.0, 12.0)
        assert r.contains(11.5)
        assert not r.contains(12.5)

    def test_structure_to_networkx(self):
        r = StructureResult(edges=[Edge(0, 1, 2.0), Edge(1, 2)], vertex_count=4)
        G = r.to_networkx()
        assert G.number_of_nodes() == 4
        assert G[0][1]["weight"] == 2.0
        assert "weight" not in G[1][2]

    def test_forest_trees(self):
        forest = ForestResult(
            edges=[Edge(0, 1), Edge(3, 4)],
            vertex_count=5,
            components=[[0, 1], [2], [3, 4]],
        )
        assert forest.component_count == 3
        assert forest.trees == [[Edge(0, 1)], [], [Edge(3, 4)]]
        assert forest.connected(3, 4)
        assert not forest.connected(1, 2)

    def test_normal_error_bound(self):
        assert normal_error_bound(1.0, 0.95) == pytest.approx(1.96, abs=0.01)
        assert normal_error_bound(0.0, 0.95) == 0.0


class TestConfig:
    def test_default_rounds_grow_logarithmically(self):
        assert default_rounds(2) == 4
        assert default_rounds(1024) == 13

    def test_level_count(self):
        assert level_count(0) == 2
        assert level_count(1 << 10) == 11

    def test_layout_memory(self):
        layout = SketchLayout.for_vertices(10, rounds=2, buckets=4)
        assert layout.shape == (10, 2, level_count(45), 4)
        assert layout.memory_bytes == layout.cells * 3 * 8

    def test_invalid_layouts(self):
        with pytest.raises(CapacityError):
            SketchLayout.for_vertices(10, buckets=0)
        with pytest.raises(CapacityError):
            SketchLayout.for_vertices(10, rounds=0)

    def test_with_seed(self):
        config = SketchConfig(seed=1, buckets=4)
        assert config.with_seed(9) == SketchConfig(seed=9, buckets=4)


class TestUnionFind:
    def test_union_and_components(self):
        uf = UnionFind(6)
        assert uf.union(0, 1)
        assert uf.union(4, 5)
        assert not uf.union(1, 0)
        assert uf.count == 4
        assert uf.components() == [[0, 1], [2], [3], [4, 5]]
        assert uf.connected(5, 4)
