"""Tests for the connectivity sketch and streaming connectivity."""

import random

import networkx as nx
import pytest

from streamgraph.algorithms.connectivity import StreamingConnectivity
from streamgraph.config import SketchConfig, SketchLayout
from streamgraph.errors import (
    CapacityError,
    IncompatibleMergeError,
    InputError,
    InsufficientDataError,
)
from streamgraph.graph.edges import Edge, Sign
from streamgraph.graph.generators import bernoulli_stream, uniform_stream
from streamgraph.graph.stream import EdgeStream
from streamgraph.sketches.connectivity import ConnectivitySketch

TWO_TRIANGLES = [(0, 1), (1, 2), (2, 0), (3, 4), (4, 5), (5, 3)]


def _sketch(n, edges, seed=42, **kwargs):
    sketch = ConnectivitySketch(n, seed=seed, **kwargs)
    for u, v in edges:
        sketch.update(u, v, Sign.INSERT)
    return sketch


class TestTwoTriangles:
    def test_two_components_over_seeds(self):
        successes = 0
        for seed in range(100):
            forest = _sketch(6, TWO_TRIANGLES, seed=seed).query()
            trees = forest.trees
            if (
                forest.component_count == 2
                and forest.complete
                and sorted(len(t) for t in trees) == [2, 2]
            ):
                successes += 1
        assert successes >= 95

    def test_components_are_the_triangles(self):
        forest = _sketch(6, TWO_TRIANGLES).query()
        assert forest.components == [[0, 1, 2], [3, 4, 5]]
        assert forest.connected(0, 2)
        assert not forest.connected(2, 3)

    def test_forest_edges_exist_in_graph(self):
        forest = _sketch(6, TWO_TRIANGLES).query()
        graph_edges = {Edge(u, v) for u, v in TWO_TRIANGLES}
        assert set(forest.edges) <= graph_edges
        assert nx.is_forest(forest.to_networkx())


class TestLinearity:
    def test_merge_equals_sequential(self):
        gen = uniform_stream(20, 40, noise=10, seed=3)
        whole = ConnectivitySketch(20, seed=5)
        left = ConnectivitySketch(20, seed=5)
        right = ConnectivitySketch(20, seed=5)
        for i, update in enumerate(gen.updates):
            whole.update(update)
            (left if i % 3 else right).update(update)
        assert left.merge(right) == whole
        assert right.merge(left) == whole

    def test_vertex_induced_split(self):
        edges = [(0, 1), (1, 2), (5, 6), (6, 7), (2, 5)]
        whole = _sketch(8, edges)
        low = _sketch(8, [e for e in edges if e[0] < 4])
        high = _sketch(8, [e for e in edges if e[0] >= 4])
        assert low.merge(high) == whole

    def test_order_invariance(self):
        gen = uniform_stream(15, 30, noise=5, seed=9)
        a, b = ConnectivitySketch(15, seed=1), ConnectivitySketch(15, seed=1)
        shuffled = list(gen.updates)
        random.Random(0).shuffle(shuffled)
        for update in gen.updates:
            a.update(update)
        for update in shuffled:
            b.update(update)
        assert a == b

    def test_insert_delete_cancellation(self):
        base = _sketch(10, [(0, 1), (2, 3)])
        noisy = _sketch(10, [(0, 1), (2, 3), (4, 5)])
        noisy.update(4, 5, Sign.DELETE)
        assert noisy == base
        assert noisy.query().component_count == 8

    def test_edge_with_positional_sign(self):
        sketch = ConnectivitySketch(4, seed=7)
        sketch.update(Edge(0, 1))
        sketch.update(Edge(0, 1), Sign.DELETE)
        assert sketch.is_zero()
        assert sketch == ConnectivitySketch(4, seed=7)
        assert sketch.query().component_count == 4

    def test_edge_sign_forms_agree(self):
        a = ConnectivitySketch(6, seed=3)
        b = ConnectivitySketch(6, seed=3)
        for u, v in TWO_TRIANGLES:
            a.update(Edge(u, v), Sign.INSERT)
            b.update(u, v, Sign.INSERT)
        a.update(Edge(4, 5), -1)
        b.update(Edge(4, 5), sign=Sign.DELETE)
        assert a == b

    def test_merge_refuses_mismatch(self):
        with pytest.raises(IncompatibleMergeError):
            ConnectivitySketch(6, seed=1).merge(ConnectivitySketch(6, seed=2))
        with pytest.raises(IncompatibleMergeError):
            ConnectivitySketch(6, seed=1).merge(ConnectivitySketch(7, seed=1))
        with pytest.raises(IncompatibleMergeError):
            ConnectivitySketch(6).merge(ConnectivitySketch(6, buckets=4))

    def test_query_is_idempotent(self):
        sketch = _sketch(6, TWO_TRIANGLES)
        assert sketch.query() == sketch.query()


class TestBoundaries:
    def test_empty_stream(self):
        forest = ConnectivitySketch(5).query()
        assert forest.component_count == 5
        assert forest.edges == []
        assert forest.complete

    def test_no_vertices(self):
        forest = ConnectivitySketch(0).query()
        assert forest.component_count == 0
        assert forest.value == 0

    def test_out_of_range_rejected(self):
        with pytest.raises(InputError):
            ConnectivitySketch(4).update(1, 4)

    def test_space_budget_enforced(self):
        layout = SketchLayout.for_vertices(100)
        with pytest.raises(CapacityError):
            ConnectivitySketch(100, space_budget=layout.counters - 1)
        ConnectivitySketch(100, space_budget=layout.counters)

    def test_too_many_vertices(self):
        with pytest.raises(CapacityError):
            SketchLayout.for_vertices((1 << 20) + 1)

    def test_config_builds_sketch(self):
        config = SketchConfig(seed=3, buckets=4)
        sketch = ConnectivitySketch(10, **config.sketch_kwargs())
        assert sketch.layout == config.layout(10)


class TestAgainstNetworkx:
    @pytest.mark.parametrize("seed", range(5))
    def test_random_turnstile_graph(self, seed):
        gen = bernoulli_stream(40, 0.05, noise=30, copies=2, seed=seed)
        forest = _sketch(40, [], seed=seed)
        for update in gen.updates:
            forest.update(update)
        result = forest.query()
        assert result.complete
        assert result.component_count == nx.number_connected_components(gen.graph)
        expected = sorted(sorted(c) for c in nx.connected_components(gen.graph))
        assert result.components == expected


class TestStreamingConnectivity:
    def test_consume_and_query(self):
        algo = StreamingConnectivity(6, seed=7).consume(EdgeStream.from_edges(6, TWO_TRIANGLES))
        assert algo.component_count() == 2
        assert algo.connected(3, 5)

    def test_query_before_end(self):
        algo = StreamingConnectivity(6)
        stream = EdgeStream.from_edges(6, TWO_TRIANGLES)
        algo.consume(stream, max_updates=2)
        with pytest.raises(InsufficientDataError):
            algo.query()
        partial = algo.query(allow_partial=True)
        assert partial.component_count == 4
        algo.consume(stream)
        assert algo.query().component_count == 2

    def test_stream_larger_than_algorithm(self):
        with pytest.raises(InputError):
            StreamingConnectivity(4).consume(EdgeStream.from_edges(6, []))

    def test_process_and_finish(self):
        algo = StreamingConnectivity(3)
        algo.process((0, 1))
        algo.process((1, 2, "+"))
        algo.process((1, 2, "-"))
        assert algo.finish().query().component_count == 2

    def test_merge_partials(self):
        a, b = StreamingConnectivity(6, seed=2), StreamingConnectivity(6, seed=2)
        a.consume(TWO_TRIANGLES[:3])
        b.consume(TWO_TRIANGLES[3:])
        merged = a.merge(b)
        assert merged.processed == 6
        assert merged.component_count() == 2
