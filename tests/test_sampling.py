"""Tests for triangle, degree and counting estimators."""

import networkx as nx
import numpy as np
import pytest

from streamgraph.errors import IncompatibleMergeError, InputError
from streamgraph.graph.edges import Edge
from streamgraph.graph.stream import EdgeStream
from streamgraph.sampling.counting import DistinctCounter, MorrisCounter
from streamgraph.sampling.degrees import DegreeEstimator
from streamgraph.sampling.triangles import TriangleEstimator


def _triangles(G):
    return sum(nx.triangles(G).values()) // 3


class TestTriangleEstimator:
    def test_exact_when_everything_fits(self):
        G = nx.gnm_random_graph(30, 120, seed=1)
        est = TriangleEstimator(30, capacity=200, repetitions=2).consume(EdgeStream.from_graph(G))
        result = est.query()
        assert result.value == _triangles(G)
        assert result.details["exact"]
        assert result.error_bound == 0.0

    def test_local_counts_exact_when_everything_fits(self):
        G = nx.karate_club_graph()
        G = nx.Graph(G.edges())
        est = TriangleEstimator(34, capacity=500, repetitions=1).consume(EdgeStream.from_graph(G))
        local = nx.triangles(G)
        assert all(est.local_estimate(v) == local[v] for v in G)

    def test_unbiased(self):
        G = nx.gnm_random_graph(40, 250, seed=7)
        truth = _triangles(G)
        stream = EdgeStream.from_graph(G)
        estimates = []
        for seed in range(400):
            est = TriangleEstimator(40, capacity=100, repetitions=1, seed=seed)
            estimates.append(est.consume(stream.replay()).query().value)
        assert abs(np.mean(estimates) - truth) < 0.1 * truth

    def test_error_bound_reported(self):
        G = nx.gnm_random_graph(40, 250, seed=7)
        result = TriangleEstimator(40, capacity=100, repetitions=10).consume(
            EdgeStream.from_graph(G)
        ).query()
        assert result.variance > 0
        assert result.error_bound > 0
        assert result.confidence == 0.95

    def test_insertion_only(self):
        with pytest.raises(InputError):
            TriangleEstimator(3).process((0, 1, "-"))

    def test_small_capacity_refused(self):
        with pytest.raises(ValueError):
            TriangleEstimator(3, capacity=1)

    def test_repeated_edges_keep_sample_adjacency(self):
        edges = [(0, 1), (0, 1), (1, 2), (0, 2), (0, 1), (2, 3), (1, 3), (0, 1), (3, 4)] * 5
        estimator = TriangleEstimator(5, capacity=4, repetitions=6, seed=11).consume(edges)
        for counter in estimator._counters:
            sampled = {e.endpoints for e in counter.reservoir.sample()}
            linked = {(u, v) for u, nbrs in counter.adjacency.items() for v in nbrs if u < v}
            assert linked == sampled


class TestDegreeEstimator:
    def test_exact_below_capacity(self):
        G = nx.star_graph(9)
        est = DegreeEstimator(10, capacity=50).consume(EdgeStream.from_graph(G))
        assert est.degree(0).value == 9
        assert est.degree(3).value == 1
        assert est.query().value == pytest.approx(1.8)

    def test_unbiased_degree(self):
        G = nx.gnm_random_graph(50, 400, seed=3)
        stream = EdgeStream.from_graph(G)
        v = max(G.degree(), key=lambda item: item[1])[0]
        estimates = [
            DegreeEstimator(50, capacity=80, seed=s).consume(stream.replay()).degree(v).value
            for s in range(300)
        ]
        assert abs(np.mean(estimates) - G.degree(v)) < 0.1 * G.degree(v)

    def test_top_finds_hub(self):
        G = nx.star_graph(200)
        G.add_edges_from((i, i + 1) for i in range(1, 200, 2))
        est = DegreeEstimator(201, capacity=60, seed=2).consume(EdgeStream.from_graph(G))
        assert est.top(1)[0][0] == 0

    def test_strength(self):
        stream = EdgeStream.from_updates(4, [(0, 1, "+", 2.0), (0, 2, "+", 3.0), (1, 3, "+", 1.0)])
        est = DegreeEstimator(4, capacity=10).consume(stream)
        assert est.strength(0) == pytest.approx(5.0)


class TestMorrisCounter:
    def test_zero(self):
        assert MorrisCounter().estimate() == 0.0

    def test_unbiased(self):
        means = []
        for seed in range(50):
            c = MorrisCounter(copies=20, seed=seed)
            c.increment(1000)
            means.append(c.estimate())
        assert abs(np.mean(means) - 1000) < 100

    def test_registers_stay_small(self):
        c = MorrisCounter(copies=4, seed=1)
        c.increment(5000)
        assert c.registers.max() < 20
        assert c.query().variance > 0


class TestDistinctCounter:
    def test_exact_below_k(self):
        c = DistinctCounter(k=64)
        for x in [1, 2, 3, 2, 1, 5]:
            c.add(x)
        assert c.estimate() == 4
        assert c.query().details["exact"]

    def test_estimate_within_tolerance(self):
        c = DistinctCounter(k=256, seed=3)
        for x in range(20000):
            c.add(x % 5000)
        assert abs(c.estimate() - 5000) < 0.35 * 5000

    def test_edges_hashed_by_index(self):
        c = DistinctCounter(k=16)
        c.add(Edge(0, 1))
        c.add(Edge(1, 0))
        c.add(Edge(1, 2))
        assert len(c) == 2

    def test_merge(self):
        a, b = DistinctCounter(k=128, seed=1), DistinctCounter(k=128, seed=1)
        whole = DistinctCounter(k=128, seed=1)
        for x in range(3000):
            (a if x % 2 else b).add(x)
            whole.add(x)
        assert a.merge(b).estimate() == whole.estimate()
        with pytest.raises(IncompatibleMergeError):
            a.merge(DistinctCounter(k=128, seed=2))
