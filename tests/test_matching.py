"""Tests for greedy matching."""

import networkx as nx
import pytest

from streamgraph.algorithms.matching import GreedyMatching
from streamgraph.errors import InputError
from streamgraph.graph.stream import EdgeStream


class TestGreedyMatching:
    def test_path(self):
        m = GreedyMatching(4).consume([(0, 1), (1, 2), (2, 3)])
        result = m.query()
        assert result.value == 2
        assert m.mate(0) == 1
        assert m.mate(3) == 2

    def test_bad_order_still_two_approximation(self):
        m = GreedyMatching(4).consume([(1, 2), (0, 1), (2, 3)])
        assert m.size == 1
        assert m.query().details["upper_bound"] == 2

    @pytest.mark.parametrize("seed", range(8))
    def test_bounds_maximum_matching(self, seed):
        G = nx.gnm_random_graph(30, 60, seed=seed)
        m = GreedyMatching(30).consume(EdgeStream.from_graph(G))
        maximum = len(nx.max_weight_matching(G, maxcardinality=True))
        result = m.query()
        assert result.details["lower_bound"] <= maximum <= result.details["upper_bound"]

    def test_is_a_matching(self):
        G = nx.gnm_random_graph(25, 80, seed=1)
        m = GreedyMatching(25).consume(EdgeStream.from_graph(G))
        matched = [v for e in m.edges for v in e.endpoints]
        assert len(matched) == len(set(matched))
        # maximal: every graph edge touches a matched vertex
        assert all(u in matched or v in matched for u, v in G.edges())

    def test_deletion_rejected(self):
        m = GreedyMatching(3)
        with pytest.raises(InputError, match="insertion-only"):
            m.process((0, 1, "-"))

    def test_anytime_query(self):
        m = GreedyMatching(4)
        m.process((0, 1))
        assert m.query().value == 1
