"""Tests for edge streams."""

import networkx as nx
import pytest

from streamgraph.errors import InputError, ReplayError
from streamgraph.graph.edges import Edge, Sign
from streamgraph.graph.stream import EdgeStream, UnderflowPolicy


def _triangle_updates():
    return [(0, 1, "+"), (1, 2, "+"), (0, 2, "+"), (1, 2, "-")]


class TestEdgeStream:
    def test_next_until_none(self):
        stream = EdgeStream.from_updates(3, _triangle_updates())
        seen = []
        while (update := stream.next()) is not None:
            seen.append(update)
        assert len(seen) == 4
        assert stream.exhausted
        assert stream.next() is None
        assert stream.insertions == 3
        assert stream.deletions == 1

    def test_iteration_protocol(self):
        stream = EdgeStream.from_edges(4, [(0, 1), (2, 3)])
        assert [u.edge for u in stream] == [Edge(0, 1), Edge(2, 3)]
        assert list(stream) == []

    def test_vertex_count_fixed(self):
        assert EdgeStream.from_edges(10, []).vertex_count == 10

    def test_empty_stream(self):
        stream = EdgeStream.from_edges(5, [])
        assert stream.next() is None
        assert stream.position == 0

    def test_out_of_range_rejected_at_position(self):
        stream = EdgeStream.from_edges(3, [(0, 1), (1, 3)])
        stream.next()
        with pytest.raises(InputError, match="Update #1"):
            stream.next()

    def test_self_loop_rejected(self):
        stream = EdgeStream.from_edges(3, [(2, 2)])
        with pytest.raises(InputError, match="Self-loop"):
            stream.next()

    def test_bad_sign_rejected(self):
        stream = EdgeStream.from_updates(3, [(0, 1, "?")])
        with pytest.raises(InputError):
            stream.next()

    def test_negative_vertex_count(self):
        with pytest.raises(InputError):
            EdgeStream(-1, [])

    def test_lazy_production(self):
        produced = []

        def source():
            for pair in [(0, 1), (1, 2)]:
                produced.append(pair)
                yield pair

        stream = EdgeStream(3, source)
        assert produced == []
        stream.next()
        assert produced == [(0, 1)]


class TestReplay:
    def test_list_source_replays(self):
        stream = EdgeStream.from_edges(3, [(0, 1), (1, 2)])
        first = [u.edge for u in stream]
        second = [u.edge for u in stream.replay()]
        assert first == second

    def test_callable_source_replays(self):
        stream = EdgeStream(3, lambda: iter([(0, 1)]))
        assert stream.replayable
        assert len(list(stream.replay())) == 1

    def test_iterator_is_one_shot(self):
        stream = EdgeStream(3, iter([(0, 1)]))
        assert not stream.replayable
        with pytest.raises(ReplayError):
            stream.replay()

    def test_replayable_iterator_refused(self):
        with pytest.raises(ReplayError):
            EdgeStream(3, iter([]), replayable=True)


class TestUnderflow:
    def test_tolerate_accepts_phantom_deletion(self):
        stream = EdgeStream.from_updates(3, [(0, 1, "-")])
        assert stream.next().sign is Sign.DELETE
        assert stream.live_edge_count is None

    def test_reject_raises_on_phantom_deletion(self):
        stream = EdgeStream.from_updates(
            3, [(0, 1, "+"), (0, 1, "-"), (0, 1, "-")], underflow=UnderflowPolicy.REJECT
        )
        stream.next()
        stream.next()
        with pytest.raises(InputError, match="not live"):
            stream.next()

    def test_reject_tracks_live_edges(self):
        stream = EdgeStream.from_updates(3, _triangle_updates(), underflow="reject")
        list(stream)
        assert stream.live_edge_count == 2


class TestFromGraph:
    def test_networkx_graph(self):
        G = nx.cycle_graph(5)
        stream = EdgeStream.from_graph(G)
        assert stream.vertex_count == 5
        assert {u.edge for u in stream} == {Edge(u, v) for u, v in G.edges()}

    def test_weights_carried(self):
        G = nx.Graph()
        G.add_edge(0, 1, weight=4.0)
        update = EdgeStream.from_graph(G).next()
        assert update.edge.weight == 4.0

    def test_non_integer_nodes_refused(self):
        with pytest.raises(InputError):
            EdgeStream.from_graph(nx.path_graph(["a", "b"]))
