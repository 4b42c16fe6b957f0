"""
Edge streams.

An EdgeStream is the single producer every algorithm consumes: a lazy,
forward-only sequence of validated Update values over a vertex universe
fixed before the first update. A stream built from a list, a graph or a
factory callable can be replayed for multi-pass algorithms; a stream
wrapping a one-shot iterator cannot.
"""

import logging
from collections import Counter
from enum import Enum
from typing import Callable, Iterable, Iterator, Optional, Union

import networkx as nx

from ..errors import InputError, ReplayError
from .edges import Edge, Sign, Update

logger = logging.getLogger(__name__)

Source = Union[Iterable, Callable[[], Iterable]]


class UnderflowPolicy(str, Enum):
    """What a stream does when an edge is deleted more often than inserted."""
    TOLERATE = "tolerate"
    REJECT = "reject"


class EdgeStream:
    """
    A validated stream of edge updates over ``vertex_count`` vertices.

    Provides:
      - ``next()`` returning ``None`` at the end of the stream
      - the iterator protocol over the same single pass
      - ``replay()`` for sources that can be traversed again
      - optional exact turnstile bookkeeping (``UnderflowPolicy.REJECT``)

    Malformed updates raise InputError at the position where they are
    produced; nothing is skipped.
    """

    def __init__(
        self,
        vertex_count: int,
        source: Source,
        replayable: Optional[bool] = None,
        underflow: UnderflowPolicy = UnderflowPolicy.TOLERATE,
        name: str = "",
    ):
        if vertex_count < 0:
            raise InputError(f"vertex_count must be non-negative, got {vertex_count}")
        self.vertex_count = int(vertex_count)
        self.underflow = UnderflowPolicy(underflow)
        self.name = name

        if callable(source):
            self._factory: Optional[Callable[[], Iterable]] = source
        elif isinstance(source, (list, tuple)):
            items = source
            self._factory = lambda: items
        else:
            self._factory = None
            self._oneshot = source

        if replayable and self._factory is None:
            raise ReplayError("A one-shot iterator cannot back a replayable stream")
        self.replayable = self._factory is not None if replayable is None else replayable

        self._iterator: Iterator = iter(
            self._factory() if self._factory is not None else self._oneshot
        )
        self._live: Optional[Counter] = (
            Counter() if self.underflow is UnderflowPolicy.REJECT else None
        )
        self.position = 0
        self.insertions = 0
        self.deletions = 0
        self.exhausted = False

    # -- constructors ------------------------------------------------------

    @classmethod
    def from_edges(
        cls, vertex_count: int, edges: Iterable, **kwargs
    ) -> "EdgeStream":
        """Insertion-only stream over a list of ``(u, v)`` pairs or Edges."""
        items = [e if isinstance(e, Edge) else tuple(e)[:2] for e in edges]
        return cls(vertex_count, items, **kwargs)

    @classmethod
    def from_updates(
        cls, vertex_count: int, updates: Iterable, **kwargs
    ) -> "EdgeStream":
        """Turnstile stream over ``(u, v, sign)`` tuples or Updates."""
        return cls(vertex_count, list(updates), **kwargs)

    @classmethod
    def from_graph(cls, G: nx.Graph, **kwargs) -> "EdgeStream":
        """
        Insertion-only stream over the edges of a networkx graph.

        Nodes must already be the integers ``0..n-1``; use
        ``nx.convert_node_labels_to_integers`` first otherwise.
        """
        n = G.number_of_nodes()
        if n and set(G.nodes()) != set(range(n)):
            raise InputError("Graph nodes must be the integers 0..n-1")
        items = []
        for u, v, data in G.edges(data=True):
            items.append((u, v, Sign.INSERT, data.get("weight")))
        return cls(n, items, **kwargs)

    # -- iteration ---------------------------------------------------------

    def __iter__(self) -> "EdgeStream":
        return self

    def __next__(self) -> Update:
        update = self.next()
        if update is None:
            raise StopIteration
        return update

    def next(self) -> Optional[Update]:
        """Produce the next validated update, or None at end of stream."""
        if self.exhausted:
            return None
        try:
            raw = next(self._iterator)
        except StopIteration:
            self.exhausted = True
            logger.debug(
                "Stream %s exhausted after %d updates", self.name or "<anon>", self.position
            )
            return None

        try:
            update = Update.coerce(raw)
            update.edge.check_range(self.vertex_count)
        except InputError as exc:
            raise InputError(f"Update #{self.position}: {exc}") from exc

        if self._live is not None:
            self._account(update)

        self.position += 1
        if update.is_insert:
            self.insertions += 1
        else:
            self.deletions += 1
        return update

    def _account(self, update: Update):
        key = update.edge.index
        if update.is_insert:
            self._live[key] += 1
            return
        if self._live[key] <= 0:
            raise InputError(
                f"Update #{self.position}: deletion of edge "
                f"({update.edge.u}, {update.edge.v}) that is not live"
            )
        self._live[key] -= 1
        if self._live[key] == 0:
            del self._live[key]

    def replay(self) -> "EdgeStream":
        """Return a fresh pass over the same source."""
        if not self.replayable or self._factory is None:
            raise ReplayError(
                f"Stream {self.name or '<anon>'} cannot be replayed"
            )
        return EdgeStream(
            self.vertex_count,
            self._factory,
            replayable=True,
            underflow=self.underflow,
            name=self.name,
        )

    @property
    def live_edge_count(self) -> Optional[int]:
        """Net number of live edges, tracked only under UnderflowPolicy.REJECT."""
        if self._live is None:
            return None
        return sum(self._live.values())

    def __repr__(self) -> str:
        return (
            f"EdgeStream(n={self.vertex_count}, position={self.position}, "
            f"replayable={self.replayable}, exhausted={self.exhausted})"
        )
