"""
Streaming bipartiteness testing.

Works on the bipartite double cover D(G): every vertex v becomes
(v, 0) and (v, 1), and every edge {u, w} becomes {(u, 0), (w, 1)} and
{(u, 1), (w, 0)}. G contains an odd cycle exactly when some (v, 0) and
(v, 1) are connected in D(G). D(G) is summarized by one connectivity
sketch over 2n vertices, where (v, 0) is v and (v, 1) is v + n.

A non-bipartite answer always comes with an odd closed walk assembled
from recovered edges. Those edges pass a fingerprint check mod 2^61 - 1,
so the walk is spurious with probability at most universe / 2^61. A
bipartite answer can be wrong only if reconstruction failed, with
probability at most 1/(2n).
"""

import logging
from typing import Optional

import networkx as nx

from ..config import DEFAULT_BUCKETS
from ..graph.edges import Edge, Update
from ..results import ExactResult, ForestResult, ProbabilisticResult, QueryResult
from ..sketches.connectivity import ConnectivitySketch
from .base import StreamingAlgorithm

logger = logging.getLogger(__name__)


def is_odd_closed_walk(walk: list[Edge]) -> bool:
    """True if ``walk`` is a closed walk with an odd number of edges."""
    if len(walk) % 2 == 0:
        return False
    for first in walk[0].endpoints:
        current = first
        for e in walk:
            if current not in e.endpoints:
                break
            current = e.other(current)
        else:
            if current == first:
                return True
    return False


class BipartitenessTester(StreamingAlgorithm):
    """
    Bipartiteness test over a turnstile stream.

    A "no" carries an odd closed walk; it is wrong only if a recovered
    edge is a fingerprint collision (probability <= universe / 2^61).
    """

    def __init__(
        self,
        vertex_count: int,
        space_budget: Optional[int] = None,
        seed: int = 42,
        rounds: Optional[int] = None,
        buckets: int = DEFAULT_BUCKETS,
    ):
        super().__init__(vertex_count)
        self.seed = seed
        self.cover = ConnectivitySketch(
            2 * vertex_count,
            space_budget=space_budget,
            seed=seed,
            rounds=rounds,
            buckets=buckets,
        )

    def _apply(self, update: Update):
        n = self.vertex_count
        u, w = update.edge.u, update.edge.v
        self.cover.update(u, w + n, update.sign)
        self.cover.update(u + n, w, update.sign)

    def merge(self, other: "BipartitenessTester") -> "BipartitenessTester":
        merged = object.__new__(BipartitenessTester)
        merged.__dict__.update(self.__dict__)
        merged.cover = self.cover.merge(other.cover)
        merged.processed = self.processed + other.processed
        merged.exhausted = self.exhausted and other.exhausted
        return merged

    def _query(self) -> QueryResult:
        n = self.vertex_count
        forest = self.cover.query()
        owner = {}
        for i, members in enumerate(forest.components):
            for x in members:
                owner[x] = i

        for v in range(n):
            if owner[v] == owner[v + n]:
                witness = self._odd_walk(forest, v)
                logger.debug("Odd closed walk of length %d through %d", len(witness), v)
                return ExactResult(
                    value=False,
                    details={"witness": witness, "cover_components": forest.component_count},
                )

        return ProbabilisticResult(
            value=True,
            confidence=forest.confidence,
            details={
                "cover_components": forest.component_count,
                "forest_complete": forest.complete,
            },
        )

    def _odd_walk(self, forest: ForestResult, v: int) -> list[Edge]:
        """Project the forest path from (v, 0) to (v, 1) back onto G."""
        n = self.vertex_count
        path = nx.shortest_path(forest.to_networkx(), v, v + n)
        vertices = [x % n for x in path]
        return [Edge(a, b) for a, b in zip(vertices, vertices[1:])]

    def is_bipartite(self, allow_partial: bool = False) -> bool:
        return bool(self.query(allow_partial=allow_partial).value)
