"""
AGM connectivity sketch.

Every vertex v owns the signed incidence vector a_v over the edge
universe: for a live edge {u, v} with u < v, a_u has +1 and a_v has -1 at
the edge's index. Summing the vectors of a vertex set S cancels every
edge inside S, leaving exactly the edges of the cut (S, V - S). Each
vertex keeps, for every reconstruction round, an L0-sampling bank over
its vector; because the banks are linear, the bank of S is the sum of
its members' banks, and decoding it yields an edge leaving S.

Reconstruction runs Borůvka's algorithm: each round sums the banks of
every current component with that round's independent randomness,
recovers one outgoing edge per component and contracts along them.
Components whose summed bank is all zero have no outgoing edges and are
finished.

Space is ``n x rounds x levels x buckets`` cells of three int64 counters,
i.e. O(n log^2 n).
"""

import logging
from typing import Optional, Union

import numpy as np

from ..config import DEFAULT_BUCKETS, SketchLayout
from ..errors import InputError
from ..graph.edges import Edge, Sign, Update
from ..graph.unionfind import UnionFind
from ..hashing.families import KWiseHash, derive_seed
from ..results import ForestResult
from .base import LinearSketch
from .sparse_recovery import (
    MODULUS,
    apply_update,
    decode_cells,
    empty_bank,
    fingerprint_term,
    merge_banks,
    random_base,
)

logger = logging.getLogger(__name__)


class ConnectivitySketch(LinearSketch):
    """
    Linear sketch from which a spanning forest of the live graph can be
    recovered with probability at least ``1 - 1/n``.

    Supports:
      - insertions and deletions in any order (turnstile)
      - ``merge`` of sketches built with the same seed over any split of
        the stream, including disjoint vertex-induced sub-streams
      - repeated, non-destructive ``query`` calls
    """

    def __init__(
        self,
        vertex_count: int,
        space_budget: Optional[int] = None,
        seed: int = 42,
        rounds: Optional[int] = None,
        buckets: int = DEFAULT_BUCKETS,
    ):
        super().__init__()
        self.layout = SketchLayout.for_vertices(
            vertex_count, rounds=rounds, buckets=buckets, space_budget=space_budget
        )
        self.vertex_count = vertex_count
        self.space_budget = space_budget
        self.seed = seed

        rounds = self.layout.rounds
        self._level_hashes = [
            KWiseHash(k=2, seed=derive_seed(seed, "agm-level", t)) for t in range(rounds)
        ]
        self._bucket_hashes = [
            KWiseHash(k=2, seed=derive_seed(seed, "agm-bucket", t)) for t in range(rounds)
        ]
        self._bases = [random_base(seed, "agm", t) for t in range(rounds)]
        self._count, self._index_sum, self._fingerprint = empty_bank(self.layout.shape)

        logger.debug(
            "ConnectivitySketch n=%d rounds=%d levels=%d buckets=%d (%d bytes)",
            vertex_count, rounds, self.layout.levels, buckets, self.layout.memory_bytes,
        )

    @property
    def rounds(self) -> int:
        return self.layout.rounds

    def params(self) -> tuple:
        layout = self.layout
        return ("agm", layout.vertex_count, self.seed, layout.rounds, layout.levels, layout.buckets)

    def _arrays(self) -> dict[str, np.ndarray]:
        return {
            "_count": self._count,
            "_index_sum": self._index_sum,
            "_fingerprint": self._fingerprint,
        }

    # -- updates -----------------------------------------------------------

    def update(
        self,
        edge: Union[Update, Edge, int],
        v: Optional[int] = None,
        sign: Union[Sign, int] = Sign.INSERT,
    ):
        """
        Apply one update.

        Accepts ``update(Update)``, ``update(Edge, sign)`` or
        ``update(u, v, sign)``.
        """
        if isinstance(edge, Update):
            edge, sign = edge.edge, edge.sign
        elif isinstance(edge, Edge):
            # second positional argument is the sign
            if v is not None:
                sign = v
        else:
            edge = Edge(edge, v)
        edge.check_range(self.vertex_count)
        self._add(edge, int(Sign.coerce(sign)))
        self._touch()

    def _add(self, edge: Edge, delta: int):
        e = edge.index
        top = self.layout.levels - 1
        arrays = (self._count, self._index_sum, self._fingerprint)
        for t in range(self.layout.rounds):
            level = self._level_hashes[t].level(e, top)
            bucket = self._bucket_hashes[t].bucket(e, self.layout.buckets)
            span = slice(0, level + 1)
            base = self._bases[t]
            apply_update(*arrays, (edge.u, t, span, bucket), e, delta,
                         fingerprint_term(base, e, delta))
            apply_update(*arrays, (edge.v, t, span, bucket), e, -delta,
                         fingerprint_term(base, e, -delta))

    def merge(self, other: "ConnectivitySketch") -> "ConnectivitySketch":
        self.check_compatible(other)
        merged = self.copy()
        merged._count, merged._index_sum, merged._fingerprint = merge_banks(
            (self._count, self._index_sum, self._fingerprint),
            (other._count, other._index_sum, other._fingerprint),
        )
        merged.updates = self.updates + other.updates
        return merged

    # -- reconstruction ----------------------------------------------------

    def _component_bank(self, members: list[int], t: int) -> tuple:
        count = self._count[members, t].sum(axis=0)
        index_sum = self._index_sum[members, t].sum(axis=0)
        fingerprint = np.zeros_like(count)
        for v in members:
            fingerprint = (fingerprint + self._fingerprint[v, t]) % MODULUS
        return count, index_sum, fingerprint

    def _open_components(self, uf: UnionFind, t: int) -> dict[int, tuple]:
        """Banks of the components whose cut is non-empty, keyed by root."""
        open_banks = {}
        for root, members in uf.groups().items():
            bank = self._component_bank(members, t)
            if any(a.any() for a in bank):
                open_banks[root] = bank
        return open_banks

    def _cut_edge(self, bank: tuple, t: int, uf: UnionFind, root: int) -> Optional[Edge]:
        found = decode_cells(*bank, self._bases[t], self.layout.universe)
        # deepest level first: the sparsest view of the cut
        for _, index, _ in sorted(found, key=lambda f: (-f[0][0], f[1])):
            edge = Edge.from_index(index)
            inside_u = uf.find(edge.u) == root
            inside_v = uf.find(edge.v) == root
            if inside_u != inside_v:
                return edge
        return None

    def spanning_forest(self) -> ForestResult:
        """Recover a spanning forest of the live graph."""
        uf = UnionFind(self.vertex_count)
        forest: list[Edge] = []
        complete = False
        rounds_used = 0

        for t in range(self.layout.rounds):
            open_banks = self._open_components(uf, t)
            if not open_banks:
                complete = True
                break
            rounds_used = t + 1
            pending = []
            for root, bank in open_banks.items():
                edge = self._cut_edge(bank, t, uf, root)
                if edge is not None:
                    pending.append(edge)
            for edge in pending:
                if uf.union(edge.u, edge.v):
                    forest.append(edge)

        if not complete:
            complete = not self._open_components(uf, 0)
            if not complete:
                logger.warning(
                    "Spanning forest incomplete after %d rounds (%d components open)",
                    self.layout.rounds, uf.count,
                )

        return ForestResult(
            value=uf.count,
            edges=sorted(forest),
            vertex_count=self.vertex_count,
            confidence=self.success_probability,
            components=uf.components(),
            complete=complete,
            rounds_used=rounds_used,
        )

    @property
    def success_probability(self) -> float:
        if self.vertex_count < 2:
            return 1.0
        return 1.0 - 1.0 / self.vertex_count

    def query(self) -> ForestResult:
        """Spanning forest and component count; non-destructive."""
        self._mark_queried()
        result = self.spanning_forest()
        logger.debug(
            "Connectivity query: %d components, %d forest edges, complete=%s",
            result.component_count, result.edge_count, result.complete,
        )
        return result

    def has_edges(self) -> bool:
        """Whether any edge is live: only then can a vertex bank be non-zero."""
        return not self.is_zero()
