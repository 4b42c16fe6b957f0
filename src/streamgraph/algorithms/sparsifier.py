"""
Streaming cut sparsifier.

Level i keeps every edge whose sampling hash puts it at depth >= i, i.e.
a nested subsample G_i of G at rate 2^-i. For each level the stream feeds
k independently seeded connectivity sketches. At query time a
k-edge-connectivity certificate H_i of G_i is peeled off them: the first
sketch yields a spanning forest F_1, its edges are deleted from the
second sketch (linearity), which then yields F_2, and so on; H_i is the
union F_1 + ... + F_k.

An edge gets weight 2^i at the first level i where it belongs to H_i and
its endpoints are less than k-edge-connected in H_i. With
``k = O(log n / eps^2)`` every cut of the weighted result is within
(1 +- eps) of the true cut, with high probability.
"""

import logging
import math
from typing import Iterable, Optional

import networkx as nx

from ..config import DEFAULT_BUCKETS, SketchConfig, level_count
from ..errors import CapacityError
from ..graph.edges import Edge, Sign, Update, universe_size
from ..hashing.families import KWiseHash, derive_seed
from ..results import ProbabilisticResult, StructureResult
from ..sketches.connectivity import ConnectivitySketch
from .base import StreamingAlgorithm

logger = logging.getLogger(__name__)


def default_connectivity(vertex_count: int, epsilon: float) -> int:
    return max(2, math.ceil(math.log2(max(vertex_count, 2)) / epsilon ** 2))


class CutSparsifier(StreamingAlgorithm):
    """
    (1 +- eps) cut sparsifier from ``levels x k`` connectivity sketches.

    ``connectivity`` (k) may be given directly; otherwise it is derived
    from ``epsilon``. ``levels`` defaults to log2 of the edge universe.
    ``space_budget`` bounds the counters of all ``levels x k`` sketches
    together and is checked before any of them is allocated.
    """

    def __init__(
        self,
        vertex_count: int,
        epsilon: float = 0.5,
        seed: int = 42,
        connectivity: Optional[int] = None,
        levels: Optional[int] = None,
        rounds: Optional[int] = None,
        buckets: int = DEFAULT_BUCKETS,
        space_budget: Optional[int] = None,
    ):
        super().__init__(vertex_count)
        if not 0 < epsilon < 1:
            raise ValueError(f"epsilon must lie in (0, 1), got {epsilon}")
        self.epsilon = epsilon
        self.seed = seed
        self.k = connectivity or default_connectivity(vertex_count, epsilon)
        self.levels = levels or level_count(universe_size(vertex_count))
        self._sampler = KWiseHash(k=2, seed=derive_seed(seed, "sparsifier-level"))
        config = SketchConfig(seed=seed, rounds=rounds, buckets=buckets)
        self.counters = self.levels * self.k * config.layout(vertex_count).counters
        if space_budget is not None and self.counters > space_budget:
            raise CapacityError(
                f"Sparsifier for {vertex_count} vertices needs {self.counters} counters "
                f"({self.levels} levels x k={self.k}), budget is {space_budget}"
            )
        self._sketches = [
            [
                ConnectivitySketch(
                    vertex_count,
                    **config.with_seed(derive_seed(seed, "sparsifier", i, j)).sketch_kwargs(),
                )
                for j in range(self.k)
            ]
            for i in range(self.levels)
        ]
        logger.debug(
            "CutSparsifier n=%d eps=%.3f k=%d levels=%d",
            vertex_count, epsilon, self.k, self.levels,
        )

    def edge_level(self, edge: Edge) -> int:
        """Deepest subsampling level that still contains ``edge``."""
        return self._sampler.level(edge.index, self.levels - 1)

    def _apply(self, update: Update):
        for i in range(self.edge_level(update.edge) + 1):
            for sketch in self._sketches[i]:
                sketch.update(update)

    def certificate(self, level: int) -> nx.Graph:
        """k-edge-connectivity certificate of the level's subsample."""
        H = nx.Graph()
        H.add_nodes_from(range(self.vertex_count))
        for sketch in self._sketches[level]:
            working = sketch.copy()
            for u, v in H.edges():
                working.update(u, v, Sign.DELETE)
            forest = working.spanning_forest()
            if not forest.edges:
                break
            H.add_edges_from(e.endpoints for e in forest.edges)
        return H

    def _query(self) -> StructureResult:
        weights: dict[tuple[int, int], float] = {}
        for i in range(self.levels):
            H = self.certificate(i)
            if H.number_of_edges() == 0:
                break
            for u, v in H.edges():
                key = (min(u, v), max(u, v))
                if key in weights:
                    continue
                if nx.edge_connectivity(H, u, v, cutoff=self.k) < self.k:
                    weights[key] = float(2 ** i)

        edges = [Edge(u, v, w) for (u, v), w in sorted(weights.items())]
        logger.debug("Sparsifier kept %d weighted edges", len(edges))
        return StructureResult(
            value=len(edges),
            edges=edges,
            vertex_count=self.vertex_count,
            confidence=1.0 - 1.0 / max(self.vertex_count, 2),
            details={"epsilon": self.epsilon, "k": self.k, "levels": self.levels},
        )

    def cut_value(self, side: Iterable[int], allow_partial: bool = False) -> ProbabilisticResult:
        """Estimated weight of the cut between ``side`` and the other vertices."""
        result = self.query(allow_partial=allow_partial)
        inside = set(side)
        value = sum(
            e.weight for e in result.edges if (e.u in inside) != (e.v in inside)
        )
        return ProbabilisticResult(
            value=value,
            confidence=result.confidence,
            error_bound=self.epsilon * value,
            details={"side": sorted(inside)},
        )
