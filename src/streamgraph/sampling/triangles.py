"""
Triangle counting from a reservoir of edges.

Each repetition keeps a uniform reservoir of M edges (TRIEST-IMPR). When
edge {u, v} arrives as the t-th edge, every common neighbour of u and v
in the current sample closes a triangle; the counter grows by

    eta_t = max(1, (t - 1)(t - 2) / (M (M - 1)))

which is the inverse probability that both other edges of the triangle
are in the sample. The counter is therefore an unbiased estimate of the
number of triangles, and the reservoir is updated only after counting.

Independent repetitions give the mean as the estimate and their spread
as the variance.
"""

import logging
from collections import Counter, defaultdict
from typing import Optional

import numpy as np

from ..graph.edges import Edge, Update
from ..hashing.families import derive_seed
from ..hashing.sampling import ReservoirSampler
from ..results import ProbabilisticResult, normal_error_bound
from ..algorithms.base import StreamingAlgorithm

logger = logging.getLogger(__name__)


class _TriestCounter:
    """One TRIEST-IMPR repetition: reservoir, sample adjacency, counters."""

    def __init__(self, capacity: int, seed: int):
        if capacity < 2:
            raise ValueError(f"Triangle reservoir needs at least 2 edges, got {capacity}")
        self.capacity = capacity
        self.reservoir: ReservoirSampler[Edge] = ReservoirSampler(capacity, seed=seed)
        self.adjacency: dict[int, set[int]] = defaultdict(set)
        # sampled copies per edge; adjacency holds while any copy remains
        self.copies: Counter = Counter()
        self.global_count = 0.0
        self.local_counts: dict[int, float] = defaultdict(float)

    def weight(self, t: int) -> float:
        M = self.capacity
        return max(1.0, (t - 1) * (t - 2) / (M * (M - 1)))

    def insert(self, edge: Edge):
        t = self.reservoir.seen + 1
        u, v = edge.u, edge.v
        shared = self.adjacency[u] & self.adjacency[v]
        if shared:
            eta = self.weight(t)
            self.global_count += eta * len(shared)
            self.local_counts[u] += eta * len(shared)
            self.local_counts[v] += eta * len(shared)
            for w in shared:
                self.local_counts[w] += eta

        returned = self.reservoir.add(edge)
        if returned is edge:
            return
        if returned is not None:
            self._unlink(returned)
        self.copies[edge.endpoints] += 1
        self.adjacency[u].add(v)
        self.adjacency[v].add(u)

    def _unlink(self, edge: Edge):
        key = edge.endpoints
        self.copies[key] -= 1
        if self.copies[key] > 0:
            return
        del self.copies[key]
        self.adjacency[edge.u].discard(edge.v)
        self.adjacency[edge.v].discard(edge.u)


class TriangleEstimator(StreamingAlgorithm):
    """
    Unbiased triangle-count estimate in ``O(repetitions * capacity)`` space.

    Insertion-only. Exact while the stream has at most ``capacity`` edges.
    """

    insertion_only = True
    requires_full_stream = False

    def __init__(
        self,
        vertex_count: int,
        capacity: int = 1000,
        repetitions: int = 8,
        seed: int = 42,
        confidence: float = 0.95,
    ):
        super().__init__(vertex_count)
        if repetitions < 1:
            raise ValueError(f"repetitions must be positive, got {repetitions}")
        self.capacity = capacity
        self.repetitions = repetitions
        self.seed = seed
        self.confidence = confidence
        self._counters = [
            _TriestCounter(capacity, derive_seed(seed, "triest", r)) for r in range(repetitions)
        ]

    def _apply(self, update: Update):
        for counter in self._counters:
            counter.insert(update.edge)

    @property
    def edges_seen(self) -> int:
        return self._counters[0].reservoir.seen

    def estimates(self) -> np.ndarray:
        return np.array([c.global_count for c in self._counters])

    def local_estimate(self, v: int) -> float:
        """Estimated number of triangles through vertex ``v``."""
        return float(np.mean([c.local_counts.get(v, 0.0) for c in self._counters]))

    def _query(self) -> ProbabilisticResult:
        values = self.estimates()
        mean = float(values.mean())
        exact = self.edges_seen <= self.capacity
        variance: Optional[float] = None
        bound = 0.0
        if not exact and self.repetitions > 1:
            variance = float(values.var(ddof=1) / self.repetitions)
            bound = normal_error_bound(variance ** 0.5, self.confidence)
        elif exact:
            variance = 0.0

        logger.debug(
            "Triangle estimate %.1f +- %.1f from %d repetitions over %d edges",
            mean, bound, self.repetitions, self.edges_seen,
        )
        return ProbabilisticResult(
            value=mean,
            confidence=1.0 if exact else self.confidence,
            error_bound=bound,
            variance=variance,
            details={
                "edges_seen": self.edges_seen,
                "capacity": self.capacity,
                "repetitions": self.repetitions,
                "exact": exact,
            },
        )
