"""
Degree estimation from edge samples.

A uniform reservoir of M edges out of t seen contains each edge with
probability M / t, so ``c_v * t / M`` (c_v = sampled edges at v) is an
unbiased estimate of deg(v). A priority sample over the same stream,
keyed by edge weight, estimates weighted degrees (vertex strength) the
same way through subset sums. The average degree is exact: it only needs
the edge count.
"""

import logging
from collections import Counter

from ..graph.edges import Update
from ..hashing.families import derive_seed
from ..hashing.sampling import PrioritySampler, ReservoirSampler
from ..results import ExactResult, ProbabilisticResult, normal_error_bound
from ..algorithms.base import StreamingAlgorithm

logger = logging.getLogger(__name__)


class DegreeEstimator(StreamingAlgorithm):
    """Per-vertex degree and strength estimates, exact average degree."""

    insertion_only = True
    requires_full_stream = False

    def __init__(self, vertex_count: int, capacity: int = 1000, seed: int = 42,
                 confidence: float = 0.95):
        super().__init__(vertex_count)
        self.capacity = capacity
        self.seed = seed
        self.confidence = confidence
        self.edges = 0
        self.reservoir = ReservoirSampler(capacity, seed=derive_seed(seed, "degrees"))
        self.weighted = PrioritySampler(capacity, seed=derive_seed(seed, "strength"))

    def _apply(self, update: Update):
        self.edges += 1
        self.reservoir.add(update.edge)
        weight = update.edge.weight if update.edge.weight is not None else 1.0
        self.weighted.add(update.edge, weight)

    def _sampled_degrees(self) -> Counter:
        counts: Counter = Counter()
        for e in self.reservoir:
            counts[e.u] += 1
            counts[e.v] += 1
        return counts

    def degree(self, v: int) -> ProbabilisticResult:
        """Unbiased estimate of deg(v)."""
        sampled = self._sampled_degrees()[v]
        if self.edges <= self.capacity:
            return ProbabilisticResult(value=float(sampled), variance=0.0,
                                       details={"vertex": v, "exact": True})
        p = self.capacity / self.edges
        estimate = sampled / p
        # binomial approximation of the hypergeometric inclusion count
        variance = estimate * (1 - p) / p
        return ProbabilisticResult(
            value=estimate,
            confidence=self.confidence,
            error_bound=normal_error_bound(variance ** 0.5, self.confidence),
            variance=variance,
            details={"vertex": v, "exact": False, "sampled": sampled},
        )

    def strength(self, v: int) -> float:
        """Estimated total weight of the edges at ``v``."""
        return self.weighted.estimate_total(lambda e: v in e.endpoints)

    def top(self, k: int) -> list[tuple[int, float]]:
        """The ``k`` vertices with the largest estimated degree."""
        scale = max(1.0, self.edges / self.capacity)
        return [(v, c * scale) for v, c in self._sampled_degrees().most_common(k)]

    def average_degree(self) -> float:
        if self.vertex_count == 0:
            return 0.0
        return 2.0 * self.edges / self.vertex_count

    def _query(self) -> ExactResult:
        logger.debug("Degree query over %d edges", self.edges)
        return ExactResult(
            value=self.average_degree(),
            details={"edges": self.edges, "top": self.top(5)},
        )
