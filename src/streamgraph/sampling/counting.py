"""
Approximate counters.

MorrisCounter counts events in O(log log n) bits per copy: the register
X goes up with probability 2^-X and ``2^X - 1`` is unbiased. Averaging
independent copies divides the variance ``n(n-1)/2`` by their number.

DistinctCounter keeps the k smallest hash values (KMV) of the items seen;
with h_k the k-th smallest in (0, 1), ``(k - 1) / h_k`` estimates the
number of distinct items with relative standard error about
``1 / sqrt(k - 2)``. Two KMV sketches with the same seed merge by keeping
the k smallest of their union.
"""

import heapq
import logging
from typing import Union

import numpy as np

from ..errors import IncompatibleMergeError
from ..graph.edges import Edge
from ..hashing.families import KWiseHash, derive_rng, derive_seed
from ..results import ProbabilisticResult, normal_error_bound

logger = logging.getLogger(__name__)


class MorrisCounter:
    def __init__(self, copies: int = 32, seed: int = 42, confidence: float = 0.95):
        if copies < 1:
            raise ValueError(f"copies must be positive, got {copies}")
        self.copies = copies
        self.seed = seed
        self.confidence = confidence
        self.registers = np.zeros(copies, dtype=np.int64)
        self._rng = derive_rng(seed, "morris")

    def increment(self, times: int = 1):
        for _ in range(times):
            draws = self._rng.random(self.copies)
            self.registers += draws < np.exp2(-self.registers.astype(float))

    def estimate(self) -> float:
        return float(np.mean(np.exp2(self.registers) - 1))

    def query(self) -> ProbabilisticResult:
        n = self.estimate()
        variance = n * max(n - 1, 0) / 2 / self.copies
        return ProbabilisticResult(
            value=n,
            confidence=self.confidence,
            error_bound=normal_error_bound(variance ** 0.5, self.confidence),
            variance=variance,
            details={"copies": self.copies, "max_register": int(self.registers.max())},
        )


class DistinctCounter:
    """KMV distinct-element counter over integers or edges."""

    def __init__(self, k: int = 256, seed: int = 42, confidence: float = 0.95):
        if k < 3:
            raise ValueError(f"KMV needs k >= 3, got {k}")
        self.k = k
        self.seed = seed
        self.confidence = confidence
        self._hash = KWiseHash(k=2, seed=derive_seed(seed, "kmv"))
        # max-heap of the k smallest hash values, stored negated
        self._heap: list[float] = []
        self._kept: set[float] = set()

    def add(self, item: Union[int, Edge]):
        key = item.index if isinstance(item, Edge) else int(item)
        h = self._hash.unit(key)
        if h in self._kept:
            return
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, -h)
            self._kept.add(h)
        elif h < -self._heap[0]:
            dropped = -heapq.heapreplace(self._heap, -h)
            self._kept.discard(dropped)
            self._kept.add(h)

    def merge(self, other: "DistinctCounter") -> "DistinctCounter":
        if (self.k, self._hash) != (other.k, other._hash):
            raise IncompatibleMergeError("KMV counters differ in k or seed")
        merged = DistinctCounter(self.k, self.seed, self.confidence)
        for h in sorted(self._kept | other._kept)[: self.k]:
            heapq.heappush(merged._heap, -h)
            merged._kept.add(h)
        return merged

    def estimate(self) -> float:
        if len(self._heap) < self.k:
            return float(len(self._heap))
        return (self.k - 1) / -self._heap[0]

    def query(self) -> ProbabilisticResult:
        n = self.estimate()
        if len(self._heap) < self.k:
            return ProbabilisticResult(value=n, variance=0.0, details={"exact": True})
        std = n / (self.k - 2) ** 0.5
        return ProbabilisticResult(
            value=n,
            confidence=self.confidence,
            error_bound=normal_error_bound(std, self.confidence),
            variance=std ** 2,
            details={"exact": False, "k": self.k},
        )

    def __len__(self) -> int:
        return len(self._heap)
