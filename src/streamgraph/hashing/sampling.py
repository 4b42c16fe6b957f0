"""
Uniform and weighted stream samplers.

ReservoirSampler keeps a uniform sample of fixed size (Algorithm R,
O(1) work per item). PrioritySampler keeps the k items with the largest
priority w/u, u ~ U(0, 1], and yields unbiased subset-sum estimates
(O(log k) per item).
"""

import heapq
import itertools
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar

import numpy as np

from .families import derive_rng

T = TypeVar("T")


class ReservoirSampler(Generic[T]):
    """Uniform fixed-size sample of a stream of unknown length."""

    def __init__(self, capacity: int, seed: int = 42):
        if capacity < 1:
            raise ValueError(f"Reservoir capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.seed = seed
        self.seen = 0
        self._items: list[T] = []
        self._rng = derive_rng(seed, "reservoir")

    def add(self, item: T) -> Optional[T]:
        """
        Offer an item to the reservoir.

        Returns the evicted item when the new one displaces a sampled
        item, the new item itself when it is rejected, and None while
        the reservoir is still filling.
        """
        self.seen += 1
        if len(self._items) < self.capacity:
            self._items.append(item)
            return None
        slot = int(self._rng.integers(0, self.seen))
        if slot < self.capacity:
            evicted = self._items[slot]
            self._items[slot] = item
            return evicted
        return item

    def extend(self, items: Iterable[T]):
        for item in items:
            self.add(item)

    def sample(self) -> list[T]:
        return list(self._items)

    @property
    def inclusion_probability(self) -> float:
        """Probability that any given item seen so far is in the sample."""
        if self.seen == 0:
            return 0.0
        return min(1.0, self.capacity / self.seen)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __contains__(self, item) -> bool:
        return item in self._items


@dataclass(frozen=True)
class WeightedItem:
    """An item kept by priority sampling with its adjusted weight."""
    item: Any
    weight: float
    adjusted_weight: float


class PrioritySampler:
    """
    Priority sampling (Duffield, Lund, Thorup).

    Each item gets priority ``w / u``. The sampler keeps the k items of
    highest priority; with threshold tau the (k+1)-th largest priority,
    ``max(w, tau)`` is an unbiased estimate of each kept item's weight
    contribution.
    """

    def __init__(self, capacity: int, seed: int = 42):
        if capacity < 1:
            raise ValueError(f"Sample capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.seed = seed
        self.seen = 0
        self.total_weight = 0.0
        # min-heap of (priority, tiebreak, item, weight); holds up to k+1 entries
        self._heap: list[tuple] = []
        self._counter = itertools.count()
        self._rng = derive_rng(seed, "priority")

    def add(self, item: Any, weight: float = 1.0):
        if weight <= 0:
            raise ValueError(f"Priority sampling needs positive weights, got {weight}")
        self.seen += 1
        self.total_weight += weight
        u = 1.0 - float(self._rng.random())  # in (0, 1]
        entry = (weight / u, next(self._counter), item, weight)
        if len(self._heap) <= self.capacity:
            heapq.heappush(self._heap, entry)
        elif entry[0] > self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)

    @property
    def threshold(self) -> float:
        """The (k+1)-th largest priority, or 0 while fewer than k+1 items were seen."""
        if len(self._heap) <= self.capacity:
            return 0.0
        return self._heap[0][0]

    def sample(self) -> list[WeightedItem]:
        tau = self.threshold
        kept = self._heap[1:] if len(self._heap) > self.capacity else self._heap
        ordered = sorted(kept, key=lambda e: e[0], reverse=True)
        return [
            WeightedItem(item=e[2], weight=e[3], adjusted_weight=max(e[3], tau))
            for e in ordered
        ]

    def estimate_total(self, predicate: Optional[Callable[[Any], bool]] = None) -> float:
        """Unbiased estimate of the total weight of items matching ``predicate``."""
        return float(sum(
            s.adjusted_weight for s in self.sample()
            if predicate is None or predicate(s.item)
        ))

    def __len__(self) -> int:
        return min(len(self._heap), self.capacity)


def inclusion_frequencies(
    population: int, capacity: int, trials: int, seed: int = 0
) -> np.ndarray:
    """
    Empirical inclusion frequency of each of ``population`` items over
    repeated reservoir runs. Used to check uniformity.
    """
    counts = np.zeros(population, dtype=np.int64)
    for t in range(trials):
        sampler = ReservoirSampler(capacity, seed=seed + t)
        sampler.extend(range(population))
        counts[sampler.sample()] += 1
    return counts / trials
