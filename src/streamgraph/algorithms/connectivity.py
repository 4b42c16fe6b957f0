"""
Streaming connectivity and spanning forest.

One pass over a turnstile stream into a ConnectivitySketch, then Borůvka
reconstruction at query time. The forest's edge set gives the number of
connected components directly.
"""

import logging
from typing import Optional

from ..config import DEFAULT_BUCKETS
from ..graph.edges import Update
from ..results import ForestResult
from ..sketches.connectivity import ConnectivitySketch
from .base import StreamingAlgorithm

logger = logging.getLogger(__name__)


class StreamingConnectivity(StreamingAlgorithm):
    """
    Spanning forest / connected components in O(n log^2 n) space.

    Correct with probability at least ``1 - 1/n`` over the seed.
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
        self.sketch = ConnectivitySketch(
            vertex_count, space_budget=space_budget, seed=seed, rounds=rounds, buckets=buckets
        )

    def _apply(self, update: Update):
        self.sketch.update(update)

    def _query(self) -> ForestResult:
        return self.sketch.query()

    def merge(self, other: "StreamingConnectivity") -> "StreamingConnectivity":
        """Combine with an instance that consumed another part of the stream."""
        merged = object.__new__(StreamingConnectivity)
        merged.__dict__.update(self.__dict__)
        merged.sketch = self.sketch.merge(other.sketch)
        merged.processed = self.processed + other.processed
        merged.exhausted = self.exhausted and other.exhausted
        return merged

    def component_count(self, allow_partial: bool = False) -> int:
        return self.query(allow_partial=allow_partial).component_count

    def connected(self, a: int, b: int, allow_partial: bool = False) -> bool:
        return self.query(allow_partial=allow_partial).connected(a, b)
