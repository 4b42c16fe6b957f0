"""
L0 sampling.

Returns a (near) uniformly random non-zero coordinate of a turnstile
vector. Each repetition subsamples the universe at geometric rates
1, 1/2, 1/4, ... and spreads every level over a few 1-sparse cells; at
the level where about one coordinate survives, some cell isolates it.
Among everything a repetition decodes, the coordinate with the smallest
level-hash value is returned, which makes the choice close to min-wise
uniform. Repetitions use independent hash functions and drive the
failure probability below ``delta``.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..config import DEFAULT_BUCKETS, level_count
from ..errors import InputError
from ..hashing.families import KWiseHash, derive_seed
from .base import LinearSketch
from .sparse_recovery import (
    apply_update,
    check_universe,
    decode_cells,
    empty_bank,
    fingerprint_term,
    merge_banks,
    random_base,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class L0Sample:
    index: int
    value: int


class L0Sampler(LinearSketch):
    """
    L0 sampler over a universe of ``universe`` coordinates.

    Space: ``repetitions x levels x buckets`` cells, with
    ``repetitions = ceil(log2(1/delta))`` and ``levels ~ log2(universe)``.
    """

    def __init__(
        self,
        universe: int,
        delta: float = 0.01,
        seed: int = 42,
        buckets: int = DEFAULT_BUCKETS,
    ):
        super().__init__()
        check_universe(universe)
        if not 0 < delta < 1:
            raise ValueError(f"delta must lie in (0, 1), got {delta}")
        self.universe = universe
        self.delta = delta
        self.seed = seed
        self.buckets = buckets
        self.repetitions = max(1, math.ceil(math.log2(1 / delta)))
        self.levels = level_count(universe)

        self._level_hashes = [
            KWiseHash(k=2, seed=derive_seed(seed, "l0-level", r)) for r in range(self.repetitions)
        ]
        self._bucket_hashes = [
            KWiseHash(k=2, seed=derive_seed(seed, "l0-bucket", r)) for r in range(self.repetitions)
        ]
        self._bases = [random_base(seed, "l0", r) for r in range(self.repetitions)]
        shape = (self.repetitions, self.levels, self.buckets)
        self._count, self._index_sum, self._fingerprint = empty_bank(shape)

        logger.debug(
            "L0Sampler universe=%d repetitions=%d levels=%d buckets=%d",
            universe, self.repetitions, self.levels, buckets,
        )

    @property
    def failure_probability(self) -> float:
        return self.delta

    def params(self) -> tuple:
        return ("l0", self.universe, self.delta, self.seed, self.buckets)

    def _arrays(self) -> dict[str, np.ndarray]:
        return {
            "_count": self._count,
            "_index_sum": self._index_sum,
            "_fingerprint": self._fingerprint,
        }

    def update(self, index: int, delta: int = 1):
        if not 0 <= index < self.universe:
            raise InputError(f"Coordinate {index} outside universe of {self.universe}")
        top = self.levels - 1
        for r in range(self.repetitions):
            level = self._level_hashes[r].level(index, top)
            bucket = self._bucket_hashes[r].bucket(index, self.buckets)
            term = fingerprint_term(self._bases[r], index, delta)
            where = (r, slice(0, level + 1), bucket)
            apply_update(self._count, self._index_sum, self._fingerprint, where, index, delta, term)
        self._touch()

    def merge(self, other: "L0Sampler") -> "L0Sampler":
        self.check_compatible(other)
        merged = self.copy()
        merged._count, merged._index_sum, merged._fingerprint = merge_banks(
            (self._count, self._index_sum, self._fingerprint),
            (other._count, other._index_sum, other._fingerprint),
        )
        merged.updates = self.updates + other.updates
        return merged

    def query(self) -> Optional[L0Sample]:
        """
        A surviving coordinate and its value.

        None when the vector is zero, or (with probability at most delta)
        when every repetition failed to isolate a coordinate.
        """
        self._mark_queried()
        for r in range(self.repetitions):
            found = decode_cells(
                self._count[r], self._index_sum[r], self._fingerprint[r],
                self._bases[r], self.universe,
            )
            if found:
                h = self._level_hashes[r]
                _, index, value = min(found, key=lambda f: (h(f[1]), f[1]))
                return L0Sample(index=index, value=value)
        if not self.is_zero():
            logger.debug("L0Sampler: no repetition isolated a coordinate")
        return None

    def has_survivor(self) -> bool:
        """Whether any coordinate is non-zero (level 0 holds the whole vector)."""
        return bool(
            self._count[:, 0].any() or self._index_sum[:, 0].any() or self._fingerprint[:, 0].any()
        )
