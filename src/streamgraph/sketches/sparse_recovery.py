"""
Sparse recovery over a turnstile vector.

A 1-sparse cell keeps three linear fingerprints of the vector f it sees:

    count       = sum_i f_i
    index_sum   = sum_i f_i * i
    fingerprint = sum_i f_i * r^i   (mod p)

If f has a single non-zero coordinate i with value c, then
``index_sum / count == i`` and ``fingerprint == c * r^i``. A vector with
two or more non-zero coordinates passes that test only if r is a root of
a non-zero polynomial of degree below the universe size, which happens
with probability at most universe / p.

Cells are stored in numpy int64 arrays so that whole banks of them can be
updated, merged and summed at once. The connectivity sketch and the L0
sampler are built from the helpers in this module.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from ..errors import CapacityError, InputError
from ..hashing.families import KWiseHash, derive_rng, derive_seed
from ..hashing.field import MERSENNE_61
from .base import LinearSketch

logger = logging.getLogger(__name__)

MODULUS = MERSENNE_61
# Largest coordinate universe whose index sums stay well inside int64
MAX_UNIVERSE = 1 << 40


class RecoveryStatus(str, Enum):
    ZERO = "zero"
    ONE_SPARSE = "one_sparse"
    NOT_ONE_SPARSE = "not_one_sparse"


@dataclass(frozen=True)
class Recovery:
    """Outcome of decoding one cell."""
    status: RecoveryStatus
    index: Optional[int] = None
    value: Optional[int] = None


ZERO = Recovery(RecoveryStatus.ZERO)
NOT_ONE_SPARSE = Recovery(RecoveryStatus.NOT_ONE_SPARSE)


def check_universe(universe: int):
    if universe < 0:
        raise CapacityError(f"Universe size must be non-negative, got {universe}")
    if universe > MAX_UNIVERSE:
        raise CapacityError(
            f"Universe of {universe} coordinates exceeds the supported {MAX_UNIVERSE}"
        )


def random_base(seed: int, *keys) -> int:
    """Fingerprint evaluation point r, uniform in [1, p)."""
    return int(derive_rng(seed, "base", *keys).integers(1, MODULUS, dtype=np.int64))


def fingerprint_term(base: int, index: int, delta: int) -> int:
    """``delta * base^index`` reduced into [0, p)."""
    return (delta * pow(base, index, MODULUS)) % MODULUS


def apply_update(count, index_sum, fingerprint, where, index: int, delta: int, term: int):
    """Add ``delta`` at coordinate ``index`` to every cell selected by ``where``."""
    count[where] += delta
    index_sum[where] += delta * index
    fingerprint[where] = (fingerprint[where] + term) % MODULUS


def decode_cell(count: int, index_sum: int, fingerprint: int, base: int, universe: int) -> Recovery:
    if count == 0:
        if index_sum == 0 and fingerprint == 0:
            return ZERO
        return NOT_ONE_SPARSE
    if index_sum % count != 0:
        return NOT_ONE_SPARSE
    index = index_sum // count
    if not 0 <= index < universe:
        return NOT_ONE_SPARSE
    if (count % MODULUS) * pow(base, index, MODULUS) % MODULUS != fingerprint:
        return NOT_ONE_SPARSE
    return Recovery(RecoveryStatus.ONE_SPARSE, index=index, value=count)


def decode_cells(count, index_sum, fingerprint, base: int, universe: int) -> list[tuple]:
    """
    Decode every non-empty cell of a bank.

    Returns ``(position, index, value)`` for each cell that holds exactly
    one coordinate.
    """
    found = []
    for pos in np.argwhere(count != 0):
        pos = tuple(int(p) for p in pos)
        rec = decode_cell(
            int(count[pos]), int(index_sum[pos]), int(fingerprint[pos]), base, universe
        )
        if rec.status is RecoveryStatus.ONE_SPARSE:
            found.append((pos, rec.index, rec.value))
    return found


def empty_bank(shape) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    return (
        np.zeros(shape, dtype=np.int64),
        np.zeros(shape, dtype=np.int64),
        np.zeros(shape, dtype=np.int64),
    )


def merge_banks(a: tuple, b: tuple) -> tuple:
    return (a[0] + b[0], a[1] + b[1], (a[2] + b[2]) % MODULUS)


class OneSparseRecovery(LinearSketch):
    """
    Detects whether a turnstile vector is zero, 1-sparse or neither.

    False positive (a denser vector decoded as 1-sparse) probability is at
    most ``universe / 2^61``.
    """

    def __init__(self, universe: int, seed: int = 42):
        super().__init__()
        check_universe(universe)
        self.universe = universe
        self.seed = seed
        self.base = random_base(seed, "one-sparse")
        self._count, self._index_sum, self._fingerprint = empty_bank(())

    def params(self) -> tuple:
        return ("one-sparse", self.universe, self.seed)

    def _arrays(self) -> dict[str, np.ndarray]:
        return {
            "_count": self._count,
            "_index_sum": self._index_sum,
            "_fingerprint": self._fingerprint,
        }

    def update(self, index: int, delta: int = 1):
        if not 0 <= index < self.universe:
            raise InputError(f"Coordinate {index} outside universe of {self.universe}")
        term = fingerprint_term(self.base, index, delta)
        apply_update(self._count, self._index_sum, self._fingerprint, (), index, delta, term)
        self._touch()

    def merge(self, other: "OneSparseRecovery") -> "OneSparseRecovery":
        self.check_compatible(other)
        merged = self.copy()
        merged._count, merged._index_sum, merged._fingerprint = merge_banks(
            (self._count, self._index_sum, self._fingerprint),
            (other._count, other._index_sum, other._fingerprint),
        )
        merged.updates = self.updates + other.updates
        return merged

    def query(self) -> Recovery:
        self._mark_queried()
        return decode_cell(
            int(self._count), int(self._index_sum), int(self._fingerprint),
            self.base, self.universe,
        )


class SparseRecovery(LinearSketch):
    """
    Recovers a turnstile vector exactly when it has at most ``sparsity``
    non-zero coordinates.

    Layout: ``rows = ceil(log2(s / delta))`` independent hash rows, each of
    ``2s`` 1-sparse cells. Every coordinate of an s-sparse vector is
    isolated in some row with probability at least ``1 - delta``. A
    decoded vector is accepted only if it reproduces every cell, so a
    denser vector is reported as ``None`` rather than truncated.
    """

    def __init__(self, universe: int, sparsity: int, delta: float = 0.01, seed: int = 42):
        super().__init__()
        check_universe(universe)
        if sparsity < 1:
            raise CapacityError(f"Sparsity must be positive, got {sparsity}")
        if not 0 < delta < 1:
            raise ValueError(f"delta must lie in (0, 1), got {delta}")
        self.universe = universe
        self.sparsity = sparsity
        self.delta = delta
        self.seed = seed

        self.rows = max(1, math.ceil(math.log2(sparsity / delta)))
        self.width = 2 * sparsity
        self._hashes = [
            KWiseHash(k=2, seed=derive_seed(seed, "sparse-row", i)) for i in range(self.rows)
        ]
        self._bases = [random_base(seed, "sparse-row", i) for i in range(self.rows)]
        self._count, self._index_sum, self._fingerprint = empty_bank((self.rows, self.width))

        logger.debug(
            "SparseRecovery universe=%d s=%d rows=%d width=%d",
            universe, sparsity, self.rows, self.width,
        )

    def params(self) -> tuple:
        return ("s-sparse", self.universe, self.sparsity, self.delta, self.seed)

    def _arrays(self) -> dict[str, np.ndarray]:
        return {
            "_count": self._count,
            "_index_sum": self._index_sum,
            "_fingerprint": self._fingerprint,
        }

    def update(self, index: int, delta: int = 1):
        if not 0 <= index < self.universe:
            raise InputError(f"Coordinate {index} outside universe of {self.universe}")
        for row, (h, base) in enumerate(zip(self._hashes, self._bases)):
            where = (row, h.bucket(index, self.width))
            term = fingerprint_term(base, index, delta)
            apply_update(self._count, self._index_sum, self._fingerprint, where, index, delta, term)
        self._touch()

    def merge(self, other: "SparseRecovery") -> "SparseRecovery":
        self.check_compatible(other)
        merged = self.copy()
        merged._count, merged._index_sum, merged._fingerprint = merge_banks(
            (self._count, self._index_sum, self._fingerprint),
            (other._count, other._index_sum, other._fingerprint),
        )
        merged.updates = self.updates + other.updates
        return merged

    def query(self) -> Optional[dict[int, int]]:
        """The non-zero coordinates as ``{index: value}``, or None if not s-sparse."""
        self._mark_queried()
        recovered: dict[int, int] = {}
        for row, base in enumerate(self._bases):
            cells = decode_cells(
                self._count[row], self._index_sum[row], self._fingerprint[row],
                base, self.universe,
            )
            for _, index, value in cells:
                if recovered.get(index, value) != value:
                    return None
                recovered[index] = value
                if len(recovered) > self.sparsity:
                    return None

        if not self._explains(recovered):
            return None
        return recovered

    def _explains(self, recovered: dict[int, int]) -> bool:
        """Check that ``recovered`` reproduces every cell of the sketch."""
        expected = empty_bank((self.rows, self.width))
        for index, value in recovered.items():
            for row, (h, base) in enumerate(zip(self._hashes, self._bases)):
                where = (row, h.bucket(index, self.width))
                apply_update(*expected, where, index, value, fingerprint_term(base, index, value))
        return (
            np.array_equal(expected[0], self._count)
            and np.array_equal(expected[1], self._index_sum)
            and np.array_equal(expected[2], self._fingerprint)
        )
