"""
k-wise independent hash families.

A function from the family is a random polynomial of degree k-1 over
GF(p); any k distinct keys below p hash independently and uniformly.
Coefficients come from a numpy Generator seeded explicitly, so two
sketches built with the same seed share the same functions, which is
what makes independently built sketches mergeable and tests
reproducible. There is no module-level random state.
"""

from typing import Hashable

import numpy as np

from .field import MERSENNE_61, PrimeField


def derive_rng(seed: int, *keys: Hashable) -> np.random.Generator:
    """
    Deterministic child generator for ``seed`` and a path of keys.

    ``derive_rng(7, "round", 3)`` always yields the same stream and is
    independent of ``derive_rng(7, "round", 4)``.
    """
    entropy = [int(seed) & 0xFFFFFFFFFFFFFFFF]
    for key in keys:
        if isinstance(key, (int, np.integer)):
            entropy.append(int(key) & 0xFFFFFFFF)
        else:
            entropy.extend(str(key).encode())
    return np.random.default_rng(np.random.SeedSequence(entropy))


def derive_seed(seed: int, *keys: Hashable) -> int:
    """Integer child seed, for handing to constructors that take ``seed``."""
    return int(derive_rng(seed, *keys).integers(0, 2**63 - 1))


class KWiseHash:
    """
    A hash function drawn from a k-wise independent family.

    h(x) = a_{k-1} x^{k-1} + ... + a_1 x + a_0  (mod p)

    Supports:
      - raw values in ``[0, p)`` via ``h(x)``
      - bucketing into ``[0, m)``
      - a unit-interval value for min-wise and threshold sampling
      - geometric levels with ``P[level >= j] ~ 2^-j``
    """

    def __init__(
        self,
        k: int = 2,
        seed: int = 42,
        field: PrimeField = None,
        rng: np.random.Generator = None,
    ):
        if k < 1:
            raise ValueError(f"Independence must be at least 1, got {k}")
        self.k = k
        self.field = field or PrimeField(MERSENNE_61)
        self.seed = seed

        gen = rng if rng is not None else derive_rng(seed, "kwise", k)
        p = self.field.order
        coeffs = [int(c) for c in gen.integers(0, p, size=k, dtype=np.int64)]
        if k > 1 and coeffs[-1] == 0:
            coeffs[-1] = 1
        # coefficients stored lowest degree first
        self.coefficients = tuple(coeffs)

    def __call__(self, x: int) -> int:
        p = self.field.order
        acc = 0
        for c in reversed(self.coefficients):
            acc = (acc * x + c) % p
        return acc

    def bucket(self, x: int, m: int) -> int:
        return self(x) % m

    def unit(self, x: int) -> float:
        """Hash value scaled into ``[0, 1)``."""
        return self(x) / self.field.order

    def level(self, x: int, max_level: int) -> int:
        """Largest ``j <= max_level`` with ``h(x) < p / 2^j``."""
        ratio = self.field.order // (self(x) + 1)
        return min(max_level, ratio.bit_length() - 1)

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, KWiseHash)
            and other.field == self.field
            and other.coefficients == self.coefficients
        )

    def __hash__(self) -> int:
        return hash(self.coefficients)

    def __repr__(self) -> str:
        return f"KWiseHash(k={self.k}, seed={self.seed})"
