"""
Prime-field arithmetic.

All fingerprints and hash polynomials are evaluated in GF(p). The default
modulus is the Mersenne prime 2^61 - 1: large enough that a polynomial
identity test over edge universes of up to 2^40 coordinates fails with
probability below 2^-20, and small enough that the sum of two reduced
values still fits in a signed 64-bit integer, which lets sketch state be
held in plain numpy int64 arrays.
"""

from typing import Optional

MERSENNE_61 = (1 << 61) - 1

# Witnesses that make Miller-Rabin deterministic for every n < 3.3e24
_MR_WITNESSES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41)


def is_prime(n: int) -> bool:
    """Deterministic Miller-Rabin primality test."""
    if n < 2:
        return False
    for p in _MR_WITNESSES:
        if n % p == 0:
            return n == p
    d, s = n - 1, 0
    while d % 2 == 0:
        d //= 2
        s += 1
    for a in _MR_WITNESSES:
        x = pow(a, d, n)
        if x in (1, n - 1):
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def next_prime(n: int) -> int:
    """Smallest prime >= n."""
    candidate = max(2, n)
    if candidate > 2 and candidate % 2 == 0:
        candidate += 1
    while not is_prime(candidate):
        candidate += 1 if candidate == 2 else 2
    return candidate


class PrimeField:
    """Arithmetic modulo a prime ``order``."""

    def __init__(self, order: int = MERSENNE_61):
        if not is_prime(order):
            raise ValueError(f"Field order must be prime, got {order}")
        self.order = order

    @classmethod
    def for_universe(cls, size: int, cap: Optional[int] = MERSENNE_61) -> "PrimeField":
        """
        Field whose order exceeds ``size^2``.

        A fingerprint polynomial over ``size`` coordinates has degree below
        ``size``, so a false match happens with probability under 1/size.
        """
        target = max(size * size, 3)
        if cap is not None and target >= cap:
            return cls(cap)
        return cls(next_prime(target + 1))

    def reduce(self, value: int) -> int:
        return value % self.order

    def add(self, a: int, b: int) -> int:
        return (a + b) % self.order

    def sub(self, a: int, b: int) -> int:
        return (a - b) % self.order

    def neg(self, a: int) -> int:
        return (-a) % self.order

    def mul(self, a: int, b: int) -> int:
        return (a * b) % self.order

    def pow(self, base: int, exponent: int) -> int:
        return pow(base % self.order, exponent, self.order)

    def __eq__(self, other) -> bool:
        return isinstance(other, PrimeField) and other.order == self.order

    def __hash__(self) -> int:
        return hash(self.order)

    def __repr__(self) -> str:
        return f"PrimeField({self.order})"
