# numgen/primality.py
# Miller-Rabin probable-prime test with secure random witnesses.

from __future__ import annotations
from typing import Optional

import gmpy2
from gmpy2 import mpz

from .config import DEFAULT_MR_ROUNDS
from .sampler import Sampler

_default_sampler = Sampler()


def _decompose(n: mpz):
    """n - 1 = d * 2**r with d odd."""
    d = n - 1
    r = gmpy2.bit_scan1(d)
    return d >> r, r


def _witness_passes(a: mpz, d: mpz, r: int, n: mpz) -> bool:
    """One strong round for base a. False means n is definitely composite."""
    x = gmpy2.powmod(a, d, n)
    if x == 1 or x == n - 1:
        return True
    for _ in range(r - 1):
        x = gmpy2.powmod(x, 2, n)
        if x == n - 1:
            return True
        if x == 1:
            # non-trivial square root of unity
            return False
    return False


def is_probable_prime(n, rounds: int = DEFAULT_MR_ROUNDS,
                      sampler: Optional[Sampler] = None) -> bool:
    """
    Miller-Rabin over `rounds` witnesses drawn uniformly from [2, n-2].
    A True answer is wrong with probability at most 4**-rounds.
    """
    if rounds < 1:
        raise ValueError("rounds must be >= 1")
    n = mpz(n)
    if n == 2 or n == 3:
        return True
    if n <= 1 or gmpy2.is_even(n):
        return False

    sampler = sampler or _default_sampler
    d, r = _decompose(n)
    for _ in range(rounds):
        a = sampler.randrange(2, n - 2)
        if not _witness_passes(a, d, r, n):
            return False
    return True
