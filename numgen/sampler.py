# numgen/sampler.py
# Cryptographically secure big-integer sampling.

from __future__ import annotations
import secrets
import threading
from typing import Callable, Optional

import gmpy2
from gmpy2 import mpz


class EntropySourceError(RuntimeError):
    """The secure byte source failed. Fatal for the whole search."""


class Sampler:
    """
    Draws random magnitudes from a secure byte source.

    One instance may be shared by every worker: reads from `source` are
    serialised, so no two callers ever see the same bytes.
    """

    def __init__(self, source: Optional[Callable[[int], bytes]] = None):
        self._source = source or secrets.token_bytes
        self._lock = threading.Lock()

    def _read(self, nbytes: int) -> bytes:
        try:
            with self._lock:
                data = self._source(nbytes)
        except (OSError, NotImplementedError) as e:
            raise EntropySourceError(f"secure entropy source unavailable: {e}") from e
        if len(data) != nbytes:
            raise EntropySourceError(f"short read from entropy source: {len(data)}/{nbytes} bytes")
        return data

    def sample(self, byte_length: int) -> mpz:
        """Exactly `byte_length` random bytes, read as an unsigned big-endian integer."""
        if byte_length < 1:
            raise ValueError("byte_length must be >= 1")
        return mpz(int.from_bytes(self._read(byte_length), "big"))

    def randrange(self, lo, hi) -> mpz:
        """Uniform integer in [lo, hi], inclusive. Rejection sampling, no modulo bias."""
        lo, hi = mpz(lo), mpz(hi)
        if hi < lo:
            raise ValueError(f"empty range [{lo}, {hi}]")
        span = hi - lo
        if span == 0:
            return lo
        nbits = gmpy2.bit_length(span)
        nbytes = (nbits + 7) // 8
        mask = (1 << nbits) - 1
        while True:
            r = int.from_bytes(self._read(nbytes), "big") & mask
            if r <= span:
                return lo + r
