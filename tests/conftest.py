import hashlib
import threading

import pytest

from numgen import Sampler


class FixedStream:
    """Repeatable byte source: sha256(seed || counter) blocks."""

    def __init__(self, seed: bytes = b"numgen"):
        self.seed = seed
        self.ctr = 0
        self._buf = b""
        self._lock = threading.Lock()

    def __call__(self, n: int) -> bytes:
        with self._lock:
            while len(self._buf) < n:
                self._buf += hashlib.sha256(self.seed + self.ctr.to_bytes(8, "big")).digest()
                self.ctr += 1
            out, self._buf = self._buf[:n], self._buf[n:]
            return out


@pytest.fixture
def fixed_sampler():
    def make(seed: bytes = b"numgen"):
        return Sampler(FixedStream(seed))
    return make
