# numgen/allocator.py
# Hands out dense, unique result slots to qualifying candidates.

from __future__ import annotations
import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

from gmpy2 import mpz

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchResult:
    slot: int
    value: mpz
    factors: Optional[int] = None

    def to_dict(self) -> dict:
        d = {"slot": self.slot, "value": str(self.value)}
        if self.factors is not None:
            d["factors"] = self.factors
        return d


class SlotAllocator:
    """
    The only place slots are assigned. check/assign/increment happens under a
    single lock, so slots are 0..count-1 with no gaps and no duplicates.
    Candidates offered after the last slot is filled are dropped.
    """

    def __init__(self, count: int):
        if count < 1:
            raise ValueError("count must be >= 1")
        self.count = count
        self._lock = threading.Lock()
        self._next_slot = 0
        self._done = threading.Event()
        self._results: List[Optional[SearchResult]] = [None] * count

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def allocated(self) -> int:
        with self._lock:
            return self._next_slot

    def try_allocate(self, value, annotation: Optional[int] = None) -> Optional[SearchResult]:
        with self._lock:
            if self._done.is_set():
                return None
            slot = self._next_slot
            self._next_slot += 1
            res = SearchResult(slot=slot, value=mpz(value), factors=annotation)
            self._results[slot] = res
            if self._next_slot == self.count:
                self._done.set()
        log.debug("slot %d/%d -> %s", slot + 1, self.count, res.value)
        return res

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until every slot is filled (or timeout). Returns the done flag."""
        return self._done.wait(timeout)

    def results(self) -> List[SearchResult]:
        """All results in slot order. Only valid once done."""
        if not self.done:
            raise RuntimeError(f"search incomplete: {self.allocated}/{self.count} slots filled")
        return list(self._results)
