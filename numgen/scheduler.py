# numgen/scheduler.py
# Bounded concurrent search: batches of sample -> filter run on a worker pool,
# qualifying values come back to the driver, which owns slot allocation.

from __future__ import annotations
import logging
import multiprocessing as mp
import os
import threading
import time
from concurrent.futures import (
    FIRST_COMPLETED, Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor, wait,
)
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

import gmpy2
from gmpy2 import mpz

from .allocator import SearchResult, SlotAllocator
from .config import DEFAULT_BATCH_SIZE, DEFAULT_MR_ROUNDS, EXECUTORS, Mode, SearchConfig
from .factors import factor_count
from .primality import is_probable_prime
from .sampler import Sampler

log = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    RUNNING = "running"
    DRAINING = "draining"
    COMPLETE = "complete"


@dataclass
class BatchOutcome:
    tested: int = 0
    found: List[Tuple[mpz, Optional[int]]] = field(default_factory=list)


# ---------- worker side ----------

def search_batch(byte_length: int, mode: str, batch_size: int, limit: int, rounds: int,
                 stop, sampler: Sampler) -> BatchOutcome:
    """
    Draw up to `batch_size` candidates and keep the qualifying ones.
    Checks `stop` before every candidate and quits once `limit` values are found,
    since the driver cannot place more than that.
    """
    prime_mode = Mode(mode) is Mode.PRIME
    out = BatchOutcome()
    for _ in range(batch_size):
        if stop.is_set() or len(out.found) >= limit:
            break
        value = sampler.sample(byte_length)
        out.tested += 1
        if prime_mode:
            if is_probable_prime(value, rounds, sampler):
                out.found.append((value, None))
        elif value != 0 and gmpy2.is_odd(value):
            out.found.append((value, factor_count(value)))
    return out


# per-process state for the process pool
_worker_stop = None
_worker_sampler: Optional[Sampler] = None


def _init_worker(stop):
    global _worker_stop, _worker_sampler
    _worker_stop = stop
    _worker_sampler = Sampler()


def _process_batch(byte_length: int, mode: str, batch_size: int, limit: int, rounds: int) -> BatchOutcome:
    return search_batch(byte_length, mode, batch_size, limit, rounds, _worker_stop, _worker_sampler)


# ---------- driver side ----------

class SearchScheduler:
    """
    Runs one search to completion.

    RUNNING keeps up to `workers * 2` batches in flight and tops the pool up
    as batches return. Each returned batch is offered to the allocator in
    dispatch order; once the last slot is filled (DRAINING) the stop flag is
    raised, no new batches go out and the ones in flight are joined. COMPLETE
    returns the results in slot order.

    `executor="process"` (default) gives real CPU parallelism. `"thread"` runs
    batches in-process and is required when a custom `sampler` is supplied.
    """

    def __init__(self, config: SearchConfig, workers: Optional[int] = None,
                 batch_size: Optional[int] = None, sampler: Optional[Sampler] = None,
                 rounds: int = DEFAULT_MR_ROUNDS, executor: Optional[str] = None):
        self.config = config
        self.workers = max(1, workers or os.cpu_count() or 1)
        self.batch_size = DEFAULT_BATCH_SIZE if batch_size is None else batch_size
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if executor is None:
            executor = "thread" if sampler is not None else "process"
        if executor not in EXECUTORS:
            raise ValueError(f"executor must be one of {EXECUTORS}, got {executor!r}")
        if executor == "process" and sampler is not None:
            raise ValueError("a custom sampler needs executor='thread'")
        self.executor = executor
        self.sampler = sampler or Sampler()
        self.rounds = rounds
        self.allocator = SlotAllocator(config.count)
        self.state = SchedulerState.RUNNING
        self.batches_dispatched = 0
        self.candidates_tested = 0
        self.found = 0
        self.dropped = 0
        self.elapsed_s = 0.0
        self._stop = None
        self._seq: Dict[Future, int] = {}
        self._error: Optional[BaseException] = None
        self._started = False

    def _stopping(self) -> bool:
        return self.allocator.done or self._stop.is_set()

    def _make_pool(self) -> Executor:
        if self.executor == "process":
            ctx = mp.get_context()
            self._stop = ctx.Event()
            return ProcessPoolExecutor(max_workers=self.workers, mp_context=ctx,
                                       initializer=_init_worker, initargs=(self._stop,))
        self._stop = threading.Event()
        return ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="numgen")

    def _submit(self, pool: Executor) -> Future:
        cfg = self.config
        limit = cfg.count - self.allocator.allocated
        args = (cfg.byte_length, cfg.mode.value, self.batch_size, limit, self.rounds)
        if self.executor == "process":
            fut = pool.submit(_process_batch, *args)
        else:
            fut = pool.submit(search_batch, *args, self._stop, self.sampler)
        self._seq[fut] = self.batches_dispatched
        self.batches_dispatched += 1
        return fut

    def _collect(self, finished: Iterable[Future]):
        for fut in sorted(finished, key=lambda f: self._seq.pop(f)):
            exc = fut.exception()
            if exc is not None:
                if self._error is None:
                    log.error("work unit failed, aborting search: %r", exc)
                    self._error = exc
                self._stop.set()
                continue
            outcome = fut.result()
            self.candidates_tested += outcome.tested
            self.found += len(outcome.found)
            for value, factors in outcome.found:
                if self.allocator.try_allocate(value, factors) is None:
                    self.dropped += 1
            log.debug("batch finished: %d candidates, %d found", outcome.tested, len(outcome.found))
        if self.allocator.done:
            self._stop.set()

    def run(self) -> List[SearchResult]:
        if self._started:
            raise RuntimeError("a SearchScheduler runs exactly one search")
        self._started = True
        cfg = self.config
        log.info("search start: bits=%d mode=%s count=%d workers=%d batch=%d executor=%s",
                 cfg.bit_length, cfg.mode.value, cfg.count, self.workers,
                 self.batch_size, self.executor)
        t0 = time.perf_counter()
        max_in_flight = self.workers * 2
        pending: Set[Future] = set()

        with self._make_pool() as pool:
            while not self._stopping():
                while len(pending) < max_in_flight and not self._stopping():
                    pending.add(self._submit(pool))
                finished, pending = wait(pending, return_when=FIRST_COMPLETED)
                self._collect(finished)

            self.state = SchedulerState.DRAINING
            log.info("draining %d in-flight batches", len(pending))
            finished, pending = wait(pending)
            self._collect(finished)

        self.state = SchedulerState.COMPLETE
        self.elapsed_s = time.perf_counter() - t0
        if self._error is not None:
            raise self._error
        log.info("search complete: %d results, %d candidates, %d batches, %d dropped, %.3fs",
                 cfg.count, self.candidates_tested, self.batches_dispatched,
                 self.dropped, self.elapsed_s)
        return self.allocator.results()


def run(config: SearchConfig, **kw) -> List[SearchResult]:
    """Blocking entry point: the first `config.count` qualifying values, in slot order."""
    return SearchScheduler(config, **kw).run()
