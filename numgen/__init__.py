# numgen/__init__.py
# Public surface: config, sampler, primality, factor count, allocator, scheduler.

from .allocator import SearchResult, SlotAllocator
from .config import ConfigError, Mode, SearchConfig, Settings, parse_args
from .factors import DegenerateValueError, factor_count
from .primality import is_probable_prime
from .sampler import EntropySourceError, Sampler
from .scheduler import SchedulerState, SearchScheduler, run

__all__ = [
    "ConfigError", "DegenerateValueError", "EntropySourceError", "Mode",
    "Sampler", "SchedulerState", "SearchConfig", "SearchResult", "SearchScheduler",
    "Settings", "SlotAllocator", "factor_count", "is_probable_prime", "parse_args", "run",
]
