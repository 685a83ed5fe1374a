# numgen/config.py
# Search configuration, argument validation and env-driven settings.

from __future__ import annotations
import os
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

MIN_BITS = 32
DEFAULT_BATCH_SIZE = 500
DEFAULT_MR_ROUNDS = 10
EXECUTORS = ("process", "thread")

HELP_MESSAGE = (
    "Usage: numgen <bits> <option> <count>\n"
    "- bits - the number of bits of the number to be generated, "
    "this must be a multiple of 8, and at least 32 bits.\n"
    "- option - 'odd' or 'prime' (the type of numbers to be generated)\n"
    "- count - the count of numbers to generate, defaults to 1"
)


class ConfigError(ValueError):
    """Invalid search configuration. `errors` holds every problem found."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class Mode(str, Enum):
    PRIME = "prime"
    ODD = "odd"

    @classmethod
    def parse(cls, raw) -> "Mode":
        if isinstance(raw, Mode):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ConfigError(["Invalid method: Must be either 'prime' or 'odd'"])


def _bits_error(bit_length) -> Optional[str]:
    if isinstance(bit_length, bool) or not isinstance(bit_length, int) \
            or bit_length < MIN_BITS or bit_length % 8 != 0:
        return f"Invalid bit count: Must be a positive Integer multiple of 8, at least {MIN_BITS}"
    return None


def _count_error(count) -> Optional[str]:
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        return "Invalid count: Must be a positive Integer"
    return None


@dataclass(frozen=True)
class SearchConfig:
    bit_length: int
    mode: Mode = Mode.PRIME
    count: int = 1

    def __post_init__(self):
        errors = []
        err = _bits_error(self.bit_length)
        if err:
            errors.append(err)
        try:
            object.__setattr__(self, "mode", Mode.parse(self.mode))
        except ConfigError as e:
            errors += e.errors
        err = _count_error(self.count)
        if err:
            errors.append(err)
        if errors:
            raise ConfigError(errors)

    @property
    def byte_length(self) -> int:
        return self.bit_length // 8


def parse_args(args: Sequence[str]) -> SearchConfig:
    """
    Turn raw `<bits> <mode> [count]` strings into a SearchConfig.
    Collects every problem before raising, so callers can show them together.
    """
    args = [a for a in args if a != ""]
    if not 2 <= len(args) <= 3:
        raise ConfigError([HELP_MESSAGE])

    errors: List[str] = []
    bits = count = None
    mode = None
    try:
        bits = int(args[0])
        err = _bits_error(bits)
        if err:
            errors.append(err)
    except ValueError:
        errors.append(_bits_error(None))
    try:
        mode = Mode.parse(args[1])
    except ConfigError as e:
        errors += e.errors
    if len(args) == 3:
        try:
            count = int(args[2])
            err = _count_error(count)
            if err:
                errors.append(err)
        except ValueError:
            errors.append(_count_error(None))
    else:
        count = 1

    if errors:
        raise ConfigError(errors)
    return SearchConfig(bit_length=bits, mode=mode, count=count)


# ---------- env settings ----------

def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError([f"{name} must be an integer, got {raw!r}"])
    if value < 1:
        raise ConfigError([f"{name} must be >= 1, got {value}"])
    return value


def _env_executor() -> str:
    raw = (os.getenv("NUMGEN_EXECUTOR") or "process").strip().lower()
    if raw not in EXECUTORS:
        raise ConfigError([f"NUMGEN_EXECUTOR must be one of {', '.join(EXECUTORS)}, got {raw!r}"])
    return raw


@dataclass(frozen=True)
class Settings:
    workers: int
    batch_size: int = DEFAULT_BATCH_SIZE
    mr_rounds: int = DEFAULT_MR_ROUNDS
    executor: str = "process"
    # queued searches (RQ jobs carry their own timeout)
    max_bits: int = 4096
    max_count: int = 1000
    # searches answered inside the HTTP request; odd mode trial-divides up to sqrt(n)
    sync_max_bits: int = 256
    sync_max_odd_bits: int = 40
    sync_max_count: int = 20
    redis_url: str = "redis://localhost:6379/0"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            workers=_env_int("NUMGEN_WORKERS", os.cpu_count() or 1),
            batch_size=_env_int("NUMGEN_BATCH_SIZE", DEFAULT_BATCH_SIZE),
            mr_rounds=_env_int("NUMGEN_MR_ROUNDS", DEFAULT_MR_ROUNDS),
            executor=_env_executor(),
            max_bits=_env_int("NUMGEN_MAX_BITS", 4096),
            max_count=_env_int("NUMGEN_MAX_COUNT", 1000),
            sync_max_bits=_env_int("NUMGEN_SYNC_MAX_BITS", 256),
            sync_max_odd_bits=_env_int("NUMGEN_SYNC_MAX_ODD_BITS", 40),
            sync_max_count=_env_int("NUMGEN_SYNC_MAX_COUNT", 20),
            redis_url=(os.getenv("REDIS_URL", "redis://localhost:6379/0")
                       or "redis://localhost:6379/0"),
        )
