import pytest

from numgen import ConfigError, Mode, SearchConfig, Settings, parse_args
from numgen.config import HELP_MESSAGE


@pytest.mark.parametrize("bits", [32, 40, 64, 1024])
def test_valid_bit_lengths(bits):
    cfg = SearchConfig(bit_length=bits, mode="prime", count=1)
    assert cfg.byte_length == bits // 8
    assert cfg.mode is Mode.PRIME


@pytest.mark.parametrize("bits", [0, 8, 24, 31, 33, 36, -32])
def test_invalid_bit_lengths(bits):
    with pytest.raises(ConfigError):
        SearchConfig(bit_length=bits)


def test_invalid_mode_and_count():
    with pytest.raises(ConfigError):
        SearchConfig(bit_length=32, mode="even")
    with pytest.raises(ConfigError):
        SearchConfig(bit_length=32, count=0)


def test_all_errors_reported_together():
    with pytest.raises(ConfigError) as ei:
        SearchConfig(bit_length=31, mode="foo", count=0)
    assert len(ei.value.errors) == 3


def test_parse_args():
    assert parse_args(["32", "prime"]) == SearchConfig(32, Mode.PRIME, 1)
    assert parse_args(["48", "ODD", "3"]) == SearchConfig(48, Mode.ODD, 3)


@pytest.mark.parametrize("raw,n_errors", [
    (["31", "foo", "0"], 3),
    (["abc", "odd"], 1),
    (["32", "prime", "x"], 1),
    (["32", "maybe"], 1),
])
def test_parse_args_errors(raw, n_errors):
    with pytest.raises(ConfigError) as ei:
        parse_args(raw)
    assert len(ei.value.errors) == n_errors


@pytest.mark.parametrize("raw", [[], ["32"], ["32", "odd", "1", "extra"]])
def test_parse_args_wrong_arity_shows_help(raw):
    with pytest.raises(ConfigError) as ei:
        parse_args(raw)
    assert ei.value.errors == [HELP_MESSAGE]


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("NUMGEN_WORKERS", "3")
    monkeypatch.setenv("NUMGEN_BATCH_SIZE", "50")
    monkeypatch.delenv("NUMGEN_MR_ROUNDS", raising=False)
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/1")
    s = Settings.from_env()
    assert (s.workers, s.batch_size, s.mr_rounds) == (3, 50, 10)
    assert s.redis_url == "redis://cache:6379/1"


@pytest.mark.parametrize("raw", ["zero", "0", "-2"])
def test_settings_rejects_bad_env(monkeypatch, raw):
    monkeypatch.setenv("NUMGEN_WORKERS", raw)
    with pytest.raises(ConfigError):
        Settings.from_env()


def test_settings_defaults_and_executor(monkeypatch):
    for name in ("NUMGEN_EXECUTOR", "NUMGEN_SYNC_MAX_BITS", "NUMGEN_SYNC_MAX_ODD_BITS",
                 "NUMGEN_SYNC_MAX_COUNT"):
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env()
    assert s.executor == "process"
    assert (s.sync_max_bits, s.sync_max_odd_bits, s.sync_max_count) == (256, 40, 20)

    monkeypatch.setenv("NUMGEN_EXECUTOR", "Thread")
    monkeypatch.setenv("NUMGEN_SYNC_MAX_ODD_BITS", "48")
    s = Settings.from_env()
    assert s.executor == "thread"
    assert s.sync_max_odd_bits == 48


def test_settings_rejects_unknown_executor(monkeypatch):
    monkeypatch.setenv("NUMGEN_EXECUTOR", "gpu")
    with pytest.raises(ConfigError):
        Settings.from_env()
