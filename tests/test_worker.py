import sympy

import pytest

from numgen import ConfigError
from search_worker import search_job


def test_search_job_outside_rq(monkeypatch):
    monkeypatch.setenv("NUMGEN_WORKERS", "2")
    out = search_job(32, "prime", 2)
    assert out["bits"] == 32 and out["mode"] == "prime" and out["count"] == 2
    assert [r["slot"] for r in out["results"]] == [0, 1]
    assert all(sympy.isprime(int(r["value"])) for r in out["results"])
    assert out["candidates"] >= 2


def test_search_job_validates():
    with pytest.raises(ConfigError):
        search_job(12, "prime", 1)
