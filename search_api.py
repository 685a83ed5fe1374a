from __future__ import annotations
import time
from datetime import datetime
from flask import Blueprint, request, jsonify, current_app

from numgen import ConfigError, Mode, SearchConfig, SearchScheduler
from numgen.config import Settings

search_bp = Blueprint("search_bp", __name__)

JOB_FUNC = "search_worker.search_job"

# ------------------ helpers ------------------
def _settings() -> Settings:
    return current_app.extensions["numgen.settings"]

def _queue():
    return current_app.extensions["numgen.queue"]

def _bad(errors):
    return jsonify({"error": "; ".join(errors), "errors": list(errors)}), 400

def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(["Request body must be a JSON object."])
    return data

def _waited_secs(start: datetime | None, end: datetime | None = None) -> float | None:
    if not start:
        return None
    stop = end.timestamp() if end else time.time()
    return max(0.0, stop - start.timestamp())

def _job_dict(job) -> dict:
    """Status of a queued search: what was asked for, how far it got, and its results."""
    meta = job.meta or {}
    d = {
        "job_id": job.id,
        "status": job.get_status(),
        "search": {k: meta.get(k) for k in ("bits", "mode", "count")},
        "state": meta.get("state", "queued"),
        "candidates": meta.get("candidates"),
        "queued_sec": _waited_secs(job.enqueued_at, job.started_at),
        "running_sec": _waited_secs(job.started_at, job.ended_at),
    }
    if job.is_finished:
        d["result"] = job.return_value() if hasattr(job, "return_value") else job.result
    if job.is_failed:
        d["exc_info"] = (job.exc_info or "")[-1024:]
    return d

def _parse_search(data: dict, sync: bool) -> SearchConfig:
    """Request body -> SearchConfig, enforcing the queue caps, or the tighter in-request caps."""
    try:
        bits = int(str(data.get("bits", "")).strip())
    except ValueError:
        raise ConfigError(["bits must be an integer"])
    try:
        count = int(str(data.get("count", 1)).strip())
    except ValueError:
        raise ConfigError(["count must be an integer"])
    cfg = SearchConfig(bit_length=bits, mode=data.get("mode", "prime"), count=count)

    s = _settings()
    if sync:
        max_bits = s.sync_max_odd_bits if cfg.mode is Mode.ODD else s.sync_max_bits
        max_count = s.sync_max_count
        hint = " Use /api/search/submit for larger searches."
    else:
        max_bits, max_count, hint = s.max_bits, s.max_count, ""
    errors = []
    if cfg.bit_length > max_bits:
        errors.append(f"Max {max_bits} bits for {cfg.mode.value} searches here.{hint}")
    if cfg.count > max_count:
        errors.append(f"Count too large; cap is {max_count}.{hint}")
    if errors:
        raise ConfigError(errors)
    return cfg

# ------------------ API ------------------
@search_bp.post("/api/search")
def search_now():
    try:
        cfg = _parse_search(_json_body(), sync=True)
    except ConfigError as e:
        return _bad(e.errors)
    s = _settings()
    t0 = time.perf_counter()
    sched = SearchScheduler(cfg, workers=s.workers, batch_size=s.batch_size,
                            rounds=s.mr_rounds, executor=s.executor)
    results = sched.run()
    return jsonify({
        "bits": cfg.bit_length,
        "mode": cfg.mode.value,
        "count": cfg.count,
        "results": [r.to_dict() for r in results],
        "candidates": sched.candidates_tested,
        "elapsed_ms": int((time.perf_counter() - t0) * 1000),
    })

@search_bp.post("/api/search/submit")
def search_submit():
    try:
        cfg = _parse_search(_json_body(), sync=False)
    except ConfigError as e:
        return _bad(e.errors)
    q = _queue()
    job = q.enqueue(JOB_FUNC, cfg.bit_length, cfg.mode.value, cfg.count,
                    meta={"bits": cfg.bit_length, "mode": cfg.mode.value,
                          "count": cfg.count, "submitted": time.time()})
    ids = q.get_job_ids()
    pos = ids.index(job.id) + 1 if job.id in ids else 1
    return jsonify({"job_id": job.id, "status": job.get_status(), "queue_position": pos}), 202

@search_bp.get("/api/job/<job_id>")
def job_status(job_id):
    job = _queue().fetch_job(job_id)
    if job is None:
        return jsonify({"error": "unknown job"}), 404
    return jsonify(_job_dict(job))

@search_bp.get("/api/queue")
def queue_info():
    q = _queue()
    ids = q.get_job_ids()
    return jsonify({"queue": q.name, "size": len(ids), "head": ids[:10]})
