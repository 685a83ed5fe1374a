import time, logging

from rq import get_current_job

from numgen import SearchConfig, SearchScheduler
from numgen.config import Settings

log = logging.getLogger(__name__)

# ---- Public RQ job -----------------------------------------------------------

def search_job(bits, mode="prime", count=1):
    """
    Run one full search inside an RQ worker process.
    Returns: dict with bits, mode, count, results [{slot, value, factors?}], candidates, elapsed_ms
    """
    cfg = SearchConfig(bit_length=int(bits), mode=mode, count=int(count))
    settings = Settings.from_env()
    job = get_current_job()
    if job is not None:
        job.meta["state"] = "running"
        job.save_meta()

    t0 = time.perf_counter()
    sched = SearchScheduler(cfg, workers=settings.workers,
                            batch_size=settings.batch_size, rounds=settings.mr_rounds,
                            executor=settings.executor)
    results = sched.run()
    ms = int((time.perf_counter() - t0) * 1000)
    log.info("search_job bits=%d mode=%s count=%d done in %d ms", cfg.bit_length, cfg.mode.value, cfg.count, ms)

    if job is not None:
        job.meta.update({"state": sched.state.value, "candidates": sched.candidates_tested})
        job.save_meta()
    return {
        "bits": cfg.bit_length,
        "mode": cfg.mode.value,
        "count": cfg.count,
        "results": [r.to_dict() for r in results],
        "candidates": sched.candidates_tested,
        "elapsed_ms": ms,
    }
