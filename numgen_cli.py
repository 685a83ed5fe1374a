#!/usr/bin/env python3
# numgen <bits> <prime|odd> [count]
from __future__ import annotations
import sys, json, time, argparse, logging, dataclasses
from datetime import timedelta

from numgen import ConfigError, Mode, SearchScheduler, parse_args
from numgen.config import EXECUTORS, HELP_MESSAGE, Settings

PROMPT = "~>"


def _read_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def resolve_config(raw: list[str], interactive: bool):
    """Validate raw args; on error show every problem and re-prompt until valid."""
    while True:
        try:
            return parse_args(raw)
        except ConfigError as e:
            print("\n".join(e.errors), flush=True)
            if not interactive:
                return None
        line = _read_line(PROMPT)
        if line is None:
            return None
        raw = line.strip().split()


def print_results(results, mode: Mode, as_json: bool):
    if as_json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
        return
    for i, r in enumerate(results):
        if i:
            print()
        if mode is Mode.ODD:
            print(f"{r.slot}: {r.value}\nNumber of factors: {r.factors}")
        else:
            print(f"{r.slot}: {r.value}")


def search_once(cfg, settings: Settings, as_json: bool) -> int:
    if not as_json:
        print(f"BitLength: {cfg.bit_length} bits", flush=True)
    t0 = time.perf_counter()
    sched = SearchScheduler(cfg, workers=settings.workers,
                            batch_size=settings.batch_size, rounds=settings.mr_rounds,
                            executor=settings.executor)
    results = sched.run()
    elapsed = time.perf_counter() - t0
    print_results(results, cfg.mode, as_json)
    if not as_json:
        print(f"Time to Generate: {timedelta(seconds=elapsed)}", flush=True)
    logging.getLogger("numgen.cli").info("tested %d candidates in %d batches",
                                         sched.candidates_tested, sched.batches_dispatched)
    return 0


def positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {raw!r}")
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return value


def main(argv=None):
    ap = argparse.ArgumentParser(prog="numgen", description=HELP_MESSAGE,
                                 formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument("args", nargs="*", help="<bits> <prime|odd> [count]")
    ap.add_argument("--workers", type=positive_int, default=None, help="pool size (default: NUMGEN_WORKERS or cpu count)")
    ap.add_argument("--batch-size", type=positive_int, default=None, help="candidates per work unit")
    ap.add_argument("--executor", choices=EXECUTORS, default=None, help="process pool (default) or thread pool")
    ap.add_argument("--json", action="store_true", help="print results as JSON")
    ap.add_argument("--interactive", action="store_true", help="re-prompt on bad input and offer another search")
    ap.add_argument("-v", "--verbose", action="store_true")
    a = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO if a.verbose else logging.WARNING,
                        format="%(asctime)s:%(levelname)s:%(name)s:%(message)s")
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print("\n".join(e.errors), file=sys.stderr)
        return 2
    overrides = {k: v for k, v in (("workers", a.workers), ("batch_size", a.batch_size),
                                   ("executor", a.executor)) if v is not None}
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    interactive = a.interactive or sys.stdin.isatty()
    raw = a.args
    while True:
        cfg = resolve_config(raw, interactive)
        if cfg is None:
            return 2
        rc = search_once(cfg, settings, a.json)
        if not a.interactive:
            return rc
        line = _read_line("Press Enter to continue, q to quit...")
        if line is None or line.strip().lower() == "q":
            return rc
        print()
        raw = []


if __name__ == "__main__":
    raise SystemExit(main())
