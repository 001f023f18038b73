#!/usr/bin/env python3
"""Run the roadmap QA suites in one go.

    python run_all_qa.py                    # every suite
    python run_all_qa.py --only scenarios   # a subset (comma separated)
    python run_all_qa.py --skip smoke
    python run_all_qa.py --list

Returns 0 when every selected suite passes and 1 otherwise.
"""

from __future__ import annotations

import argparse
import importlib
import sys
import time
from pathlib import Path

# name -> (module exposing main(argv), what it checks)
SUITES: dict[str, tuple[str, str]] = {
    "smoke": ("roadmap.qa.smoke_check", "compile, 15-year projection, worker cache"),
    "scenarios": ("roadmap.qa.qa_scenarios", "reference purchase timelines"),
    "portfolio_monitor": ("roadmap.qa.qa_portfolio_monitor", "negative equity and goal years"),
    "funnel_utils": ("roadmap.qa.qa_funnel_utils", "display rounding and funnel totals"),
}


def _names(raw: str) -> list[str]:
    return [x.strip() for x in raw.split(",") if x.strip()]


def select_suites(only: str = "", skip: str = "") -> list[str]:
    """Suites to run, in registry order. Raises ``KeyError`` naming unknown suites."""
    wanted = _names(only) or list(SUITES)
    skipped = _names(skip)
    unknown = sorted({n for n in wanted + skipped if n not in SUITES})
    if unknown:
        raise KeyError(", ".join(unknown))
    return [n for n in SUITES if n in wanted and n not in skipped]


def run_suite(name: str) -> int:
    module_name, _ = SUITES[name]
    try:
        rc = importlib.import_module(module_name).main([])
    except SystemExit as exc:
        rc = exc.code
    except Exception as exc:
        print(f"[QA {name}] crashed: {exc!r}")
        return 1
    if rc is None:
        return 0
    return rc if isinstance(rc, int) else 1


def main(argv: list[str] | None = None) -> int:
    root = str(Path(__file__).resolve().parent)
    if root not in sys.path:
        sys.path.insert(0, root)

    ap = argparse.ArgumentParser(description="Run the roadmap QA suites.")
    ap.add_argument("--list", action="store_true", help="Show the registered suites and exit.")
    ap.add_argument("--only", default="", metavar="A,B", help="Run just these suites.")
    ap.add_argument("--skip", default="", metavar="A,B", help="Leave these suites out.")
    args = ap.parse_args(argv)

    if args.list:
        for name, (module_name, about) in SUITES.items():
            print(f"{name:<18} {module_name:<36} {about}")
        return 0

    try:
        chosen = select_suites(args.only, args.skip)
    except KeyError as exc:
        print(f"Unknown QA suite(s): {exc.args[0]}. Try --list.")
        return 1

    results: list[tuple[str, int, float]] = []
    for name in chosen:
        started = time.perf_counter()
        rc = run_suite(name)
        results.append((name, rc, time.perf_counter() - started))

    print()
    for name, rc, elapsed in results:
        print(f"{'ok  ' if rc == 0 else 'FAIL'} {name:<18} {elapsed:6.2f}s")
    failed = [name for name, rc, _ in results if rc != 0]
    print(f"{len(results) - len(failed)}/{len(results)} QA suite(s) passed.")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
