#!/usr/bin/env python3
"""Quick smoke checks for the roadmap projector.

Run:
  python roadmap/qa/smoke_check.py
"""

from __future__ import annotations
import sys
from pathlib import Path

# Ensure repo root is on sys.path regardless of where this script is invoked from.
_REPO_ROOT = Path(__file__).resolve().parents[2]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

import compileall
import math


def die(msg: str, code: int = 1) -> None:
    print(f"\n[SMOKE CHECK FAILED] {msg}\n")
    raise SystemExit(code)


def main(argv: list[str] | None = None) -> None:
    pkg_dir = _REPO_ROOT / "roadmap"
    if not compileall.compile_dir(str(pkg_dir), quiet=1):
        die("roadmap/ package failed to compile.")

    try:
        from roadmap.core.engine import project_timeline
        from roadmap.core.timeline import timeline_to_frame
        from roadmap.core.worker import ProjectionWorker
    except Exception as e:
        die(f"Import failure: {e}")

    payload = {
        "selections": {"unit": 2, "house": 1},
        "profile": {
            "depositPool": 150000,
            "borrowingCapacity": 2000000,
            "annualSavings": 50000,
            "timelineYears": 15,
        },
        "globalFactors": {"growthRate": "6", "interestRate": "5.5"},
        "propertyTypes": [
            {"id": "unit", "title": "Unit", "cost": 450000, "depositRequired": 90000},
            {"id": "house", "title": "House", "cost": 750000, "depositRequired": 150000},
        ],
        "propertyDataMap": {
            "Unit": {"growth": "5%", "yield": "5%"},
            "House": {"growth": "7%", "yield": "3.5%"},
        },
    }

    try:
        timeline = project_timeline(payload)
    except Exception as e:
        die(f"Projection failed: {e}")

    if len(timeline) != 15:
        die(f"Expected 15 timeline entries, got {len(timeline)}.")

    years = [e.affordable_year for e in timeline]
    if years != list(range(2025, 2040)):
        die(f"Timeline years are not consecutive from 2025: {years}")

    for e in timeline:
        for attr in ("portfolio_value_after", "total_debt_after", "net_cashflow", "available_funds_used"):
            v = getattr(e, attr)
            if not math.isfinite(v):
                die(f"Non-finite {attr} in {e.affordable_year}: {v}")

    df = timeline_to_frame(timeline)
    if len(df) != 15 or "Total Equity" not in df.columns:
        die("timeline_to_frame returned an unexpected frame.")

    worker = ProjectionWorker()
    first = worker.handle({"type": "CALCULATE", "payload": payload})
    second = worker.handle({"type": "CALCULATE", "payload": payload})
    if first.get("type") != "RESULT" or second.get("cached") is not True:
        die(f"Worker did not serve the repeated request from cache: {second.get('type')}")

    purchases = sum(1 for e in timeline if e.is_purchase)
    print("\n[SMOKE CHECK OK]")
    print(f"Timeline rows: {len(timeline)}")
    print(f"Purchase years: {purchases}")
    print(f"Final portfolio value: ${timeline[-1].portfolio_value_after:,.0f}\n")


if __name__ == "__main__":
    main()
