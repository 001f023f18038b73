#!/usr/bin/env python3
"""Reference scenarios for the projection engine.

Each case pins the purchase year (and, where relevant, the consolidation
figures) of a small hand-checked scenario so behaviour changes in the deposit,
serviceability, gap or consolidation rules show up immediately.

Run:
  python roadmap/qa/qa_scenarios.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure repo root is on sys.path regardless of where this script is invoked from.
_REPO_ROOT = Path(__file__).resolve().parents[2]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

import copy
import math


_BASE = {
    "selections": {"unit-house": 1},
    "profile": {
        "depositPool": 100000,
        "borrowingCapacity": 1500000,
        "portfolioValue": 0,
        "currentDebt": 0,
        "annualSavings": 45000,
        "timelineYears": 10,
        "equityReleaseFactor": 0.35,
        "consolidationsRemaining": 3,
        "lastConsolidationYear": 0,
    },
    "globalFactors": {"growthRate": "5", "interestRate": "6"},
    "propertyTypes": [
        {"id": "unit-house", "title": "Units / Apartments", "cost": 500000, "depositRequired": 100000},
    ],
    "propertyDataMap": {"Units / Apartments": {"growth": "5", "yield": "4.5"}},
    "availableDeposit": 100000,
}


def _payload(quantity: int = 1, available_deposit: float | None = None, **profile) -> dict:
    p = copy.deepcopy(_BASE)
    p["selections"]["unit-house"] = quantity
    p["profile"].update(profile)
    if available_deposit is not None:
        p["availableDeposit"] = available_deposit
    return p


def _check(cond: bool, msg: str) -> None:
    if not cond:
        raise AssertionError(msg)


def main(argv: list[str] | None = None) -> None:
    from roadmap.core.engine import plan_purchases, project_timeline
    from roadmap.core.inputs import ProjectionRequest

    # Single purchase, affordable in year 1
    timeline = project_timeline(_payload())
    _check(len(timeline) == 10, "expected 10 timeline entries")
    first = timeline[0]
    _check(first.status == "feasible", f"year 1 status {first.status}")
    _check(first.affordable_year == 2025, f"year 1 is {first.affordable_year}")
    _check(abs(first.deposit_test_surplus - 5000.0) < 1e-6, f"deposit surplus {first.deposit_test_surplus}")
    _check(first.serviceability_test_pass, "serviceability should pass with no prior holdings")
    _check(all(e.status == "hold" for e in timeline[1:]), "years 2-10 should be hold years")

    # Smaller pool: savings reach the deposit plus buffer in year 3
    timeline = project_timeline(_payload(available_deposit=20000))
    bought = [e for e in timeline if e.is_purchase]
    _check(len(bought) == 1 and bought[0].affordable_year == 2027, "expected a single purchase in 2027")

    # Gap rule: a cash-rich investor still waits a year between purchases
    p = _payload(quantity=2, available_deposit=1_000_000)
    p["globalFactors"]["interestRate"] = "2"
    p["propertyDataMap"]["Units / Apartments"]["yield"] = "10"
    timeline = project_timeline(p)
    statuses = [e.status for e in timeline[:3]]
    _check(statuses == ["feasible", "hold", "feasible"], f"gap rule statuses {statuses}")

    # Consolidation: negative-cashflow holding is sold to fund the next purchase
    req = ProjectionRequest.from_payload(_payload(quantity=2, equityReleaseFactor=1.0))
    plan = plan_purchases(req)
    second = plan.entries[1]
    _check(second.status == "consolidation", f"second instance status {second.status}")
    _check(second.affordable_year == 2029, f"consolidation year {second.affordable_year}")
    details = second.consolidation_details
    _check(details is not None and details.properties_sold == 1, "expected one property sold")
    _check(abs(details.equity_freed - 207753.125) < 1e-6, f"equity freed {details.equity_freed}")
    _check(abs(details.debt_reduced - 400000.0) < 1e-6, f"debt reduced {details.debt_reduced}")
    _check([p.year for p in plan.history] == [5], f"history after consolidation {plan.history}")

    # No consolidations left: the second instance never becomes affordable
    req = ProjectionRequest.from_payload(_payload(quantity=2, equityReleaseFactor=1.0, consolidationsRemaining=0))
    plan = plan_purchases(req)
    _check(plan.entries[1].status == "challenging", "expected challenging second instance")
    _check(math.isinf(plan.entries[1].affordable_year), "challenging instance should have no year")

    # A recent consolidation pushes the next one out by the minimum gap
    req = ProjectionRequest.from_payload(_payload(quantity=2, equityReleaseFactor=1.0, lastConsolidationYear=3))
    plan = plan_purchases(req)
    _check(plan.entries[1].affordable_year == 2032, f"gap-delayed consolidation {plan.entries[1].affordable_year}")

    print("[QA SCENARIOS OK]")


if __name__ == "__main__":
    main()
