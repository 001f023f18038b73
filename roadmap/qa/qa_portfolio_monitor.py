#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path

import pandas as pd

_repo_root = Path(__file__).resolve().parents[2]
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

from roadmap.core.portfolio_monitor import detect_negative_equity, format_underwater_warning, goal_years


def main(argv: list[str] | None = None):
    # --- Case 1: all positive equity ---
    df_pos = pd.DataFrame({
        "Year": [2025, 2026, 2027, 2028],
        "Total Equity": [100000.0, 150000.0, 200000.0, 250000.0],
        "Net Cashflow": [-5000.0, -2000.0, 1000.0, 4000.0],
    })
    r = detect_negative_equity(df_pos)
    assert r["has_negative_equity"] is False
    assert r["first_underwater_year"] is None
    assert r["years_underwater"] == 0
    assert r["max_negative_equity"] == 0.0
    assert r["underwater_at_horizon"] is False

    # --- Case 2: equity dips below zero mid-timeline ---
    df_mid = pd.DataFrame({
        "Year": [2025, 2026, 2027, 2028, 2029],
        "Total Equity": [20000.0, -15000.0, -30000.0, 5000.0, 40000.0],
    })
    r = detect_negative_equity(df_mid)
    assert r["has_negative_equity"] is True
    assert r["first_underwater_year"] == 2026
    assert r["years_underwater"] == 2
    assert r["max_negative_equity"] == -30000.0
    assert r["underwater_at_horizon"] is False
    assert abs(r["pct_years_underwater"] - 2 / 5) < 1e-9

    # --- Case 3: missing column / empty / None ---
    assert detect_negative_equity(pd.DataFrame({"Year": [2025]}))["has_negative_equity"] is False
    assert detect_negative_equity(pd.DataFrame())["has_negative_equity"] is False
    assert detect_negative_equity(None)["has_negative_equity"] is False

    # --- Case 4: warning text ---
    assert format_underwater_warning(detect_negative_equity(df_pos)) is None
    df_end = pd.DataFrame({"Year": [2025, 2026], "Total Equity": [-1000.0, -3000.0]})
    msg = format_underwater_warning(detect_negative_equity(df_end))
    assert msg is not None
    assert "2 year(s)" in msg
    assert "2025" in msg
    assert "$3,000" in msg
    assert "STILL underwater" in msg

    # --- Case 5: goal years ---
    g = goal_years(df_pos, equity_goal=150000.0, cashflow_goal=1000.0)
    assert g == {"equity_goal_year": 2026, "cashflow_goal_year": 2027}
    g = goal_years(df_pos, equity_goal=1_000_000.0, cashflow_goal=0.0)
    assert g == {"equity_goal_year": None, "cashflow_goal_year": None}

    print("[QA PORTFOLIO MONITOR OK]")


if __name__ == "__main__":
    main()
