"""Portfolio monitoring over a projected timeline.

These helpers read the DataFrame produced by ``timeline_to_frame`` to flag years
in which the portfolio has negative equity (debt above value) and to find the
first year the client's equity and passive-income goals are reached.
"""
from __future__ import annotations

from typing import Any

import pandas as pd


def _first_year(df: pd.DataFrame, mask: pd.Series) -> int | None:
    if not mask.any():
        return None
    first_idx = mask.idxmax()
    if "Year" in df.columns:
        return int(df.loc[first_idx, "Year"])
    return int(first_idx) + 1


def detect_negative_equity(df: pd.DataFrame) -> dict[str, Any]:
    """Analyze a timeline DataFrame for negative equity.

    Returns:
        Dict with keys:
        - has_negative_equity: bool
        - first_underwater_year: int | None, calendar year
        - max_negative_equity: float, deepest deficit (negative number)
        - years_underwater: int
        - underwater_at_horizon: bool
        - pct_years_underwater: float
    """
    result = {
        "has_negative_equity": False,
        "first_underwater_year": None,
        "max_negative_equity": 0.0,
        "years_underwater": 0,
        "underwater_at_horizon": False,
        "pct_years_underwater": 0.0,
    }

    if df is None or df.empty or "Total Equity" not in df.columns:
        return result

    equity = pd.to_numeric(df["Total Equity"], errors="coerce")
    underwater = equity < 0
    if not underwater.any():
        return result

    years_underwater = int(underwater.sum())
    result["has_negative_equity"] = True
    result["years_underwater"] = years_underwater
    result["pct_years_underwater"] = years_underwater / len(df)
    result["max_negative_equity"] = float(equity[underwater].min())
    result["underwater_at_horizon"] = bool(underwater.iloc[-1])
    result["first_underwater_year"] = _first_year(df, underwater)
    return result


def format_underwater_warning(analysis: dict[str, Any]) -> str | None:
    """User-facing warning for negative equity, or None if never underwater."""
    if not analysis.get("has_negative_equity"):
        return None

    msg = (
        f"The portfolio has negative equity in {analysis['years_underwater']} year(s). "
        f"First occurring in {analysis['first_underwater_year']}, "
        f"with a maximum deficit of ${abs(analysis['max_negative_equity']):,.0f}."
    )
    if analysis["underwater_at_horizon"]:
        msg += " The portfolio is STILL underwater at the end of the timeline."
    return msg


def goal_years(df: pd.DataFrame, equity_goal: float, cashflow_goal: float) -> dict[str, int | None]:
    """First calendar year total equity / net cashflow reach the client's goals.

    A goal of zero or less is treated as not set and reported as None.
    """
    out: dict[str, int | None] = {"equity_goal_year": None, "cashflow_goal_year": None}
    if df is None or df.empty:
        return out

    if equity_goal > 0 and "Total Equity" in df.columns:
        equity = pd.to_numeric(df["Total Equity"], errors="coerce")
        out["equity_goal_year"] = _first_year(df, equity >= equity_goal)
    if cashflow_goal > 0 and "Net Cashflow" in df.columns:
        cashflow = pd.to_numeric(df["Net Cashflow"], errors="coerce")
        out["cashflow_goal_year"] = _first_year(df, cashflow >= cashflow_goal)
    return out
