"""Display helpers for the per-year deposit / serviceability / borrowing funnels.

Funnel totals are built from the independently rounded parts so that the figures
shown add up on screen ("$53k + $32k = $85k").
"""
from __future__ import annotations

import math
from typing import Any, Dict

from roadmap.core.lending import borrowing_capacity_test
from roadmap.core.timeline import TimelineEntry


def _round_half_up(x: float) -> float:
    return float(math.floor(x + 0.5))


def display_round(value: float) -> float:
    """Round to what ``format_compact_currency`` will show: 0.1M, nearest k, or nearest dollar."""
    v = float(value)
    if v >= 1_000_000:
        return _round_half_up(v / 100_000) * 100_000
    if v >= 1000:
        return _round_half_up(v / 1000) * 1000
    return _round_half_up(v)


def format_compact_currency(value: float) -> str:
    v = float(value)
    if v >= 1_000_000:
        return f"${display_round(v) / 1_000_000:.1f}M"
    if v >= 1000:
        return f"${_round_half_up(v / 1000):.0f}k"
    return f"${v:,.0f}"


def _test_badge(passed: bool, surplus: float) -> Dict[str, Any]:
    return {
        "pass": bool(passed),
        "label": "PASS" if passed else "FAIL",
        "surplus_label": ("Surplus" if passed else "Shortfall") + ": " + format_compact_currency(abs(surplus)),
    }


def deposit_funnel(entry: TimelineEntry, *, acquisition_costs: float = 0.0) -> Dict[str, Any]:
    """Rounded deposit funnel for one timeline year.

    ``total_available`` is the sum of the four rounded fund sources, and
    ``total_required`` the rounded deposit plus rounded acquisition costs.
    """
    sources = {
        "base_deposit": display_round(entry.base_deposit),
        "cumulative_savings": display_round(entry.cumulative_savings),
        "cashflow_reinvestment": display_round(entry.cashflow_reinvestment),
        "equity_release": display_round(entry.equity_release),
    }
    required_deposit = display_round(entry.deposit_required)
    rounded_costs = display_round(acquisition_costs)
    out: Dict[str, Any] = dict(sources)
    out["total_available"] = sum(sources.values())
    out["required_deposit"] = required_deposit
    out["acquisition_costs"] = rounded_costs
    out["total_required"] = required_deposit + rounded_costs
    out.update(_test_badge(entry.deposit_test_pass, entry.deposit_test_surplus))
    return out


def serviceability_funnel(entry: TimelineEntry) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "gross_rental_income": display_round(entry.gross_rental_income),
        "expenses": display_round(entry.expenses),
        "loan_interest": display_round(entry.loan_interest),
        "rental_recognition_rate": entry.rental_recognition_rate,
    }
    out["net_income"] = out["gross_rental_income"] - out["expenses"]
    out.update(_test_badge(entry.serviceability_test_pass, entry.serviceability_test_surplus))
    return out


def borrowing_funnel(entry: TimelineEntry, borrowing_capacity: float) -> Dict[str, Any]:
    debt_before = display_round(entry.total_debt_before)
    new_debt = display_round(entry.loan_amount)
    capacity = display_round(borrowing_capacity)
    test = borrowing_capacity_test(entry, borrowing_capacity)
    out: Dict[str, Any] = {
        "portfolio_value": display_round(entry.portfolio_value_after),
        "total_equity": display_round(max(0.0, entry.total_equity_after)),
        "existing_debt": debt_before,
        "new_debt": new_debt,
        "total_debt_after": debt_before + new_debt,
        "borrowing_capacity": capacity,
    }
    out.update(_test_badge(test.passed, test.surplus))
    return out
