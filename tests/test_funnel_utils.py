"""Tests for funnel display helpers."""

from __future__ import annotations

import pytest

from roadmap.core.timeline import TimelineEntry
from roadmap.qa.qa_funnel_utils import main as _qa_main
from roadmap.ui.funnel_utils import (
    borrowing_funnel,
    deposit_funnel,
    display_round,
    format_compact_currency,
    serviceability_funnel,
)


def test_funnel_utils_qa() -> None:
    _qa_main([])


@pytest.mark.parametrize(
    "value,expected",
    [(0.0, 0.0), (499.5, 500.0), (1500.0, 2000.0), (84_499.0, 84_000.0), (3_040_000.0, 3_000_000.0)],
)
def test_display_round(value, expected):
    assert display_round(value) == pytest.approx(expected)


def test_format_compact_currency_small_values_keep_separators():
    assert format_compact_currency(0.0) == "$0"
    assert format_compact_currency(999.0) == "$999"


def _entry(**kw) -> TimelineEntry:
    base = dict(
        id="u_0",
        title="Unit",
        cost=500000.0,
        deposit_required=100000.0,
        loan_amount=400000.0,
        affordable_year=2026,
        relative_year=2,
        status="feasible",
    )
    base.update(kw)
    return TimelineEntry(**base)


def test_deposit_funnel_includes_acquisition_costs():
    funnel = deposit_funnel(
        _entry(base_deposit=100_000.0, cumulative_savings=90_000.0, deposit_test_surplus=50_000.0),
        acquisition_costs=4_150.0,
    )
    assert funnel["total_available"] == 190_000.0
    assert funnel["total_required"] == 104_000.0
    assert funnel["label"] == "PASS"
    assert funnel["surplus_label"] == "Surplus: $50k"


def test_serviceability_funnel():
    funnel = serviceability_funnel(
        _entry(gross_rental_income=18_600.0, expenses=5_580.0, loan_interest=24_000.0,
               serviceability_test_surplus=-9_120.0, serviceability_test_pass=False, rental_recognition_rate=0.75)
    )
    assert funnel["net_income"] == 19_000.0 - 6_000.0
    assert funnel["label"] == "FAIL"
    assert funnel["rental_recognition_rate"] == 0.75


def test_borrowing_funnel_uses_capacity_headroom():
    funnel = borrowing_funnel(
        _entry(total_debt_before=300_000.0, total_debt_after=700_000.0, portfolio_value_after=1_050_000.0),
        borrowing_capacity=1_000_000.0,
    )
    assert funnel["total_debt_after"] == 700_000.0
    assert funnel["borrowing_capacity"] == 1_000_000.0
    assert funnel["pass"] is True
    assert funnel["surplus_label"] == "Surplus: $300k"


def test_millions_round_half_up():
    assert format_compact_currency(1_250_000.0) == "$1.3M"
    assert display_round(1_250_000.0) == 1_300_000.0
    assert format_compact_currency(1_249_999.0) == "$1.2M"


def test_deposit_funnel_millions_part_matches_total():
    funnel = deposit_funnel(_entry(base_deposit=1_250_000.0))
    assert funnel["base_deposit"] == 1_300_000.0
    assert funnel["total_available"] == 1_300_000.0
    assert format_compact_currency(funnel["base_deposit"]) == format_compact_currency(1_250_000.0)
    assert format_compact_currency(funnel["total_available"]) == "$1.3M"
