"""Tests for borrowing capacity helpers."""

from __future__ import annotations

import pytest

from roadmap.core.lending import borrowing_capacity, borrowing_capacity_test, convert_fees
from roadmap.core.timeline import TimelineEntry


class TestBorrowingCapacity:
    def test_present_value_of_repayments(self) -> None:
        r = borrowing_capacity(3000.0, 6.0, 30, "monthly")
        # 3000 * (1 - 1.005^-360) / 0.005
        assert r.borrowing_capacity == pytest.approx(500375.0, abs=5)
        assert r.total_repayments == pytest.approx(3000.0 * 360)
        assert r.total_interest == pytest.approx(r.total_repayments - r.borrowing_capacity, abs=2)

    def test_zero_interest(self) -> None:
        r = borrowing_capacity(1000.0, 0.0, 10, "monthly")
        assert r.borrowing_capacity == 120000.0
        assert r.total_interest == 0.0

    def test_fees_reduce_capacity(self) -> None:
        plain = borrowing_capacity(800.0, 5.5, 25, "weekly")
        with_fees = borrowing_capacity(800.0, 5.5, 25, "weekly", fees_per_period=10.0, fees_frequency="monthly")
        assert with_fees.borrowing_capacity < plain.borrowing_capacity

    def test_fees_exceeding_repayment(self) -> None:
        r = borrowing_capacity(5.0, 6.0, 30, "monthly", fees_per_period=10.0)
        assert r.borrowing_capacity == 0.0

    def test_unknown_frequency(self) -> None:
        with pytest.raises(ValueError):
            borrowing_capacity(1000.0, 6.0, 30, "daily")


def test_convert_fees_between_frequencies():
    assert convert_fees(10.0, "monthly", "weekly") == pytest.approx(10.0 * 12 / 52)
    assert convert_fees(26.0, "fortnightly", "fortnightly") == pytest.approx(26.0)


def _entry(debt_after: float) -> TimelineEntry:
    return TimelineEntry(
        id="u_0",
        title="Unit",
        cost=500000.0,
        deposit_required=100000.0,
        loan_amount=400000.0,
        affordable_year=2025,
        relative_year=1,
        status="feasible",
        total_debt_after=debt_after,
    )


def test_borrowing_capacity_test_pass_and_fail():
    ok = borrowing_capacity_test(_entry(400000.0), 500000.0)
    assert ok.passed is True
    assert ok.surplus == pytest.approx(100000.0)
    bad = borrowing_capacity_test(_entry(900000.0), 500000.0)
    assert bad.passed is False
    assert bad.surplus == pytest.approx(-400000.0)
