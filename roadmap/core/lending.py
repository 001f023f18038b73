"""Borrowing capacity helpers.

The projection engine reports how much of the investor's borrowing capacity is
left after each purchase; the pass/fail test on that headroom is computed here,
downstream of the engine, from the timeline's debt totals.
"""

from __future__ import annotations

from dataclasses import dataclass

from .timeline import TimelineEntry

PERIODS_PER_YEAR = {
    "weekly": 52,
    "fortnightly": 26,
    "monthly": 12,
}


@dataclass(frozen=True)
class BorrowingCapacityResult:
    borrowing_capacity: float
    total_repayments: float
    total_interest: float
    total_fees: float


@dataclass(frozen=True)
class BorrowingCapacityTest:
    surplus: float
    passed: bool
    total_debt: float
    borrowing_capacity: float


def _periods(frequency: str) -> int:
    try:
        return PERIODS_PER_YEAR[str(frequency).strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown repayment frequency: {frequency!r}") from None


def convert_fees(fees: float, fees_frequency: str, repayment_frequency: str) -> float:
    """Re-express a per-period fee at the repayment frequency."""
    per_year = float(fees) * _periods(fees_frequency)
    return per_year / _periods(repayment_frequency)


def borrowing_capacity(
    affordable_repayment: float,
    interest_rate_pct: float,
    loan_term_years: int,
    repayment_frequency: str = "monthly",
    fees_per_period: float = 0.0,
    fees_frequency: str = "monthly",
) -> BorrowingCapacityResult:
    """Maximum loan serviceable by a given repayment (present value of an annuity).

    LoanAmount = (R - F) x [(1 - (1 + r)^-n) / r]

    where R is the affordable repayment per period, F the fees per period, r the
    periodic rate and n the number of repayments. Results are rounded to dollars.

    Args:
        affordable_repayment: Amount the borrower can repay each period.
        interest_rate_pct: Annual rate in percent (e.g. 6.04).
        loan_term_years: Loan term in years.
        repayment_frequency: ``weekly``, ``fortnightly`` or ``monthly``.
        fees_per_period: Account fees charged each ``fees_frequency`` period.
        fees_frequency: Frequency the fees are charged at.
    """
    periods_per_year = _periods(repayment_frequency)
    n = int(loan_term_years) * periods_per_year
    fees = convert_fees(fees_per_period, fees_frequency, repayment_frequency)
    net = float(affordable_repayment) - fees

    if net <= 0:
        return BorrowingCapacityResult(0.0, 0.0, 0.0, fees * n)

    if float(interest_rate_pct) == 0.0:
        return BorrowingCapacityResult(
            borrowing_capacity=float(round(net * n)),
            total_repayments=float(affordable_repayment) * n,
            total_interest=0.0,
            total_fees=fees * n,
        )

    r = (float(interest_rate_pct) / 100.0) / periods_per_year
    capacity = net * ((1.0 - (1.0 + r) ** (-n)) / r)
    total_repayments = float(affordable_repayment) * n
    total_fees = fees * n
    total_interest = total_repayments - total_fees - capacity

    return BorrowingCapacityResult(
        borrowing_capacity=float(round(capacity)),
        total_repayments=float(round(total_repayments)),
        total_interest=float(round(max(0.0, total_interest))),
        total_fees=float(round(total_fees)),
    )


def borrowing_capacity_test(entry: TimelineEntry, capacity: float) -> BorrowingCapacityTest:
    """Check that the portfolio's debt after ``entry`` stays within ``capacity``."""
    surplus = float(capacity) - entry.total_debt_after
    return BorrowingCapacityTest(
        surplus=surplus,
        passed=surplus >= 0,
        total_debt=entry.total_debt_after,
        borrowing_capacity=float(capacity),
    )
