"""Portfolio records and the derived per-property financials.

A ``Purchase`` never stores a "current value": value, rent and equity are always
recomputed from the purchase cost, the years elapsed and the growth assumption,
so a record cannot drift away from the growth formula.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence

from .inputs import PropertyAssumption, PropertyType
from .policy import DEFAULT_POLICY, LendingPolicy


@dataclass(frozen=True)
class Purchase:
    year: int  # relative, 1-based
    cost: float
    deposit_required: float
    loan_amount: float
    title: str

    @classmethod
    def from_property(cls, prop: PropertyType, year: int) -> "Purchase":
        return cls(
            year=int(year),
            cost=prop.cost,
            deposit_required=prop.deposit_required,
            loan_amount=prop.cost - prop.deposit_required,
            title=prop.title,
        )


@dataclass(frozen=True)
class PropertyCashflow:
    value: float
    rental_income: float
    loan_interest: float
    expenses: float
    loan_amount: float

    @property
    def net_cashflow(self) -> float:
        return self.rental_income - self.loan_interest - self.expenses

    @property
    def equity(self) -> float:
        return self.value - self.loan_amount


@dataclass(frozen=True)
class PortfolioCashflow:
    gross_rental_income: float = 0.0
    loan_interest: float = 0.0
    expenses: float = 0.0

    @property
    def net_cashflow(self) -> float:
        return self.gross_rental_income - self.loan_interest - self.expenses

    def dsr(self, policy: LendingPolicy = DEFAULT_POLICY) -> float:
        """Debt service ratio in percent.

        With interest but no recognised rent the ratio is the failing sentinel;
        with neither there is nothing to service and the ratio is 0.
        """
        if self.gross_rental_income > 0:
            return (self.loan_interest / self.gross_rental_income) * 100.0
        if self.loan_interest > 0:
            return policy.dsr_no_income_sentinel
        return 0.0

    def serviceability_surplus(self, policy: LendingPolicy = DEFAULT_POLICY) -> float:
        return self.gross_rental_income * (policy.max_dsr_pct / 100.0) - self.loan_interest


def grown_value(initial_value: float, years: float, growth_rate: float) -> float:
    return initial_value * (1.0 + growth_rate) ** years


def property_value(
    purchase: Purchase,
    as_of_year: int,
    property_data: Mapping[str, PropertyAssumption],
) -> Optional[float]:
    """Value of ``purchase`` in ``as_of_year`` using its title's growth; None when unknown."""
    data = property_data.get(purchase.title)
    if data is None:
        return None
    return grown_value(purchase.cost, as_of_year - purchase.year, data.growth_rate)


def property_cashflow(
    purchase: Purchase,
    as_of_year: int,
    property_data: Mapping[str, PropertyAssumption],
    interest_rate: float,
    recognition_rate: float = 1.0,
    policy: LendingPolicy = DEFAULT_POLICY,
) -> Optional[PropertyCashflow]:
    """Yearly rent, interest and expenses of one purchase (interest-only loan).

    ``recognition_rate`` shades the rent the way a lender would; pass 1.0 for the
    unshaded figures. Returns None when the title has no property data.
    """
    data = property_data.get(purchase.title)
    if data is None:
        return None
    value = grown_value(purchase.cost, as_of_year - purchase.year, data.growth_rate)
    rent = value * data.yield_rate * recognition_rate
    return PropertyCashflow(
        value=value,
        rental_income=rent,
        loan_interest=purchase.loan_amount * interest_rate,
        expenses=rent * policy.expense_ratio,
        loan_amount=purchase.loan_amount,
    )


def portfolio_cashflow(
    purchases: Iterable[Purchase],
    as_of_year: int,
    property_data: Mapping[str, PropertyAssumption],
    interest_rate: float,
    recognition_rate: float,
    policy: LendingPolicy = DEFAULT_POLICY,
) -> PortfolioCashflow:
    gross = 0.0
    interest = 0.0
    expenses = 0.0
    for purchase in purchases:
        cf = property_cashflow(purchase, as_of_year, property_data, interest_rate, recognition_rate, policy)
        if cf is None:
            continue
        gross += cf.rental_income
        interest += cf.loan_interest
        expenses += cf.expenses
    return PortfolioCashflow(gross_rental_income=gross, loan_interest=interest, expenses=expenses)


def owned_before(purchases: Iterable[Purchase], year: int) -> List[Purchase]:
    return [p for p in purchases if p.year < year]


def owned_by(purchases: Iterable[Purchase], year: int) -> List[Purchase]:
    return [p for p in purchases if p.year <= year]


def sort_history(purchases: Iterable[Purchase]) -> List[Purchase]:
    """Return the history ordered by purchase year (stable for equal years)."""
    return sorted(purchases, key=lambda p: p.year)


def last_purchase_year(purchases: Sequence[Purchase]) -> int:
    return max((p.year for p in purchases), default=0)


def first_purchase_year(purchases: Sequence[Purchase], default: int) -> int:
    return min((p.year for p in purchases), default=default)
