"""Cash available for the next deposit in a candidate year."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from .inputs import GlobalFactors, InvestorProfile, PropertyAssumption
from .policy import DEFAULT_POLICY, LendingPolicy, rental_recognition_rate
from .portfolio import Purchase, first_purchase_year, grown_value, owned_before, property_cashflow


@dataclass(frozen=True)
class FundsBreakdown:
    total: float
    base_deposit: float
    cumulative_savings: float
    cashflow_reinvestment: float
    equity_release: float
    deposits_used: float

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "base_deposit": self.base_deposit,
            "cumulative_savings": self.cumulative_savings,
            "cashflow_reinvestment": self.cashflow_reinvestment,
            "equity_release": self.equity_release,
            "deposits_used": self.deposits_used,
        }


def releasable_equity(
    current_year: int,
    purchases: Sequence[Purchase],
    profile: InvestorProfile,
    growth_rate: float,
    policy: LendingPolicy = DEFAULT_POLICY,
) -> float:
    """Equity a lender would release in ``current_year``.

    Equity is only refinanced out every ``equity_release_interval_years`` years
    after the first purchase; all other years release nothing. Values grow at the
    global growth rate and each holding is floored at zero before scaling by the
    profile's release factor.
    """
    first_year = first_purchase_year(purchases, default=current_year)
    years_since_first = current_year - first_year
    interval = policy.equity_release_interval_years
    if years_since_first <= 0 or years_since_first % interval != 0:
        return 0.0

    lvr = policy.equity_release_lvr
    factor = profile.equity_release_factor
    total = 0.0
    if profile.portfolio_value > 0:
        grown = grown_value(profile.portfolio_value, current_year - 1, growth_rate)
        total = max(0.0, (grown * lvr - profile.current_debt) * factor)

    for purchase in purchases:
        if purchase.year <= current_year:
            value = grown_value(purchase.cost, current_year - purchase.year, growth_rate)
            total += max(0.0, (value * lvr - purchase.loan_amount) * factor)
    return total


def available_funds(
    current_year: int,
    purchases: Sequence[Purchase],
    *,
    profile: InvestorProfile,
    global_factors: GlobalFactors,
    property_data: Mapping[str, PropertyAssumption],
    starting_cash: float,
    additional_equity: float = 0.0,
    policy: LendingPolicy = DEFAULT_POLICY,
) -> FundsBreakdown:
    """Funds available for a deposit in ``current_year`` given the purchase history.

    Savings accrue every year up to and including ``current_year``. Each year also
    reinvests the net cashflow of properties owned strictly before it. Deposits of
    purchases made on or before ``current_year`` are spent.

    ``cumulative_savings`` is therefore ``annual_savings * current_year``: a
    first-year purchase already counts that year's savings.
    """
    interest_rate = global_factors.interest_rate
    savings_and_cashflow = 0.0
    cashflow_reinvestment = 0.0

    for year in range(1, current_year + 1):
        owned = owned_before(purchases, year)
        recognition = rental_recognition_rate(len(owned), policy)
        net_cashflow = 0.0
        for purchase in owned:
            cf = property_cashflow(purchase, year, property_data, interest_rate, recognition, policy)
            if cf is not None:
                net_cashflow += cf.net_cashflow
        savings_and_cashflow += profile.annual_savings + net_cashflow
        cashflow_reinvestment += net_cashflow

    deposits_used = 0.0
    for purchase in purchases:
        if purchase.year <= current_year:
            deposits_used += purchase.deposit_required

    cash = starting_cash + savings_and_cashflow + additional_equity
    cash -= deposits_used

    equity_release = releasable_equity(current_year, purchases, profile, global_factors.growth_rate, policy)

    return FundsBreakdown(
        total=cash + equity_release,
        base_deposit=max(0.0, starting_cash - deposits_used),
        cumulative_savings=profile.annual_savings * current_year,
        cashflow_reinvestment=cashflow_reinvestment,
        equity_release=equity_release,
        deposits_used=deposits_used,
    )
