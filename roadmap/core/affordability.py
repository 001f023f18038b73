"""Deposit and serviceability tests, plus forced portfolio consolidation.

The consecutive-failure counter that drives consolidation lives on a
``ConsolidationState`` owned by one projection run and passed explicitly to
every call that reads or updates it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .context import ProjectionContext
from .funds import FundsBreakdown
from .inputs import InvestorProfile, PropertyType
from .policy import DEFAULT_POLICY, LendingPolicy, consolidation_eligible, rental_recognition_rate
from .portfolio import Purchase, owned_by, portfolio_cashflow, property_cashflow, property_value


@dataclass
class ConsolidationState:
    consecutive_failures: int = 0
    consolidations_used: int = 0
    last_consolidation_year: int = 0

    @classmethod
    def from_profile(cls, profile: InvestorProfile, policy: LendingPolicy = DEFAULT_POLICY) -> "ConsolidationState":
        return cls(
            consecutive_failures=0,
            consolidations_used=policy.max_consolidations - profile.consolidations_remaining,
            last_consolidation_year=profile.last_consolidation_year,
        )

    def record_failure(self) -> int:
        self.consecutive_failures += 1
        return self.consecutive_failures

    def reset_failures(self) -> None:
        self.consecutive_failures = 0

    def is_eligible(self, current_year: int, policy: LendingPolicy = DEFAULT_POLICY) -> bool:
        return consolidation_eligible(
            current_year, self.last_consolidation_year, self.consolidations_used, policy
        )

    def should_consolidate(self, current_year: int, policy: LendingPolicy = DEFAULT_POLICY) -> bool:
        return self.consecutive_failures >= policy.failures_before_consolidation and self.is_eligible(
            current_year, policy
        )

    def commit(self, year: int) -> None:
        """Record a consolidation that made it into the purchase history."""
        self.consolidations_used += 1
        self.last_consolidation_year = int(year)


@dataclass(frozen=True)
class PropertyScore:
    cashflow_score: float = 0.0
    equity_score: float = 0.0
    total_score: float = 0.0


@dataclass(frozen=True)
class ConsolidationResult:
    updated_purchases: Tuple[Purchase, ...]
    equity_freed: float = 0.0
    debt_reduced: float = 0.0
    properties_sold: int = 0
    remaining_lvr_pct: float = 0.0
    remaining_cashflow: float = 0.0
    targets_met: bool = False

    def details(self) -> dict:
        return {
            "properties_sold": self.properties_sold,
            "equity_freed": self.equity_freed,
            "debt_reduced": self.debt_reduced,
        }


@dataclass(frozen=True)
class GateOutcome:
    surplus: float
    passed: bool


@dataclass(frozen=True)
class AffordabilityResult:
    can_afford: bool
    deposit_test: GateOutcome
    serviceability_test: GateOutcome
    dsr: float
    funds: FundsBreakdown
    purchases: Tuple[Purchase, ...]
    consolidation: Optional[ConsolidationResult] = None

    @property
    def consolidation_triggered(self) -> bool:
        return self.consolidation is not None


def property_score(purchase: Purchase, current_year: int, ctx: ProjectionContext) -> PropertyScore:
    """Weighted performance score used to pick which property to sell first.

    Uses unshaded (100%) rent; a title without property data scores zero.
    """
    cf = property_cashflow(
        purchase, current_year, ctx.property_data, ctx.interest_rate, 1.0, ctx.policy
    )
    if cf is None:
        return PropertyScore()
    policy = ctx.policy
    return PropertyScore(
        cashflow_score=cf.net_cashflow,
        equity_score=cf.equity,
        total_score=policy.cashflow_score_weight * cf.net_cashflow + policy.equity_score_weight * cf.equity,
    )


def execute_consolidation(
    current_year: int,
    purchases: Sequence[Purchase],
    ctx: ProjectionContext,
    state: ConsolidationState,
) -> ConsolidationResult:
    """Sell the weakest properties until the remaining portfolio is healthy.

    Properties owned in ``current_year`` are sold worst score first. Selling stops
    as soon as the remaining LVR is within target, the remaining cashflow is not
    negative and at least one property has been sold. If the targets are never
    met every rankable property is sold. The failure streak is reset either way;
    ``targets_met`` tells the two outcomes apart.
    """
    if not purchases:
        return ConsolidationResult(updated_purchases=())

    profile = ctx.profile
    policy = ctx.policy
    ranked = sorted(
        ((p, property_score(p, current_year, ctx)) for p in owned_by(purchases, current_year)),
        key=lambda item: item[1].total_score,
    )

    remaining: List[Purchase] = list(purchases)
    equity_freed = 0.0
    debt_reduced = 0.0
    sold = 0
    lvr = 0.0
    net_cashflow = 0.0
    targets_met = False

    for candidate, _score in ranked:
        value = property_value(candidate, current_year, ctx.property_data)
        if value is None:
            continue

        remaining = [p for p in remaining if p is not candidate]
        equity_freed += value - candidate.loan_amount
        debt_reduced += candidate.loan_amount
        sold += 1

        remaining_debt = profile.current_debt
        for p in remaining:
            remaining_debt += p.loan_amount

        remaining_value = profile.portfolio_value
        for p in remaining:
            v = property_value(p, current_year, ctx.property_data)
            if v is not None:
                remaining_value += v

        net_cashflow = 0.0
        for p in remaining:
            net_cashflow += property_score(p, current_year, ctx).cashflow_score

        lvr = (remaining_debt / remaining_value) * 100.0 if remaining_value > 0 else 0.0

        if lvr <= policy.consolidation_target_lvr_pct and net_cashflow >= 0 and sold >= 1:
            targets_met = True
            break

    state.reset_failures()

    return ConsolidationResult(
        updated_purchases=tuple(remaining),
        equity_freed=equity_freed,
        debt_reduced=debt_reduced,
        properties_sold=sold,
        remaining_lvr_pct=lvr,
        remaining_cashflow=net_cashflow,
        targets_met=targets_met,
    )


def check_affordability(
    prop: PropertyType,
    funds: FundsBreakdown,
    purchases: Sequence[Purchase],
    current_year: int,
    ctx: ProjectionContext,
    state: ConsolidationState,
) -> AffordabilityResult:
    """Run the deposit and serviceability tests for buying ``prop`` in ``current_year``.

    A deposit failure is final. A serviceability failure extends the failure
    streak; once the streak is long enough (and the investor is eligible) the
    portfolio is consolidated and both tests are re-run against the post-sale
    history and funds. Each consolidation resets the streak, so the re-check
    loop is bounded by the size of the history.
    """
    policy = ctx.policy
    history: Tuple[Purchase, ...] = tuple(purchases)
    consolidation: Optional[ConsolidationResult] = None
    max_evaluations = len(history) + 1
    result: Optional[AffordabilityResult] = None

    for attempt in range(max_evaluations):
        owned = owned_by(history, current_year)
        recognition = rental_recognition_rate(len(owned), policy)
        cash = portfolio_cashflow(
            owned, current_year, ctx.property_data, ctx.interest_rate, recognition, policy
        )
        dsr = cash.dsr(policy)

        deposit_ok = (funds.total - policy.deposit_buffer) >= prop.deposit_required
        service_ok = dsr <= policy.max_dsr_pct
        deposit_test = GateOutcome(funds.total - policy.deposit_buffer - prop.deposit_required, deposit_ok)
        service_test = GateOutcome(cash.serviceability_surplus(policy), service_ok)

        result = AffordabilityResult(
            can_afford=deposit_ok and service_ok,
            deposit_test=deposit_test,
            serviceability_test=service_test,
            dsr=dsr,
            funds=funds,
            purchases=history,
            consolidation=consolidation,
        )

        if not deposit_ok:
            return result

        if service_ok:
            state.reset_failures()
            return result

        state.record_failure()
        can_retry = attempt < max_evaluations - 1
        if can_retry and history and state.should_consolidate(current_year, policy):
            consolidation = execute_consolidation(current_year, history, ctx, state)
            history = consolidation.updated_purchases
            funds = ctx.available_funds(current_year, history, additional_equity=consolidation.equity_freed)
            continue

        return result

    return result
