"""Timeline projection engine.

Given the client's property selections and financial position, work out in which
year each selected property can be bought, then lay the purchases out on a
year-by-year timeline with "hold" years in between.

Each property instance is processed in selection order. For each one the engine
searches forward from year 1 for the earliest year that passes the deposit and
serviceability tests (respecting a one-year gap after the previous purchase),
possibly consolidating the portfolio on the way. Years without a purchase are
backfilled with the organic growth of what is already owned.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from .affordability import AffordabilityResult, ConsolidationResult, ConsolidationState, check_affordability
from .context import ProjectionContext
from .inputs import ProjectionRequest, PropertyType
from .policy import DEFAULT_POLICY, LendingPolicy, rental_recognition_rate
from .portfolio import (
    Purchase,
    grown_value,
    last_purchase_year,
    owned_before,
    owned_by,
    portfolio_cashflow,
    property_cashflow,
    sort_history,
)
from .timeline import (
    STATUS_CHALLENGING,
    STATUS_CONSOLIDATION,
    STATUS_FEASIBLE,
    STATUS_HOLD,
    ConsolidationDetails,
    TimelineEntry,
)
from .validation import validate_request


@dataclass(frozen=True)
class PropertyInstance:
    prop: PropertyType
    index: int

    @property
    def instance_id(self) -> str:
        return f"{self.prop.id}_{self.index}"


@dataclass(frozen=True)
class PurchaseDecision:
    year: float  # absolute year, math.inf when no year in the horizon works
    relative_year: float
    affordability: Optional[AffordabilityResult] = None
    updated_purchases: Optional[Tuple[Purchase, ...]] = None

    @property
    def placed(self) -> bool:
        return math.isfinite(self.year)

    @property
    def consolidation(self) -> Optional[ConsolidationResult]:
        if self.affordability is None:
            return None
        return self.affordability.consolidation


@dataclass
class PurchasePlan:
    entries: List[TimelineEntry] = field(default_factory=list)
    history: Tuple[Purchase, ...] = ()
    state: ConsolidationState = field(default_factory=ConsolidationState)

    @property
    def placed(self) -> List[TimelineEntry]:
        return [e for e in self.entries if e.is_placed]

    @property
    def challenging(self) -> List[TimelineEntry]:
        return [e for e in self.entries if e.status == STATUS_CHALLENGING]


def expand_selections(request: ProjectionRequest) -> List[PropertyInstance]:
    """Turn ``{property_id: quantity}`` into one instance per unit, in selection order.

    Unknown ids and non-positive quantities are skipped.
    """
    instances: List[PropertyInstance] = []
    for prop_id, quantity in request.selections.items():
        if quantity <= 0:
            continue
        prop = request.find_property_type(prop_id)
        if prop is None:
            continue
        for i in range(quantity):
            instances.append(PropertyInstance(prop=prop, index=i))
    return instances


def determine_next_purchase_year(
    prop: PropertyType,
    purchases: Sequence[Purchase],
    ctx: ProjectionContext,
    state: ConsolidationState,
) -> PurchaseDecision:
    """Earliest year in the horizon in which ``prop`` passes the affordability checks.

    Years up to and including the year after the latest purchase are skipped. When
    the winning check consolidated the portfolio, the post-sale history plus the
    new purchase is returned in ``updated_purchases`` and the consolidation is
    committed to ``state``.
    """
    policy = ctx.policy
    current = list(purchases)

    for year in range(1, ctx.profile.timeline_years + 1):
        last_year = last_purchase_year(current)
        if last_year > 0 and year <= last_year + 1:
            continue

        funds = ctx.available_funds(year, current)
        result = check_affordability(prop, funds, current, year, ctx, state)
        if not result.can_afford:
            continue

        absolute_year = policy.to_absolute_year(year)
        if result.consolidation is not None:
            updated = list(result.consolidation.updated_purchases)
            updated.append(Purchase.from_property(prop, year))
            state.commit(year)
            return PurchaseDecision(absolute_year, year, result, tuple(updated))
        return PurchaseDecision(absolute_year, year, result)

    return PurchaseDecision(math.inf, math.inf)


def _challenging_entry(instance: PropertyInstance, ctx: ProjectionContext) -> TimelineEntry:
    prop = instance.prop
    return TimelineEntry(
        id=instance.instance_id,
        title=prop.title,
        cost=prop.cost,
        deposit_required=prop.deposit_required,
        loan_amount=prop.loan_amount,
        affordable_year=math.inf,
        relative_year=math.inf,
        status=STATUS_CHALLENGING,
        property_index=instance.index,
        deposit_test_pass=False,
        serviceability_test_pass=False,
        borrowing_capacity_used=prop.loan_amount,
        borrowing_capacity_remaining=ctx.profile.borrowing_capacity,
    )


def build_purchase_entry(
    instance: PropertyInstance,
    decision: PurchaseDecision,
    ctx: ProjectionContext,
) -> TimelineEntry:
    """Full financial snapshot of the portfolio in the year ``instance`` is bought."""
    if not decision.placed or decision.affordability is None:
        return _challenging_entry(instance, ctx)

    prop = instance.prop
    profile = ctx.profile
    policy = ctx.policy
    check = decision.affordability
    history = check.purchases
    year = int(decision.relative_year)
    loan = prop.loan_amount

    value_after = 0.0
    if profile.portfolio_value > 0:
        value_after += grown_value(profile.portfolio_value, year - 1, ctx.growth_rate)
    debt_after = profile.current_debt
    for purchase in history:
        value_after += grown_value(purchase.cost, year - purchase.year, ctx.growth_rate)
        debt_after += purchase.loan_amount
    value_after += prop.cost
    debt_after += loan
    equity_after = value_after - debt_after

    new_purchase = Purchase.from_property(prop, year)
    owned = owned_by(history, year)
    recognition = rental_recognition_rate(len(owned) + 1, policy)
    cash = portfolio_cashflow(
        owned + [new_purchase], year, ctx.property_data, ctx.interest_rate, recognition, policy
    )

    consolidation = check.consolidation
    details = None
    if consolidation is not None:
        details = ConsolidationDetails(
            properties_sold=consolidation.properties_sold,
            equity_freed=consolidation.equity_freed,
            debt_reduced=consolidation.debt_reduced,
        )

    funds = check.funds
    return TimelineEntry(
        id=instance.instance_id,
        title=prop.title,
        cost=prop.cost,
        deposit_required=prop.deposit_required,
        loan_amount=loan,
        affordable_year=decision.year,
        relative_year=year,
        status=STATUS_CONSOLIDATION if consolidation is not None else STATUS_FEASIBLE,
        property_index=instance.index,
        is_consolidation_event=consolidation is not None,
        portfolio_value_after=value_after,
        total_equity_after=equity_after,
        total_debt_after=debt_after,
        portfolio_value_before=value_after - prop.cost,
        total_equity_before=equity_after - (prop.cost - loan),
        total_debt_before=debt_after - loan,
        available_funds_used=funds.total,
        gross_rental_income=cash.gross_rental_income,
        loan_interest=cash.loan_interest,
        expenses=cash.expenses,
        net_cashflow=cash.net_cashflow,
        deposit_test_surplus=check.deposit_test.surplus,
        deposit_test_pass=check.deposit_test.passed,
        serviceability_test_surplus=check.serviceability_test.surplus,
        serviceability_test_pass=check.serviceability_test.passed,
        borrowing_capacity_used=loan,
        borrowing_capacity_remaining=profile.borrowing_capacity - debt_after,
        rental_recognition_rate=recognition,
        base_deposit=funds.base_deposit,
        cumulative_savings=funds.cumulative_savings,
        cashflow_reinvestment=funds.cashflow_reinvestment,
        equity_release=funds.equity_release,
        consolidation_details=details,
    )


def build_hold_entry(relative_year: int, purchases: Sequence[Purchase], ctx: ProjectionContext) -> TimelineEntry:
    """A year without a purchase: the existing portfolio just grows.

    No test is run in a hold year, so both tests report pass with zero surplus.
    """
    profile = ctx.profile
    policy = ctx.policy
    absolute_year = policy.to_absolute_year(relative_year)
    owned = owned_before(purchases, relative_year)

    value = 0.0
    if profile.portfolio_value > 0:
        value = grown_value(profile.portfolio_value, relative_year - 1, ctx.growth_rate)
    debt = profile.current_debt
    gross = 0.0
    interest = 0.0
    expenses = 0.0
    recognition = rental_recognition_rate(len(owned), policy)
    for purchase in owned:
        cf = property_cashflow(purchase, relative_year, ctx.property_data, ctx.interest_rate, recognition, policy)
        if cf is None:
            continue
        value += cf.value
        debt += purchase.loan_amount
        gross += cf.rental_income
        interest += cf.loan_interest
        expenses += cf.expenses

    equity = value - debt
    funds = ctx.available_funds(relative_year, owned)
    return TimelineEntry(
        id=f"year_{absolute_year}",
        title="No Purchase",
        cost=0.0,
        deposit_required=0.0,
        loan_amount=0.0,
        affordable_year=absolute_year,
        relative_year=relative_year,
        status=STATUS_HOLD,
        portfolio_value_after=value,
        total_equity_after=equity,
        total_debt_after=debt,
        portfolio_value_before=value,
        total_equity_before=equity,
        total_debt_before=debt,
        available_funds_used=funds.total,
        gross_rental_income=gross,
        loan_interest=interest,
        expenses=expenses,
        net_cashflow=gross - interest - expenses,
        borrowing_capacity_remaining=profile.borrowing_capacity - debt,
        base_deposit=funds.base_deposit,
        cumulative_savings=funds.cumulative_savings,
        cashflow_reinvestment=funds.cashflow_reinvestment,
        equity_release=funds.equity_release,
    )


def plan_purchases(request: ProjectionRequest, policy: LendingPolicy = DEFAULT_POLICY) -> PurchasePlan:
    """Place every selected property instance, in order, on the purchase history."""
    ctx = ProjectionContext.from_request(request, policy)
    state = ConsolidationState.from_profile(request.profile, policy)
    history: List[Purchase] = []
    entries: List[TimelineEntry] = []

    for instance in expand_selections(request):
        decision = determine_next_purchase_year(instance.prop, history, ctx, state)
        entries.append(build_purchase_entry(instance, decision, ctx))

        if not decision.placed:
            continue
        if decision.updated_purchases is not None:
            history = list(decision.updated_purchases)
        else:
            history.append(Purchase.from_property(instance.prop, int(decision.relative_year)))
        history = sort_history(history)

    return PurchasePlan(entries=entries, history=tuple(history), state=state)


def assemble_timeline(plan: PurchasePlan, ctx: ProjectionContext) -> List[TimelineEntry]:
    """One entry per relative year: the purchase made that year, or a hold year."""
    by_year = {}
    for entry in plan.placed:
        by_year[entry.affordable_year] = entry

    timeline: List[TimelineEntry] = []
    for relative_year in range(1, ctx.profile.timeline_years + 1):
        absolute_year = ctx.policy.to_absolute_year(relative_year)
        entry = by_year.get(absolute_year)
        if entry is None:
            entry = build_hold_entry(relative_year, plan.history, ctx)
        timeline.append(entry)
    return timeline


def project_timeline(
    request: Union[ProjectionRequest, Mapping[str, Any]],
    policy: LendingPolicy = DEFAULT_POLICY,
) -> List[TimelineEntry]:
    """Run a full projection and return exactly ``timeline_years`` entries.

    ``request`` may be a ``ProjectionRequest`` or the raw message payload. Out of
    range profile values are clamped (with a warning) before the run.
    """
    if not isinstance(request, ProjectionRequest):
        request = ProjectionRequest.from_payload(request)
    request = validate_request(request, policy)
    ctx = ProjectionContext.from_request(request, policy)
    plan = plan_purchases(request, policy)
    return assemble_timeline(plan, ctx)
