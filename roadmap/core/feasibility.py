"""Goal feasibility analysis.

Compares what the client asked for (the property selections) against their
deposit pool, borrowing capacity and timeline, and against what the projector
actually managed to place, then produces bottlenecks, up to four suggestions and
an overall severity.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .inputs import ProjectionRequest
from .timeline import STATUS_CHALLENGING, TimelineEntry

MAX_PURCHASES_PER_YEAR = 2
MAX_SUGGESTIONS = 4

SEVERITY_NONE = "none"
SEVERITY_MINOR = "minor"
SEVERITY_MODERATE = "moderate"
SEVERITY_MAJOR = "major"

_MESSAGES = {
    SEVERITY_NONE: "Your goals look achievable!",
    SEVERITY_MINOR: "Your goals are close! Here's a small adjustment to consider:",
    SEVERITY_MODERATE: "Your goals are ambitious! Here are some adjustments that would help:",
    SEVERITY_MAJOR: "Let's optimize your strategy to make these goals more achievable:",
}


@dataclass(frozen=True)
class Bottleneck:
    kind: str  # deposit | borrowing | timeline | serviceability
    message: str
    shortfall: float


@dataclass(frozen=True)
class Suggestion:
    action: str
    impact: str
    priority: str  # high | medium | low
    specific_value: Optional[str] = None


@dataclass(frozen=True)
class FeasibilityAnalysis:
    is_achievable: bool
    severity: str
    bottlenecks: List[Bottleneck] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)
    message: str = ""


def _k(amount: float) -> str:
    return f"${math.floor(amount / 1000 + 0.5)}k"


def _plural(n: int) -> str:
    return "property" if n == 1 else "properties"


def analyze_feasibility(request: ProjectionRequest, entries: Sequence[TimelineEntry]) -> FeasibilityAnalysis:
    """Explain why the selected goals may not be reachable.

    ``entries`` may be the purchase plan's entries or the assembled timeline;
    only their ``status`` is read, to count challenging instances.
    """
    profile = request.profile

    selected = []
    for prop_id, quantity in request.selections.items():
        if quantity <= 0:
            continue
        prop = request.find_property_type(prop_id)
        if prop is not None:
            selected.append((prop, quantity))

    if not selected:
        return FeasibilityAnalysis(is_achievable=True, severity=SEVERITY_NONE)

    bottlenecks: List[Bottleneck] = []
    suggestions: List[Suggestion] = []

    total_properties = sum(q for _, q in selected)
    total_deposit = sum(p.deposit_required * q for p, q in selected)
    total_loan = sum(p.loan_amount * q for p, q in selected)

    deposit_shortfall = total_deposit - profile.deposit_pool
    if deposit_shortfall > 0:
        bottlenecks.append(Bottleneck("deposit", f"Deposit shortfall: {_k(deposit_shortfall)}", deposit_shortfall))
        target = math.ceil((profile.deposit_pool + deposit_shortfall) / 5000) * 5000
        first_n = min(2, total_properties)
        suggestions.append(
            Suggestion(
                action=f"Increase deposit pool to {_k(target)}",
                impact=f"This would provide enough capital for your first {first_n} {_plural(total_properties)}",
                priority="high",
                specific_value=_k(target),
            )
        )

    borrowing_shortfall = total_loan - profile.borrowing_capacity
    if borrowing_shortfall > 0:
        bottlenecks.append(
            Bottleneck(
                "borrowing", f"Borrowing capacity shortfall: {_k(borrowing_shortfall)}", borrowing_shortfall
            )
        )
        target = math.ceil((profile.borrowing_capacity + borrowing_shortfall) / 10000) * 10000
        suggestions.append(
            Suggestion(
                action=f"Increase borrowing capacity to {_k(target)}",
                impact="This would allow you to finance all your target properties",
                priority="high",
                specific_value=_k(target),
            )
        )

    max_in_timeline = profile.timeline_years * MAX_PURCHASES_PER_YEAR
    if total_properties > max_in_timeline:
        years_needed = math.ceil(total_properties / MAX_PURCHASES_PER_YEAR)
        bottlenecks.append(
            Bottleneck(
                "timeline",
                f"Timeline too short for {total_properties} properties "
                f"(max {max_in_timeline} in {profile.timeline_years} years)",
                total_properties - max_in_timeline,
            )
        )
        suggestions.append(
            Suggestion(
                action=f"Extend timeline to {years_needed} years",
                impact=f"Allows for {total_properties} properties at a sustainable pace (2 per year)",
                priority="medium",
                specific_value=f"{years_needed} years",
            )
        )

    reassess_year = math.ceil(profile.timeline_years / 2)
    challenging = sum(1 for e in entries if e.status == STATUS_CHALLENGING)
    if challenging > 0:
        bottlenecks.append(
            Bottleneck(
                "serviceability",
                f"{challenging} {_plural(challenging)} cannot be afforded with current settings",
                challenging,
            )
        )
        feasible = total_properties - challenging
        if feasible > 0:
            suggestions.append(
                Suggestion(
                    action=f"Start with {feasible} {_plural(feasible)} instead of {total_properties}",
                    impact=f"Build momentum with achievable targets, then reassess after year {reassess_year}",
                    priority="high",
                    specific_value=f"{feasible} properties",
                )
            )

    if deposit_shortfall > profile.deposit_pool * 0.5 or borrowing_shortfall > profile.borrowing_capacity * 0.3:
        reduced = max(1, math.floor(total_properties * 0.6))
        suggestions.append(
            Suggestion(
                action=f"Consider starting with {reduced} {_plural(reduced)} instead of {total_properties}",
                impact=f"Build momentum with achievable targets, then reassess after year {reassess_year}",
                priority="medium",
                specific_value=f"{reduced} properties",
            )
        )

    if 0 < deposit_shortfall < profile.deposit_pool * 0.3:
        years_to_save = 2
        extra = math.ceil(deposit_shortfall / years_to_save / 1000) * 1000
        suggestions.append(
            Suggestion(
                action=f"Increase annual savings by {_k(extra)}",
                impact=f"Reach your deposit target in {years_to_save} years",
                priority="low",
                specific_value=f"{_k(extra)}/year",
            )
        )

    multiplier = profile.salary_serviceability_multiplier
    if 0 < borrowing_shortfall < profile.borrowing_capacity * 0.2 and multiplier > 0 and profile.base_salary > 0:
        extra_salary = math.ceil(borrowing_shortfall / multiplier / 1000) * 1000
        new_salary = _k(profile.base_salary + extra_salary)
        suggestions.append(
            Suggestion(
                action=f"Increase base salary to {new_salary}",
                impact=f"Improves borrowing capacity by approximately {_k(borrowing_shortfall)}",
                priority="low",
                specific_value=new_salary,
            )
        )

    if not bottlenecks:
        severity = SEVERITY_NONE
    elif len(bottlenecks) == 1 and bottlenecks[0].kind == "timeline":
        severity = SEVERITY_MINOR
    elif (
        deposit_shortfall > profile.deposit_pool
        or borrowing_shortfall > profile.borrowing_capacity * 0.5
        or challenging > total_properties * 0.5
    ):
        severity = SEVERITY_MAJOR
    else:
        severity = SEVERITY_MODERATE

    return FeasibilityAnalysis(
        is_achievable=severity == SEVERITY_NONE,
        severity=severity,
        bottlenecks=bottlenecks,
        suggestions=suggestions[:MAX_SUGGESTIONS],
        message=_MESSAGES[severity],
    )
