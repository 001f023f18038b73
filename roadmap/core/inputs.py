"""Typed projection inputs parsed from the request payload.

The UI ships its request as a loosely typed JSON object (camelCase keys,
percentages as strings such as ``"5"`` or ``"4.5%"``). This module turns that
object into frozen dataclasses the engine can rely on. Parsing is forgiving for
*values* (bad numbers fall back to defaults) but strict for *shape*: a payload
whose top-level structure is wrong raises ``ProjectionInputError`` so the
caller can report it.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


class ProjectionInputError(ValueError):
    """Raised when a projection request does not have the expected structure."""


def _f(x, default=0.0):
    try:
        v = float(x)
    except (TypeError, ValueError):
        return float(default)
    if not math.isfinite(v):
        return float(default)
    return v


def _i(x, default=0):
    try:
        return int(float(x))
    except (TypeError, ValueError, OverflowError):
        return int(default)


def parse_pct(x: Any, default: float = 0.0) -> float:
    """Parse a percentage given as a number or a string with a leading number.

    ``"5"`` -> 5.0, ``"4.5%"`` -> 4.5, ``6`` -> 6.0, ``"abc"`` -> ``default``.
    """
    if isinstance(x, bool) or x is None:
        return float(default)
    if isinstance(x, (int, float)):
        return _f(x, default)
    m = _LEADING_NUMBER.match(str(x))
    if not m:
        return float(default)
    return _f(m.group(0), default)


def _pick(payload: Mapping[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in payload:
        return payload[camel]
    return payload.get(snake, default)


def _require_mapping(value: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ProjectionInputError(f"{name} must be an object, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class InvestorProfile:
    deposit_pool: float = 0.0
    borrowing_capacity: float = 0.0
    portfolio_value: float = 0.0
    current_debt: float = 0.0
    annual_savings: float = 0.0
    timeline_years: int = 15
    equity_release_factor: float = 0.35
    consolidations_remaining: int = 3
    last_consolidation_year: int = 0

    # Planning goals and salary inputs; only read by downstream analysis.
    equity_goal: float = 0.0
    cashflow_goal: float = 0.0
    base_salary: float = 0.0
    salary_serviceability_multiplier: float = 0.0

    @property
    def usable_equity(self) -> float:
        """Equity in the existing portfolio a lender would release today (80% LVR)."""
        return self.portfolio_value * 0.8 - self.current_debt

    @property
    def derived_available_deposit(self) -> float:
        return self.deposit_pool + self.usable_equity

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "InvestorProfile":
        p = _require_mapping({} if payload is None else payload, "profile")
        d = cls()
        return cls(
            deposit_pool=_f(_pick(p, "depositPool", "deposit_pool"), d.deposit_pool),
            borrowing_capacity=_f(_pick(p, "borrowingCapacity", "borrowing_capacity"), d.borrowing_capacity),
            portfolio_value=_f(_pick(p, "portfolioValue", "portfolio_value"), d.portfolio_value),
            current_debt=_f(_pick(p, "currentDebt", "current_debt"), d.current_debt),
            annual_savings=_f(_pick(p, "annualSavings", "annual_savings"), d.annual_savings),
            timeline_years=_i(_pick(p, "timelineYears", "timeline_years"), d.timeline_years),
            equity_release_factor=_f(
                _pick(p, "equityReleaseFactor", "equity_release_factor"), d.equity_release_factor
            ),
            consolidations_remaining=_i(
                _pick(p, "consolidationsRemaining", "consolidations_remaining"), d.consolidations_remaining
            ),
            last_consolidation_year=_i(
                _pick(p, "lastConsolidationYear", "last_consolidation_year"), d.last_consolidation_year
            ),
            equity_goal=_f(_pick(p, "equityGoal", "equity_goal"), d.equity_goal),
            cashflow_goal=_f(_pick(p, "cashflowGoal", "cashflow_goal"), d.cashflow_goal),
            base_salary=_f(_pick(p, "baseSalary", "base_salary"), d.base_salary),
            salary_serviceability_multiplier=_f(
                _pick(p, "salaryServiceabilityMultiplier", "salary_serviceability_multiplier"),
                d.salary_serviceability_multiplier,
            ),
        )


@dataclass(frozen=True)
class PropertyType:
    """A catalog entry the client can select (one "property block")."""

    id: str
    title: str
    cost: float
    deposit_required: float
    growth_pct: Optional[float] = None
    yield_pct: Optional[float] = None

    @property
    def loan_amount(self) -> float:
        return self.cost - self.deposit_required

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PropertyType":
        p = _require_mapping(payload, "property type")
        growth = p.get("growth")
        yld = p.get("yield")
        return cls(
            id=str(p.get("id", "")),
            title=str(p.get("title", "")),
            cost=_f(p.get("cost")),
            deposit_required=_f(_pick(p, "depositRequired", "deposit_required")),
            growth_pct=None if growth is None else parse_pct(growth),
            yield_pct=None if yld is None else parse_pct(yld),
        )


@dataclass(frozen=True)
class PropertyAssumption:
    """Growth and rental-yield assumptions (percent) for one property title."""

    growth_pct: float = 0.0
    yield_pct: float = 0.0

    @property
    def growth_rate(self) -> float:
        return self.growth_pct / 100.0

    @property
    def yield_rate(self) -> float:
        return self.yield_pct / 100.0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PropertyAssumption":
        p = _require_mapping(payload, "property data entry")
        return cls(growth_pct=parse_pct(p.get("growth")), yield_pct=parse_pct(p.get("yield")))


@dataclass(frozen=True)
class GlobalFactors:
    growth_rate_pct: float = 0.0
    interest_rate_pct: float = 0.0

    @property
    def growth_rate(self) -> float:
        return self.growth_rate_pct / 100.0

    @property
    def interest_rate(self) -> float:
        return self.interest_rate_pct / 100.0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "GlobalFactors":
        p = _require_mapping({} if payload is None else payload, "globalFactors")
        return cls(
            growth_rate_pct=parse_pct(_pick(p, "growthRate", "growth_rate")),
            interest_rate_pct=parse_pct(_pick(p, "interestRate", "interest_rate")),
        )


@dataclass(frozen=True)
class ProjectionRequest:
    selections: Dict[str, int] = field(default_factory=dict)
    profile: InvestorProfile = field(default_factory=InvestorProfile)
    global_factors: GlobalFactors = field(default_factory=GlobalFactors)
    property_types: Tuple[PropertyType, ...] = ()
    property_data: Dict[str, PropertyAssumption] = field(default_factory=dict)
    available_deposit: float = 0.0

    def find_property_type(self, property_id: str) -> Optional[PropertyType]:
        for prop in self.property_types:
            if prop.id == property_id:
                return prop
        return None

    def assumption_for(self, title: str) -> Optional[PropertyAssumption]:
        return self.property_data.get(title)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "ProjectionRequest":
        """Build a request from the UI's message payload.

        ``availableDeposit`` is optional; when missing it is derived from the
        profile as deposit pool plus usable equity in the existing portfolio.
        """
        obj = _require_mapping(payload, "payload")

        raw_selections = _require_mapping(obj.get("selections", {}), "selections")
        selections: Dict[str, int] = {}
        for prop_id, qty in raw_selections.items():
            selections[str(prop_id)] = _i(qty)

        profile = InvestorProfile.from_payload(obj.get("profile"))
        global_factors = GlobalFactors.from_payload(_pick(obj, "globalFactors", "global_factors"))

        raw_types = _pick(obj, "propertyTypes", "property_types", [])
        if not isinstance(raw_types, (list, tuple)):
            raise ProjectionInputError(f"propertyTypes must be a list, got {type(raw_types).__name__}")
        property_types = tuple(PropertyType.from_payload(p) for p in raw_types)

        raw_data = _require_mapping(_pick(obj, "propertyDataMap", "property_data_map", {}), "propertyDataMap")
        property_data = {str(title): PropertyAssumption.from_payload(v) for title, v in raw_data.items()}

        raw_deposit = _pick(obj, "availableDeposit", "available_deposit")
        if raw_deposit is None:
            available_deposit = profile.derived_available_deposit
        else:
            available_deposit = _f(raw_deposit)

        return cls(
            selections=selections,
            profile=profile,
            global_factors=global_factors,
            property_types=property_types,
            property_data=property_data,
            available_deposit=available_deposit,
        )
