"""Validation helpers for projection requests.

Two layers, mirroring how the UI and the engine use them:

* **Clamping** (``clamp_rate``, ``clamp_positive``, ``validate_request``) keeps
  the numbers the engine runs on inside modelled ranges. Every adjustment emits
  a Python warning; nothing raises.

* **Advisory warnings** (``get_validation_warnings``) list inputs that the
  engine will silently treat as zero-contribution (unknown property ids, titles
  with no growth/yield data) so a caller can surface them before running.
"""

from __future__ import annotations

import dataclasses
import warnings as _warnings
from typing import List

from .inputs import GlobalFactors, InvestorProfile, ProjectionRequest
from .policy import DEFAULT_POLICY, LendingPolicy

MAX_TIMELINE_YEARS = 50


def clamp_rate(value: float, name: str, *, min_val: float = -10.0, max_val: float = 50.0) -> float:
    """Clamp a percentage rate to a reasonable range, warning if adjusted."""
    if value > max_val:
        _warnings.warn(f"{name}={value:.1f}% exceeds maximum {max_val:.1f}%. Clamping to {max_val:.1f}%.")
        return max_val
    if value < min_val:
        _warnings.warn(f"{name}={value:.1f}% is below minimum {min_val:.1f}%. Clamping to {min_val:.1f}%.")
        return min_val
    return value


def clamp_positive(value: float, name: str, *, max_val: float | None = None) -> float:
    """Ensure a value is non-negative, with optional upper bound."""
    if value < 0:
        _warnings.warn(f"{name}={value} is negative. Clamping to 0.")
        return 0.0
    if max_val is not None and value > max_val:
        _warnings.warn(f"{name}={value} exceeds maximum {max_val}. Clamping to {max_val}.")
        return max_val
    return value


def clamp_int(value: int, name: str, *, min_val: int, max_val: int) -> int:
    if value < min_val:
        _warnings.warn(f"{name}={value} is below minimum {min_val}. Clamping to {min_val}.")
        return min_val
    if value > max_val:
        _warnings.warn(f"{name}={value} exceeds maximum {max_val}. Clamping to {max_val}.")
        return max_val
    return value


def validate_profile_params(profile: InvestorProfile, policy: LendingPolicy = DEFAULT_POLICY) -> InvestorProfile:
    """Return a copy of ``profile`` with out-of-range values clamped."""
    factor = profile.equity_release_factor
    if factor < 0.0 or factor > 1.0:
        clamped = min(1.0, max(0.0, factor))
        _warnings.warn(f"Equity release factor={factor} is outside 0..1. Clamping to {clamped}.")
        factor = clamped

    return dataclasses.replace(
        profile,
        deposit_pool=clamp_positive(profile.deposit_pool, "Deposit pool"),
        borrowing_capacity=clamp_positive(profile.borrowing_capacity, "Borrowing capacity"),
        portfolio_value=clamp_positive(profile.portfolio_value, "Portfolio value"),
        current_debt=clamp_positive(profile.current_debt, "Current debt"),
        annual_savings=clamp_positive(profile.annual_savings, "Annual savings"),
        timeline_years=clamp_int(profile.timeline_years, "Timeline years", min_val=1, max_val=MAX_TIMELINE_YEARS),
        equity_release_factor=factor,
        consolidations_remaining=clamp_int(
            profile.consolidations_remaining,
            "Consolidations remaining",
            min_val=0,
            max_val=policy.max_consolidations,
        ),
    )


def validate_global_factors(factors: GlobalFactors) -> GlobalFactors:
    return GlobalFactors(
        growth_rate_pct=clamp_rate(factors.growth_rate_pct, "Growth rate", min_val=-20.0, max_val=30.0),
        interest_rate_pct=clamp_rate(factors.interest_rate_pct, "Interest rate", min_val=0.0, max_val=25.0),
    )


def validate_request(request: ProjectionRequest, policy: LendingPolicy = DEFAULT_POLICY) -> ProjectionRequest:
    """Validate and return a clamped copy of ``request``. Does NOT raise."""
    return dataclasses.replace(
        request,
        profile=validate_profile_params(request.profile, policy),
        global_factors=validate_global_factors(request.global_factors),
    )


def get_validation_warnings(request: ProjectionRequest) -> List[str]:
    """Return human-readable warnings for inputs the engine will not be able to use.

    The list is empty when no issues are detected.
    """
    warnings: List[str] = []

    for prop_id, quantity in request.selections.items():
        if quantity < 0:
            warnings.append(f"Selection '{prop_id}' has a negative quantity ({quantity}) and is ignored.")
            continue
        if quantity == 0:
            continue
        prop = request.find_property_type(prop_id)
        if prop is None:
            warnings.append(f"Selected property '{prop_id}' is not in the property catalog and is ignored.")
            continue
        if request.assumption_for(prop.title) is None:
            warnings.append(
                f"No growth/yield data for '{prop.title}': its rent and growth are treated as zero."
            )
        if prop.deposit_required > prop.cost:
            warnings.append(
                f"Deposit for '{prop.title}' (${prop.deposit_required:,.0f}) exceeds its cost (${prop.cost:,.0f})."
            )

    if request.available_deposit < 0:
        warnings.append(
            f"Available deposit is negative (${request.available_deposit:,.0f}); existing debt exceeds usable equity."
        )

    return warnings
