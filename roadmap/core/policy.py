"""Lending policy rules used by the timeline projection engine.

These are *rules-of-thumb* that approximate how a lender assesses an investor's
next purchase; real lenders apply additional criteria. All thresholds live on a
single frozen ``LendingPolicy`` so a run can be audited (and re-run) against an
explicit rule set instead of magic numbers scattered through the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class LendingPolicy:
    # Calendar year that relative year 1 maps to.
    base_year: int = 2025

    # Deposit test
    deposit_buffer: float = 40_000.0

    # Serviceability test
    max_dsr_pct: float = 80.0
    dsr_no_income_sentinel: float = 999.0
    expense_ratio: float = 0.30

    # (max portfolio size, recognition rate); sizes above the last tier use ``recognition_floor``.
    recognition_tiers: Tuple[Tuple[int, float], ...] = ((2, 0.75), (4, 0.70))
    recognition_floor: float = 0.65

    # Equity release
    equity_release_lvr: float = 0.80
    equity_release_interval_years: int = 3

    # Consolidation
    consolidation_target_lvr_pct: float = 80.0
    max_consolidations: int = 3
    min_consolidation_gap_years: int = 5
    failures_before_consolidation: int = 2
    cashflow_score_weight: float = 0.6
    equity_score_weight: float = 0.4

    def to_absolute_year(self, relative_year: int) -> int:
        return int(relative_year) + int(self.base_year) - 1

    def to_relative_year(self, absolute_year: float) -> float:
        return absolute_year - int(self.base_year) + 1


DEFAULT_POLICY = LendingPolicy()


def rental_recognition_rate(portfolio_size: int, policy: LendingPolicy = DEFAULT_POLICY) -> float:
    """Share of gross rent a lender recognises for serviceability.

    - 1-2 properties: 75%
    - 3-4 properties: 70%
    - 5+ properties: 65%
    """
    for max_size, rate in policy.recognition_tiers:
        if portfolio_size <= max_size:
            return rate
    return policy.recognition_floor


def consolidation_eligible(
    current_year: int,
    last_consolidation_year: int,
    consolidations_used: int,
    policy: LendingPolicy = DEFAULT_POLICY,
) -> bool:
    """True when enough time has passed and the consolidation allowance is not used up."""
    years_since_last = current_year - last_consolidation_year
    return (
        years_since_last >= policy.min_consolidation_gap_years
        and consolidations_used < policy.max_consolidations
    )
