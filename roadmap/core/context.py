"""Per-run inputs shared by the funds, affordability and timeline helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Sequence

from .funds import FundsBreakdown, available_funds
from .inputs import GlobalFactors, InvestorProfile, ProjectionRequest, PropertyAssumption
from .policy import DEFAULT_POLICY, LendingPolicy
from .portfolio import Purchase


@dataclass(frozen=True)
class ProjectionContext:
    profile: InvestorProfile
    global_factors: GlobalFactors
    property_data: Dict[str, PropertyAssumption] = field(default_factory=dict)
    starting_cash: float = 0.0
    policy: LendingPolicy = DEFAULT_POLICY

    @classmethod
    def from_request(cls, request: ProjectionRequest, policy: LendingPolicy = DEFAULT_POLICY) -> "ProjectionContext":
        return cls(
            profile=request.profile,
            global_factors=request.global_factors,
            property_data=dict(request.property_data),
            starting_cash=request.available_deposit,
            policy=policy,
        )

    @property
    def interest_rate(self) -> float:
        return self.global_factors.interest_rate

    @property
    def growth_rate(self) -> float:
        return self.global_factors.growth_rate

    def available_funds(
        self,
        current_year: int,
        purchases: Sequence[Purchase],
        additional_equity: float = 0.0,
    ) -> FundsBreakdown:
        return available_funds(
            current_year,
            purchases,
            profile=self.profile,
            global_factors=self.global_factors,
            property_data=self.property_data,
            starting_cash=self.starting_cash,
            additional_equity=additional_equity,
            policy=self.policy,
        )
