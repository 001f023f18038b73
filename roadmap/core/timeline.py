"""Timeline entries produced by the projector and their tabular/wire renderings."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

STATUS_FEASIBLE = "feasible"
STATUS_CONSOLIDATION = "consolidation"
STATUS_CHALLENGING = "challenging"
STATUS_HOLD = "hold"


@dataclass(frozen=True)
class ConsolidationDetails:
    properties_sold: int = 0
    equity_freed: float = 0.0
    debt_reduced: float = 0.0


@dataclass(frozen=True)
class TimelineEntry:
    id: str
    title: str
    cost: float
    deposit_required: float
    loan_amount: float
    affordable_year: float  # absolute calendar year; math.inf when never affordable
    relative_year: float
    status: str
    property_index: int = 0
    is_consolidation_event: bool = False

    portfolio_value_after: float = 0.0
    total_equity_after: float = 0.0
    total_debt_after: float = 0.0
    portfolio_value_before: float = 0.0
    total_equity_before: float = 0.0
    total_debt_before: float = 0.0
    available_funds_used: float = 0.0

    gross_rental_income: float = 0.0
    loan_interest: float = 0.0
    expenses: float = 0.0
    net_cashflow: float = 0.0

    deposit_test_surplus: float = 0.0
    deposit_test_pass: bool = True
    serviceability_test_surplus: float = 0.0
    serviceability_test_pass: bool = True
    borrowing_capacity_used: float = 0.0
    borrowing_capacity_remaining: float = 0.0

    is_gap_rule_blocked: bool = False
    rental_recognition_rate: float = 0.0

    base_deposit: float = 0.0
    cumulative_savings: float = 0.0
    cashflow_reinvestment: float = 0.0
    equity_release: float = 0.0

    consolidation_details: Optional[ConsolidationDetails] = field(default=None)

    @property
    def is_purchase(self) -> bool:
        return self.status in (STATUS_FEASIBLE, STATUS_CONSOLIDATION)

    @property
    def is_placed(self) -> bool:
        return math.isfinite(self.affordable_year)

    def to_payload(self) -> Dict[str, Any]:
        """camelCase record in the shape the roadmap UI consumes."""
        out: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "cost": self.cost,
            "depositRequired": self.deposit_required,
            "loanAmount": self.loan_amount,
            "affordableYear": self.affordable_year,
            "status": self.status,
            "isConsolidationEvent": self.is_consolidation_event,
            "propertyIndex": self.property_index,
            "portfolioValueAfter": self.portfolio_value_after,
            "totalEquityAfter": self.total_equity_after,
            "totalDebtAfter": self.total_debt_after,
            "availableFundsUsed": self.available_funds_used,
            "grossRentalIncome": self.gross_rental_income,
            "loanInterest": self.loan_interest,
            "expenses": self.expenses,
            "netCashflow": self.net_cashflow,
            "depositTestSurplus": self.deposit_test_surplus,
            "depositTestPass": self.deposit_test_pass,
            "serviceabilityTestSurplus": self.serviceability_test_surplus,
            "serviceabilityTestPass": self.serviceability_test_pass,
            "borrowingCapacityUsed": self.borrowing_capacity_used,
            "borrowingCapacityRemaining": self.borrowing_capacity_remaining,
            "isGapRuleBlocked": self.is_gap_rule_blocked,
            "rentalRecognitionRate": self.rental_recognition_rate,
            "portfolioValueBefore": self.portfolio_value_before,
            "totalEquityBefore": self.total_equity_before,
            "totalDebtBefore": self.total_debt_before,
            "baseDeposit": self.base_deposit,
            "cumulativeSavings": self.cumulative_savings,
            "cashflowReinvestment": self.cashflow_reinvestment,
            "equityRelease": self.equity_release,
        }
        if self.consolidation_details is not None:
            out["isConsolidationPhase"] = True
            out["consolidationDetails"] = {
                "propertiesSold": self.consolidation_details.properties_sold,
                "equityFreed": self.consolidation_details.equity_freed,
                "debtReduced": self.consolidation_details.debt_reduced,
            }
        return out


# Column name -> entry attribute, in display order.
FRAME_COLUMNS = {
    "Year": "affordable_year",
    "Relative Year": "relative_year",
    "Status": "status",
    "Property": "title",
    "Instance": "id",
    "Cost": "cost",
    "Deposit Required": "deposit_required",
    "Loan Amount": "loan_amount",
    "Portfolio Value": "portfolio_value_after",
    "Total Equity": "total_equity_after",
    "Total Debt": "total_debt_after",
    "Available Funds": "available_funds_used",
    "Gross Rental Income": "gross_rental_income",
    "Loan Interest": "loan_interest",
    "Expenses": "expenses",
    "Net Cashflow": "net_cashflow",
    "Deposit Test Surplus": "deposit_test_surplus",
    "Deposit Test Pass": "deposit_test_pass",
    "Serviceability Test Surplus": "serviceability_test_surplus",
    "Serviceability Test Pass": "serviceability_test_pass",
    "Borrowing Capacity Remaining": "borrowing_capacity_remaining",
    "Rental Recognition Rate": "rental_recognition_rate",
    "Base Deposit": "base_deposit",
    "Cumulative Savings": "cumulative_savings",
    "Cashflow Reinvestment": "cashflow_reinvestment",
    "Equity Release": "equity_release",
}


def timeline_to_frame(entries: Sequence[TimelineEntry]) -> pd.DataFrame:
    """One row per timeline year, columns in ``FRAME_COLUMNS`` order."""
    rows: List[Dict[str, Any]] = []
    for entry in entries:
        raw = asdict(entry)
        row = {col: raw[attr] for col, attr in FRAME_COLUMNS.items()}
        details = entry.consolidation_details
        row["Properties Sold"] = details.properties_sold if details is not None else 0
        rows.append(row)
    columns = list(FRAME_COLUMNS) + ["Properties Sold"]
    return pd.DataFrame(rows, columns=columns)
