"""End-to-end projection scenarios."""

from __future__ import annotations

import copy
import math

import pytest

from roadmap.core.affordability import ConsolidationState
from roadmap.core.context import ProjectionContext
from roadmap.core.engine import (
    determine_next_purchase_year,
    expand_selections,
    plan_purchases,
    project_timeline,
)
from roadmap.core.inputs import ProjectionRequest
from roadmap.core.portfolio import Purchase

_BASE = {
    "selections": {"unit-house": 1},
    "profile": {
        "depositPool": 100000,
        "borrowingCapacity": 1500000,
        "portfolioValue": 0,
        "currentDebt": 0,
        "annualSavings": 45000,
        "timelineYears": 10,
        "equityReleaseFactor": 0.35,
        "consolidationsRemaining": 3,
        "lastConsolidationYear": 0,
    },
    "globalFactors": {"growthRate": "5", "interestRate": "6"},
    "propertyTypes": [
        {"id": "unit-house", "title": "Units / Apartments", "cost": 500000, "depositRequired": 100000},
    ],
    "propertyDataMap": {"Units / Apartments": {"growth": "5", "yield": "4.5"}},
    "availableDeposit": 100000,
}


def _payload(quantity: int = 1, available_deposit: float | None = None, **profile) -> dict:
    p = copy.deepcopy(_BASE)
    p["selections"]["unit-house"] = quantity
    p["profile"].update(profile)
    if available_deposit is not None:
        p["availableDeposit"] = available_deposit
    return p


class TestSinglePurchase:
    def test_affordable_in_first_year(self) -> None:
        timeline = project_timeline(_payload())
        assert len(timeline) == 10
        first = timeline[0]
        assert first.id == "unit-house_0"
        assert first.status == "feasible"
        assert first.affordable_year == 2025
        assert first.deposit_test_pass is True
        assert first.deposit_test_surplus == pytest.approx(5000.0)
        assert first.serviceability_test_pass is True
        assert first.serviceability_test_surplus == 0.0
        assert first.available_funds_used == pytest.approx(145000.0)

    def test_post_purchase_snapshot(self) -> None:
        first = project_timeline(_payload())[0]
        assert first.portfolio_value_after == pytest.approx(500000.0)
        assert first.total_debt_after == pytest.approx(400000.0)
        assert first.total_equity_after == pytest.approx(100000.0)
        assert first.portfolio_value_before == pytest.approx(0.0)
        assert first.borrowing_capacity_remaining == pytest.approx(1100000.0)
        assert first.rental_recognition_rate == pytest.approx(0.75)
        rent = 500000.0 * 0.045 * 0.75
        assert first.gross_rental_income == pytest.approx(rent)
        assert first.net_cashflow == pytest.approx(rent - 24000.0 - rent * 0.3)

    def test_hold_years_grow_existing_portfolio(self) -> None:
        timeline = project_timeline(_payload())
        hold = timeline[1]
        assert hold.status == "hold"
        assert hold.id == "year_2026"
        assert hold.title == "No Purchase"
        assert hold.affordable_year == 2026
        assert hold.portfolio_value_after == pytest.approx(525000.0)
        assert hold.total_debt_after == pytest.approx(400000.0)
        assert hold.deposit_test_pass and hold.serviceability_test_pass
        assert [e.affordable_year for e in timeline] == list(range(2025, 2035))

    def test_smaller_pool_waits_for_savings(self) -> None:
        timeline = project_timeline(_payload(available_deposit=20000))
        bought = [e for e in timeline if e.is_purchase]
        assert len(bought) == 1
        # 20k + 45k * Y - 40k buffer >= 100k first holds for Y = 3
        assert bought[0].affordable_year == 2027
        assert bought[0].cumulative_savings == pytest.approx(135000.0)


def test_gap_rule_keeps_a_year_between_purchases():
    p = _payload(quantity=2, available_deposit=1_000_000)
    p["globalFactors"]["interestRate"] = "2"
    p["propertyDataMap"]["Units / Apartments"]["yield"] = "10"
    timeline = project_timeline(p)
    assert [e.status for e in timeline[:4]] == ["feasible", "hold", "feasible", "hold"]
    assert timeline[2].id == "unit-house_1"
    assert timeline[2].property_index == 1


class TestConsolidation:
    def test_negative_cashflow_holding_is_sold(self) -> None:
        plan = plan_purchases(ProjectionRequest.from_payload(_payload(quantity=2, equityReleaseFactor=1.0)))
        second = plan.entries[1]
        assert second.status == "consolidation"
        assert second.is_consolidation_event is True
        assert second.affordable_year == 2029
        details = second.consolidation_details
        assert details.properties_sold == 1
        assert details.equity_freed == pytest.approx(207753.125)
        assert details.debt_reduced == pytest.approx(400000.0)
        assert [p.year for p in plan.history] == [5]
        assert plan.state.consolidations_used == 1
        assert plan.state.last_consolidation_year == 5

    def test_payload_flags_consolidation_phase(self) -> None:
        timeline = project_timeline(_payload(quantity=2, equityReleaseFactor=1.0))
        record = timeline[4].to_payload()
        assert record["status"] == "consolidation"
        assert record["isConsolidationPhase"] is True
        assert record["consolidationDetails"]["propertiesSold"] == 1
        assert "isConsolidationPhase" not in timeline[0].to_payload()

    def test_no_consolidations_left_is_challenging(self) -> None:
        req = ProjectionRequest.from_payload(
            _payload(quantity=2, equityReleaseFactor=1.0, consolidationsRemaining=0)
        )
        plan = plan_purchases(req)
        second = plan.entries[1]
        assert second.status == "challenging"
        assert math.isinf(second.affordable_year)
        assert len(plan.challenging) == 1

    def test_challenging_instance_never_occupies_a_year(self) -> None:
        timeline = project_timeline(_payload(quantity=2, equityReleaseFactor=1.0, consolidationsRemaining=0))
        assert len(timeline) == 10
        assert sum(1 for e in timeline if e.is_purchase) == 1
        assert all(e.status != "challenging" for e in timeline)

    def test_recent_consolidation_delays_the_next(self) -> None:
        plan = plan_purchases(
            ProjectionRequest.from_payload(_payload(quantity=2, equityReleaseFactor=1.0, lastConsolidationYear=3))
        )
        assert plan.entries[1].affordable_year == 2032


def test_expand_selections_order_and_skips():
    p = _payload()
    p["selections"] = {"missing": 2, "unit-house": 2, "zero": 0}
    req = ProjectionRequest.from_payload(p)
    ids = [i.instance_id for i in expand_selections(req)]
    assert ids == ["unit-house_0", "unit-house_1"]


def test_unknown_property_ids_are_ignored():
    p = _payload()
    p["selections"] = {"nope": 3}
    timeline = project_timeline(p)
    assert len(timeline) == 10
    assert all(e.status == "hold" for e in timeline)


def test_missing_property_data_contributes_nothing():
    p = _payload()
    p["propertyDataMap"] = {}
    timeline = project_timeline(p)
    assert timeline[0].status == "feasible"
    assert timeline[1].portfolio_value_after == 0.0
    assert timeline[1].total_debt_after == 0.0
    assert timeline[1].gross_rental_income == 0.0


def test_projection_is_deterministic():
    a = [e.to_payload() for e in project_timeline(_payload(quantity=3, equityReleaseFactor=0.8))]
    b = [e.to_payload() for e in project_timeline(_payload(quantity=3, equityReleaseFactor=0.8))]
    assert a == b


def test_timeline_years_clamped(recwarn):
    timeline = project_timeline(_payload(timelineYears=0))
    assert len(timeline) == 1
    assert any("Timeline years" in str(w.message) for w in recwarn)


def test_determine_next_purchase_year_skips_gap_years():
    req = ProjectionRequest.from_payload(_payload(available_deposit=1_000_000))
    ctx = ProjectionContext.from_request(req)
    prop = req.find_property_type("unit-house")
    history = [Purchase.from_property(prop, 1)]
    decision = determine_next_purchase_year(prop, history, ctx, ConsolidationState())
    assert decision.relative_year >= 3


def test_no_year_in_horizon():
    req = ProjectionRequest.from_payload(_payload(available_deposit=0, annualSavings=0))
    ctx = ProjectionContext.from_request(req)
    decision = determine_next_purchase_year(req.find_property_type("unit-house"), [], ctx, ConsolidationState())
    assert decision.placed is False
    assert math.isinf(decision.year)


@pytest.mark.parametrize("quantity", [2, 3, 4])
def test_purchases_are_at_least_two_years_apart(quantity):
    p = _payload(quantity=quantity, available_deposit=2_000_000, timelineYears=12)
    p["globalFactors"]["interestRate"] = "2"
    p["propertyDataMap"]["Units / Apartments"]["yield"] = "10"
    plan = plan_purchases(ProjectionRequest.from_payload(p))
    years = [purchase.year for purchase in plan.history]
    assert len(years) == quantity
    assert all(b >= a + 2 for a, b in zip(years, years[1:]))


def test_timeline_covers_every_year_once():
    timeline = project_timeline(_payload(quantity=3, available_deposit=300000, timelineYears=15))
    assert [e.relative_year for e in timeline] == list(range(1, 16))
