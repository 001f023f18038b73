"""Tests for goal feasibility analysis."""

from __future__ import annotations

import math

from roadmap.core.feasibility import analyze_feasibility
from roadmap.core.inputs import ProjectionRequest
from roadmap.core.timeline import TimelineEntry


def _request(quantity: int = 2, **profile) -> ProjectionRequest:
    base_profile = {"depositPool": 150000, "borrowingCapacity": 700000, "timelineYears": 10}
    base_profile.update(profile)
    return ProjectionRequest.from_payload({
        "selections": {"u": quantity},
        "profile": base_profile,
        "propertyTypes": [{"id": "u", "title": "Unit", "cost": 500000, "depositRequired": 100000}],
        "propertyDataMap": {"Unit": {"growth": "5", "yield": "4.5"}},
    })


def _challenging(n: int) -> list[TimelineEntry]:
    return [
        TimelineEntry(
            id=f"u_{i}",
            title="Unit",
            cost=500000.0,
            deposit_required=100000.0,
            loan_amount=400000.0,
            affordable_year=math.inf,
            relative_year=math.inf,
            status="challenging",
        )
        for i in range(n)
    ]


def test_nothing_selected_is_achievable():
    a = analyze_feasibility(_request(quantity=0), [])
    assert a.is_achievable is True
    assert a.severity == "none"
    assert a.bottlenecks == []


def test_comfortable_goals():
    a = analyze_feasibility(_request(quantity=1, depositPool=500000, borrowingCapacity=2000000), [])
    assert a.severity == "none"
    assert a.message == "Your goals look achievable!"


def test_deposit_and_borrowing_shortfalls():
    a = analyze_feasibility(_request(baseSalary=100000, salaryServiceabilityMultiplier=5), [])
    kinds = [b.kind for b in a.bottlenecks]
    assert kinds == ["deposit", "borrowing"]
    assert a.bottlenecks[0].message == "Deposit shortfall: $50k"
    assert a.bottlenecks[1].shortfall == 100000
    assert a.severity == "moderate"
    actions = [s.action for s in a.suggestions]
    assert actions[0] == "Increase deposit pool to $200k"
    assert actions[1] == "Increase borrowing capacity to $800k"
    assert "Increase base salary to $120k" in actions


def test_salary_suggestion_needs_salary_inputs():
    a = analyze_feasibility(_request(), [])
    assert not any("salary" in s.action for s in a.suggestions)


def test_timeline_only_is_minor():
    a = analyze_feasibility(
        _request(quantity=5, depositPool=5_000_000, borrowingCapacity=10_000_000, timelineYears=2), []
    )
    assert [b.kind for b in a.bottlenecks] == ["timeline"]
    assert a.severity == "minor"
    assert a.suggestions[0].action == "Extend timeline to 3 years"


def test_mostly_challenging_is_major():
    a = analyze_feasibility(
        _request(quantity=2, depositPool=5_000_000, borrowingCapacity=10_000_000), _challenging(2)
    )
    assert a.severity == "major"
    assert a.bottlenecks[0].message == "2 properties cannot be afforded with current settings"
    assert a.is_achievable is False


def test_suggestions_capped_at_four():
    a = analyze_feasibility(
        _request(quantity=30, depositPool=100000, borrowingCapacity=100000, timelineYears=5), _challenging(3)
    )
    assert len(a.suggestions) == 4
    assert len(a.bottlenecks) == 4
