"""Pytest wrappers for the roadmap QA gates."""

from __future__ import annotations

import pytest

from roadmap.core.engine import project_timeline


def test_smoke_import() -> None:
    """Engine import succeeds."""
    assert project_timeline is not None


def test_smoke_check() -> None:
    from roadmap.qa.smoke_check import main as _main

    _main([])


def test_reference_scenarios() -> None:
    from roadmap.qa.qa_scenarios import main as _main

    _main([])


def test_run_all_qa_list(capsys) -> None:
    from run_all_qa import main as _main

    assert _main(["--list"]) == 0
    out = capsys.readouterr().out
    assert "scenarios" in out
    assert "portfolio_monitor" in out


def test_run_all_qa_rejects_unknown_suite() -> None:
    from run_all_qa import main as _main

    assert _main(["--only", "nope"]) == 1


def test_run_all_qa_selection() -> None:
    from run_all_qa import select_suites

    assert select_suites() == ["smoke", "scenarios", "portfolio_monitor", "funnel_utils"]
    assert select_suites("funnel_utils,smoke") == ["smoke", "funnel_utils"]
    assert select_suites(skip="smoke,scenarios") == ["portfolio_monitor", "funnel_utils"]
    with pytest.raises(KeyError):
        select_suites(skip="nope")


def test_run_all_qa_only_one_suite(capsys) -> None:
    from run_all_qa import main as _main

    assert _main(["--only", "funnel_utils"]) == 0
    assert "1/1 QA suite(s) passed." in capsys.readouterr().out
