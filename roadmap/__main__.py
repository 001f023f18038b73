"""CLI / headless entry point for the property roadmap projector.

Usage
-----
Run with a JSON request file:
    python -m roadmap --config request.json --output timeline.csv

Dump an example request file:
    python -m roadmap --example

Override profile or global factor values on the command line:
    python -m roadmap --config request.json --set timelineYears=20 --set interestRate=6.5

Serve CALCULATE messages as JSON lines on stdin/stdout:
    python -m roadmap --serve

The JSON request has the same shape as the worker's CALCULATE payload. See
--example for all supported keys.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

_DEFAULT_PROFILE: dict = {
    "depositPool": 100000.0,
    "borrowingCapacity": 1500000.0,
    "portfolioValue": 0.0,
    "currentDebt": 0.0,
    "annualSavings": 45000.0,
    "timelineYears": 10,
    "equityReleaseFactor": 0.35,
    "consolidationsRemaining": 3,
    "lastConsolidationYear": 0,
    "equityGoal": 1000000.0,
    "cashflowGoal": 50000.0,
}

_DEFAULT_GLOBAL_FACTORS: dict = {
    "growthRate": 5.0,     # annual, percent
    "interestRate": 6.0,   # annual, percent
}


def _build_example() -> dict:
    """Return a complete example request (one unit house, one unit)."""
    return {
        "_comment": (
            "Property roadmap request. 'selections' maps property ids to quantities; "
            "'propertyDataMap' holds growth/yield assumptions keyed by property title."
        ),
        "selections": {"unit-house": 1},
        "profile": _DEFAULT_PROFILE.copy(),
        "globalFactors": _DEFAULT_GLOBAL_FACTORS.copy(),
        "propertyTypes": [
            {"id": "unit-house", "title": "Units / Apartments", "cost": 500000.0, "depositRequired": 100000.0},
        ],
        "propertyDataMap": {
            "Units / Apartments": {"growth": "5", "yield": "4.5"},
        },
    }


def _coerce(raw: str) -> bool | int | float | str:
    if raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    try:
        return int(raw)
    except ValueError:
        try:
            return float(raw)
        except ValueError:
            return raw


def _apply_overrides(request: dict, overrides: list[str]) -> dict:
    """Apply --set key=value overrides to the profile, global factors or request root."""
    for kv in overrides or []:
        if "=" not in kv:
            print(f"Warning: ignoring malformed --set argument (expected key=value): {kv!r}", file=sys.stderr)
            continue
        key, _, raw = kv.partition("=")
        key = key.strip()
        value = _coerce(raw.strip())
        if key in _DEFAULT_GLOBAL_FACTORS:
            request.setdefault("globalFactors", {})[key] = value
        elif key == "availableDeposit":
            request[key] = value
        else:
            request.setdefault("profile", {})[key] = value
    return request


def _load_request(path: Path) -> dict:
    with path.open() as fh:
        loaded = json.load(fh)
    if not isinstance(loaded, dict):
        raise ValueError("request file must contain a JSON object")
    request = _build_example()
    request.pop("_comment", None)
    for key in ("selections", "propertyTypes", "propertyDataMap"):
        if key in loaded:
            request[key] = loaded[key]
    request["profile"].update(loaded.get("profile", {}))
    request["globalFactors"].update(loaded.get("globalFactors", {}))
    if "availableDeposit" in loaded:
        request["availableDeposit"] = loaded["availableDeposit"]
    return request


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m roadmap",
        description="Property roadmap projector: headless/CLI mode.",
    )
    parser.add_argument(
        "--config", "-c",
        metavar="FILE",
        help="Path to a JSON request file. Use --example to generate a template.",
    )
    parser.add_argument(
        "--output", "-o",
        metavar="FILE",
        default="-",
        help="Output CSV file path. Use '-' (default) to print to stdout.",
    )
    parser.add_argument(
        "--set", "-s",
        dest="overrides",
        metavar="key=value",
        action="append",
        help="Override a profile or global factor value. Repeat for multiple overrides.",
    )
    parser.add_argument(
        "--example",
        action="store_true",
        help="Print an example JSON request file and exit.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output a JSON summary instead of the CSV timeline.",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Read CALCULATE messages from stdin (one JSON object per line) and reply on stdout.",
    )

    args = parser.parse_args(argv)

    if args.example:
        print(json.dumps(_build_example(), indent=2))
        return 0

    # Deferred so --example works without pandas installed
    try:
        from roadmap.core.context import ProjectionContext
        from roadmap.core.engine import assemble_timeline, plan_purchases
        from roadmap.core.feasibility import analyze_feasibility
        from roadmap.core.inputs import ProjectionInputError, ProjectionRequest
        from roadmap.core.timeline import timeline_to_frame
        from roadmap.core.validation import get_validation_warnings, validate_request
        from roadmap.core.worker import serve_jsonl
    except ImportError as exc:
        print(f"Error importing engine: {exc}", file=sys.stderr)
        print("Ensure all dependencies are installed: pip install -e .", file=sys.stderr)
        return 1

    if args.serve:
        handled = serve_jsonl(sys.stdin, sys.stdout)
        print(f"Handled {handled} message(s).", file=sys.stderr)
        return 0

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: config file not found: {config_path}", file=sys.stderr)
            return 1
        try:
            payload = _load_request(config_path)
        except (ValueError, json.JSONDecodeError) as exc:
            print(f"Config error: {exc}", file=sys.stderr)
            return 1
    else:
        payload = _build_example()
        payload.pop("_comment", None)

    _apply_overrides(payload, args.overrides)

    try:
        request = ProjectionRequest.from_payload(payload)
    except ProjectionInputError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 1

    for msg in get_validation_warnings(request):
        print(f"Warning: {msg}", file=sys.stderr)

    profile = request.profile
    print(
        f"Projecting {sum(q for q in request.selections.values() if q > 0)} purchase(s) over "
        f"{profile.timeline_years} years: deposit pool=${profile.deposit_pool:,.0f}, "
        f"savings=${profile.annual_savings:,.0f}/yr, "
        f"growth={request.global_factors.growth_rate_pct}%, interest={request.global_factors.interest_rate_pct}%",
        file=sys.stderr,
    )

    try:
        request = validate_request(request)
        plan = plan_purchases(request)
        timeline = assemble_timeline(plan, ProjectionContext.from_request(request))
    except Exception as exc:
        print(f"Projection error: {exc}", file=sys.stderr)
        return 1

    purchases = [e for e in timeline if e.is_purchase]
    print(
        f"Complete. {len(purchases)} purchase year(s) on a {len(timeline)}-year timeline, "
        f"{len(plan.challenging)} challenging.",
        file=sys.stderr,
    )

    if args.json:
        # Output a compact summary JSON
        feasibility = analyze_feasibility(request, plan.entries)
        last = timeline[-1]
        summary = {
            "first_year": timeline[0].affordable_year,
            "last_year": last.affordable_year,
            "purchases": [
                {"id": e.id, "title": e.title, "year": e.affordable_year, "status": e.status}
                for e in purchases
            ],
            "challenging_count": len(plan.challenging),
            "final_portfolio_value": round(last.portfolio_value_after, 2),
            "final_total_equity": round(last.total_equity_after, 2),
            "final_total_debt": round(last.total_debt_after, 2),
            "feasibility_severity": feasibility.severity,
        }
        output = json.dumps(summary, indent=2)
        if args.output == "-":
            print(output)
        else:
            Path(args.output).write_text(output + "\n")
        return 0

    csv_str = timeline_to_frame(timeline).to_csv(index=False)
    if args.output == "-":
        print(csv_str, end="")
    else:
        out_path = Path(args.output)
        out_path.write_text(csv_str)
        print(f"Timeline written to {out_path}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
