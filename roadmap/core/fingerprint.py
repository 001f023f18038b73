"""Deterministic fingerprints of projection requests.

The worker caches its last result keyed by the request fingerprint. Payloads
are canonicalised first (sorted keys, integral floats written as ints) so two
requests that differ only in key order share a fingerprint. Any other change
in a value, however small, gives a new fingerprint.
"""

from __future__ import annotations

import datetime as _dt
import hashlib
import json
import math
from typing import Any

import numpy as np


def _normalize_float(x: float) -> int | float | None:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(v):
        return None
    # 45000.0 and 45000 serialise alike; everything else is kept exactly.
    if v.is_integer():
        return int(v)
    return v


def canonicalize_jsonish(value: Any) -> Any:
    """Return a JSON-safe, deterministically ordered representation.

    Best-effort normalization only; unknown objects are stringified instead of raising.
    """
    if isinstance(value, np.generic):
        value = value.item()

    if value is None or isinstance(value, (str, bool)):
        return value

    if isinstance(value, int):
        return int(value)

    if isinstance(value, float):
        return _normalize_float(value)

    if isinstance(value, (_dt.datetime, _dt.date)):
        return value.isoformat()

    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k in sorted(value.keys(), key=lambda x: str(x)):
            out[str(k)] = canonicalize_jsonish(value[k])
        return out

    if isinstance(value, (list, tuple)):
        return [canonicalize_jsonish(v) for v in value]

    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError):
        return str(value)


def canonical_json(value: Any) -> str:
    return json.dumps(canonicalize_jsonish(value), sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def request_fingerprint(payload: Any) -> str:
    """SHA-256 of the canonical JSON form of ``payload``.

    Purchases are planned in selection order, so the order of the ``selections``
    keys is part of the fingerprint even though dict keys are otherwise sorted.
    """
    order: list[str] = []
    if isinstance(payload, dict) and isinstance(payload.get("selections"), dict):
        order = [str(k) for k in payload["selections"]]
    keyed = {"payload": payload, "selection_order": order}
    return hashlib.sha256(canonical_json(keyed).encode("utf-8")).hexdigest()
