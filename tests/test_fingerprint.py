"""Tests for request canonicalisation and fingerprints."""

from __future__ import annotations

import numpy as np
import pytest

from roadmap.core.fingerprint import _normalize_float, canonical_json, canonicalize_jsonish, request_fingerprint


class TestNormalizeFloat:
    def test_integer_return(self) -> None:
        assert _normalize_float(3.0) == 3
        assert isinstance(_normalize_float(3.0), int)

    def test_float_return(self) -> None:
        assert _normalize_float(3.14) == 3.14

    def test_tiny_value_kept(self) -> None:
        assert _normalize_float(1e-16) == 1e-16

    def test_signed_zero(self) -> None:
        assert _normalize_float(-0.0) == 0
        assert isinstance(_normalize_float(-0.0), int)

    def test_non_finite_returns_none(self) -> None:
        assert _normalize_float(float("nan")) is None
        assert _normalize_float(float("inf")) is None


def test_canonicalize_numpy_scalars():
    assert canonicalize_jsonish(np.float64(2.0)) == 2
    assert canonicalize_jsonish(np.int64(7)) == 7


def test_canonical_json_sorts_keys():
    assert canonical_json({"b": 1, "a": [1.0, None]}) == '{"a":[1,null],"b":1}'


def test_fingerprint_ignores_key_order_and_integral_floats():
    a = {"profile": {"depositPool": 100000.0, "annualSavings": 45000}, "selections": {"u": 1}}
    b = {"selections": {"u": 1}, "profile": {"annualSavings": 45000.0, "depositPool": 100000}}
    assert request_fingerprint(a) == request_fingerprint(b)


def test_fingerprint_changes_with_values():
    a = {"selections": {"u": 1}}
    b = {"selections": {"u": 2}}
    assert request_fingerprint(a) != request_fingerprint(b)


@pytest.mark.parametrize(
    "first,second",
    [(39999.99999999, 40000.00000001), (1e-16, 0.0), (0.1 + 0.2, 0.3)],
)
def test_fingerprint_distinguishes_close_floats(first, second):
    a = {"selections": {"u": 1}, "availableDeposit": first}
    b = {"selections": {"u": 1}, "availableDeposit": second}
    assert request_fingerprint(a) != request_fingerprint(b)


def test_fingerprint_includes_selection_order():
    a = {"selections": {"u": 1, "h": 1}}
    b = {"selections": {"h": 1, "u": 1}}
    assert request_fingerprint(a) != request_fingerprint(b)


def test_fingerprint_is_hex_sha256():
    fp = request_fingerprint({"selections": {}})
    assert len(fp) == 64
    int(fp, 16)
