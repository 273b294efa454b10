"""Tests for the shared error taxonomy."""

from __future__ import annotations

from pathlib import Path

import pytest

from cqt_common.errors import (
    ClusterConnectionError,
    CqtError,
    DetailsFetchError,
    wrap_error,
)

pytestmark = pytest.mark.unit_common


def test_to_dict_normalizes_context() -> None:
    err = DetailsFetchError(
        "gone",
        context={
            "path": ("Tables", "orders"),
            "file": Path("/tmp/rows"),
            "nested": {"limit": 20, "where": Path("x")},
        },
    )

    payload = err.to_dict()
    assert payload["type"] == "DetailsFetchError"
    assert payload["message"] == "gone"
    assert payload["context"]["path"] == ["Tables", "orders"]
    assert payload["context"]["file"].endswith("rows")
    assert payload["context"]["nested"] == {"limit": 20, "where": "x"}


def test_wrap_error_keeps_cause() -> None:
    cause = OSError("connection refused")
    err = wrap_error(
        ClusterConnectionError, "Unable to connect", context={"port": 9042}, cause=cause
    )

    assert isinstance(err, CqtError)
    assert err.__cause__ is cause
    assert err.context == {"port": 9042}
    assert str(err) == "Unable to connect"


def test_hint_defaults_per_error_type() -> None:
    err = ClusterConnectionError("Unable to connect to localhost:9042")

    assert err.describe().startswith("Unable to connect to localhost:9042 (check")
    assert err.to_dict()["hint"] == err.hint


def test_explicit_empty_hint_suppresses_default() -> None:
    err = ClusterConnectionError("refused", hint="")

    assert err.describe() == "refused"
    assert "hint" not in err.to_dict()
    assert DetailsFetchError("gone").describe() == "gone"
