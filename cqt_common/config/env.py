"""Parsing helpers for values read from environment variables or flags."""

from __future__ import annotations

TRUTHY = frozenset({"1", "true", "yes", "on"})


def parse_bool_env(value: str | None) -> bool | None:
    """True for "1", "true", "yes", "on" (any case); None when unset."""
    if value is None:
        return None
    return value.strip().lower() in TRUTHY


def parse_csv_env(value: str | None) -> list[str]:
    """Split a comma-separated string into trimmed, non-empty tokens.

    Example: "10.0.0.1:9042, 10.0.0.2," -> ["10.0.0.1:9042", "10.0.0.2"]
    """
    if not value:
        return []
    return [token.strip() for token in value.split(",") if token.strip()]
