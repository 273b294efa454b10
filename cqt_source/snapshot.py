"""Driver-independent view of a keyspace schema."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

TABLES = "Tables"
FUNCTIONS = "Functions"
AGGREGATES = "Aggregates"
VIEWS = "Views"
USER_TYPES = "UserTypes"

# (category label, snapshot attribute) in display priority.
CATEGORY_ORDER: tuple[tuple[str, str], ...] = (
    (TABLES, "tables"),
    (FUNCTIONS, "functions"),
    (AGGREGATES, "aggregates"),
    (VIEWS, "materialized_views"),
    (USER_TYPES, "user_types"),
)

CATEGORY_LABELS: tuple[str, ...] = tuple(label for label, _ in CATEGORY_ORDER)


@dataclass(frozen=True)
class KeyspaceSnapshot:
    """Entity names per schema category, each mapped to its ordered field names.

    Fields are columns for tables and views, field names for user types and
    empty for functions and aggregates.
    """

    name: str
    tables: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    functions: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    aggregates: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    materialized_views: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    user_types: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def collection(self, label: str) -> Mapping[str, tuple[str, ...]]:
        for category, attr in CATEGORY_ORDER:
            if category == label:
                return getattr(self, attr)
        raise KeyError(label)

    def is_empty(self) -> bool:
        return not any(getattr(self, attr) for _, attr in CATEGORY_ORDER)
