from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class NodeKind(str, Enum):
    ROOT = "root"
    CATEGORY = "category"
    ENTITY = "entity"
    FIELD = "field"

    @classmethod
    def for_depth(cls, depth: int) -> "NodeKind":
        if depth <= 0:
            return cls.ROOT
        if depth == 1:
            return cls.CATEGORY
        if depth == 2:
            return cls.ENTITY
        return cls.FIELD


@dataclass
class Node:
    id: int
    label: str
    path: tuple[str, ...]  # own label included; root is ()
    kind: NodeKind
    parent_id: int | None = None
    children: list[int] = field(default_factory=list)
    expanded: bool = False


@dataclass(frozen=True)
class VisibleRow:
    node: Node
    depth: int


@dataclass(frozen=True)
class DetailRow:
    name: str
    raw: str
    formatted: str
