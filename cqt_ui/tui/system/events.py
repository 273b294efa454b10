"""Closed set of events handled by the explorer controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, TypeAlias, Union

from cqt_source.snapshot import KeyspaceSnapshot


class EventKind(str, Enum):
    RESIZE = "resize"
    KEY_PRESS = "key_press"
    SCAN_RESULT = "scan_result"
    DETAILS_RESULT = "details_result"
    FILTER_CHANGED = "filter_changed"


@dataclass(frozen=True)
class Resize:
    kind: ClassVar[EventKind] = EventKind.RESIZE
    width: int
    height: int


@dataclass(frozen=True)
class KeyPress:
    """A key normalized to prompt_toolkit naming ("up", "c-c", "enter", "a")."""

    kind: ClassVar[EventKind] = EventKind.KEY_PRESS
    key: str

    @property
    def is_printable(self) -> bool:
        return len(self.key) == 1 and self.key.isprintable()


@dataclass(frozen=True)
class ScanResult:
    """Tree input for one scan request.

    ``snapshot_generation`` is the generation of the request that read
    ``snapshot`` from the cluster; 0 stands for the startup snapshot.
    """

    kind: ClassVar[EventKind] = EventKind.SCAN_RESULT
    generation: int
    labels: tuple[str, ...] = ()
    paths: tuple[tuple[str, ...], ...] = ()
    snapshot: KeyspaceSnapshot | None = None
    error: str | None = None
    snapshot_generation: int = 0


@dataclass(frozen=True)
class DetailsResult:
    kind: ClassVar[EventKind] = EventKind.DETAILS_RESULT
    tag: int
    path: tuple[str, ...]
    rows: tuple[tuple[str, str], ...] = field(default=())
    error: str | None = None


@dataclass(frozen=True)
class FilterChanged:
    kind: ClassVar[EventKind] = EventKind.FILTER_CHANGED
    query: str


Event: TypeAlias = Union[Resize, KeyPress, ScanResult, DetailsResult, FilterChanged]
