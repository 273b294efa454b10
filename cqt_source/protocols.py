from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, TypeAlias

from cqt_source.snapshot import KeyspaceSnapshot

RowPair: TypeAlias = tuple[str, str]

DEFAULT_PORT = 9042
DEFAULT_ROW_LIMIT = 20


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str


class MetadataSource(Protocol):
    @property
    def keyspace(self) -> str: ...

    def fetch_keyspace_metadata(self) -> KeyspaceSnapshot: ...

    def fetch_rows(self, path: Sequence[str]) -> list[RowPair]: ...

    def close(self) -> None: ...
