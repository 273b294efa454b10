from __future__ import annotations

from typing import Sequence

import pytest

from cqt_common.errors import DetailsFetchError, MetadataFetchError
from cqt_source.snapshot import KeyspaceSnapshot
from cqt_ui.tui.system.controller import ExplorerController
from cqt_ui.tui.system.events import Resize
from cqt_ui.tui.system.scheduler import InlineScheduler


class FakeSource:
    """In-memory MetadataSource recording every call."""

    def __init__(
        self,
        snapshot: KeyspaceSnapshot,
        rows: dict[tuple[str, ...], list[tuple[str, str]]] | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.rows = rows or {}
        self.metadata_calls = 0
        self.row_calls: list[tuple[str, ...]] = []
        self.fail_metadata = False
        self.closed = False

    @property
    def keyspace(self) -> str:
        return self.snapshot.name

    def fetch_keyspace_metadata(self) -> KeyspaceSnapshot:
        self.metadata_calls += 1
        if self.fail_metadata:
            raise MetadataFetchError("schema agreement timed out")
        return self.snapshot

    def fetch_rows(self, path: Sequence[str]) -> list[tuple[str, str]]:
        path = tuple(path)
        self.row_calls.append(path)
        if path not in self.rows:
            raise DetailsFetchError(f"no rows for {'/'.join(path)}")
        return self.rows[path]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def snapshot() -> KeyspaceSnapshot:
    return KeyspaceSnapshot(
        name="shop",
        tables={
            "orders": ("order_id", "payload"),
            "users_by_email": ("email", "user_id"),
        },
        functions={"avg_state(int,int)": ()},
        materialized_views={"orders_by_day": ("day", "order_id")},
    )


@pytest.fixture
def source(snapshot: KeyspaceSnapshot) -> FakeSource:
    return FakeSource(
        snapshot,
        rows={
            ("Tables", "orders", "payload"): [
                ("0", '{"sku":"a-1","qty":2}'),
                ("1", "not json"),
            ],
            ("Functions", "avg_state(int,int)"): [
                ("language", "java"),
                ("body", "return a + b;"),
            ],
        },
    )


@pytest.fixture
def scheduler() -> InlineScheduler:
    return InlineScheduler()


@pytest.fixture
def controller(source: FakeSource, scheduler: InlineScheduler) -> ExplorerController:
    ctrl = ExplorerController(source, scheduler)
    scheduler.bind(ctrl.post)
    ctrl.feed(Resize(width=100, height=30))
    ctrl.start()
    ctrl.drain()
    return ctrl
