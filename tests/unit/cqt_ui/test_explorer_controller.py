from __future__ import annotations

import pytest

from cqt_source.snapshot import KeyspaceSnapshot
from cqt_ui.tui.system.controller import (
    ControllerState,
    ExplorerController,
    pane_geometry,
)
from cqt_ui.tui.system.events import Event, KeyPress, Resize
from cqt_ui.tui.system.scheduler import Task

pytestmark = pytest.mark.unit_ui


class DeferredScheduler:
    """Holds tasks until the test runs them, in any order."""

    def __init__(self) -> None:
        self.tasks: list[Task] = []
        self._deliver = None

    def bind(self, deliver) -> None:
        self._deliver = deliver

    def submit(self, task: Task) -> None:
        self.tasks.append(task)

    def shutdown(self) -> None:
        return None

    def run(self, index: int = 0) -> Event:
        event = self.tasks.pop(index).execute()
        self._deliver(event)
        return event


def _press(controller: ExplorerController, *keys: str) -> None:
    for key in keys:
        controller.feed(KeyPress(key))


def _labels(controller: ExplorerController) -> list[str]:
    return [row.node.label for row in controller.list_view.rows]


def _cursor_label(controller: ExplorerController) -> str:
    node = controller.list_view.current_node()
    assert node is not None
    return node.label


@pytest.fixture
def deferred() -> DeferredScheduler:
    return DeferredScheduler()


@pytest.fixture
def slow_controller(source, deferred: DeferredScheduler) -> ExplorerController:
    ctrl = ExplorerController(source, deferred)
    deferred.bind(ctrl.post)
    ctrl.feed(Resize(width=100, height=30))
    ctrl.start()
    deferred.run()
    ctrl.drain()
    return ctrl


def test_initial_scan_lists_categories(controller, source) -> None:
    assert source.metadata_calls == 1
    assert _labels(controller) == ["Tables", "Functions", "Views"]
    assert controller.list_view.cursor == 0
    assert controller.state is ControllerState.NORMAL
    assert controller.keyspace == "shop"


def test_startup_snapshot_is_reused(source, scheduler, snapshot) -> None:
    ctrl = ExplorerController(source, scheduler, snapshot=snapshot)
    scheduler.bind(ctrl.post)
    ctrl.start()
    ctrl.drain()

    assert source.metadata_calls == 0
    assert _labels(ctrl) == ["Tables", "Functions", "Views"]


def test_empty_keyspace_has_no_rows(source, scheduler) -> None:
    source.snapshot = KeyspaceSnapshot(name="shop")
    ctrl = ExplorerController(source, scheduler)
    scheduler.bind(ctrl.post)
    ctrl.start()
    ctrl.drain()

    assert ctrl.list_view.rows == []
    assert ctrl.list_view.cursor is None
    _press(ctrl, "enter", "down")
    assert scheduler.submitted == ["scan:1"]


def test_enter_toggles_expansion(controller) -> None:
    _press(controller, "enter")
    assert _labels(controller) == [
        "Tables",
        "orders",
        "users_by_email",
        "Functions",
        "Views",
    ]

    _press(controller, "enter")
    assert _labels(controller) == ["Tables", "Functions", "Views"]


def test_enter_on_leaf_opens_details(controller, source) -> None:
    _press(controller, "enter", "down", "enter", "down", "down")
    assert _cursor_label(controller) == "payload"

    _press(controller, "enter")

    assert source.row_calls == [("Tables", "orders", "payload")]
    assert controller.details.open_path == ("Tables", "orders", "payload")
    assert [row.name for row in controller.details.rows] == ["0", "1"]


def test_function_leaf_shows_properties(controller) -> None:
    _press(controller, "down", "enter", "down", "enter")

    assert controller.details.open_path == ("Functions", "avg_state(int,int)")
    assert [row.name for row in controller.details.rows] == ["language", "body"]


def test_moving_off_the_open_leaf_clears_details(controller) -> None:
    _press(controller, "down", "enter", "down", "enter")
    assert controller.details.open_path is not None

    _press(controller, "J")
    assert controller.details.open_path is not None

    _press(controller, "down")
    assert controller.details.open_path is None
    assert controller.details.rows == []


def test_failed_fetch_is_shown_in_details(controller, source) -> None:
    _press(controller, "enter", "down", "enter", "down")
    assert _cursor_label(controller) == "order_id"

    _press(controller, "enter")

    assert source.row_calls == [("Tables", "orders", "order_id")]
    assert controller.details.error == "no rows for Tables/orders/order_id"
    assert controller.status is None


def test_late_details_for_previous_selection_are_dropped(
    slow_controller, deferred
) -> None:
    _press(slow_controller, "down", "enter", "down", "enter")
    assert slow_controller.details.loading is True

    _press(slow_controller, "up")
    deferred.run()
    slow_controller.drain()

    assert slow_controller.details.open_path is None
    assert slow_controller.details.rows == []


def test_older_scan_result_is_dropped(slow_controller, deferred, source) -> None:
    _press(slow_controller, "r", "r")
    assert len(deferred.tasks) == 2

    original = source.snapshot
    source.snapshot = KeyspaceSnapshot(
        name="shop", user_types={"address": ("street", "city")}
    )
    deferred.run(1)
    slow_controller.drain()
    assert _labels(slow_controller) == ["UserTypes"]

    source.snapshot = original
    deferred.run(0)
    assert slow_controller.drain() is False
    assert _labels(slow_controller) == ["UserTypes"]


def test_search_filters_tree_without_refetch(controller, source) -> None:
    _press(controller, "/")
    assert controller.state is ControllerState.SEARCHING

    _press(controller, "u", "s", "e", "r", "enter")

    assert controller.state is ControllerState.NORMAL
    assert controller.filter_query == "user"
    assert source.metadata_calls == 1
    assert ("Tables", "users_by_email", "user_id") in controller.tree
    assert ("Tables", "users_by_email", "email") not in controller.tree
    assert ("Tables", "orders") not in controller.tree
    assert _labels(controller) == ["Tables"]


def test_wildcard_and_case_are_ignored(controller) -> None:
    _press(controller, "/", *"*ORDERS*", "enter")

    assert controller.filter_query == "*ORDERS*"
    assert ("Tables", "orders") in controller.tree
    assert ("Views", "orders_by_day") in controller.tree
    assert ("Functions",) not in controller.tree


def test_escape_cancels_search(controller) -> None:
    _press(controller, "/", "x", "escape")

    assert controller.state is ControllerState.NORMAL
    assert controller.filter_query == ""
    assert _labels(controller) == ["Tables", "Functions", "Views"]


def test_keys_typed_in_search_do_not_trigger_actions(controller, source) -> None:
    _press(controller, "/", "q", "r", "?")

    assert controller.quit_requested is False
    assert controller.show_help is False
    assert source.metadata_calls == 1
    assert controller.search_bar.query == "qr?"


def test_rescan_refetches_and_resets_view(controller, source) -> None:
    _press(controller, "down", "enter", "down", "enter")
    assert controller.details.open_path is not None

    _press(controller, "r")

    assert source.metadata_calls == 2
    assert controller.list_view.cursor == 0
    assert controller.details.open_path is None
    assert controller.status is None


def test_failed_rescan_keeps_tree_and_reports(controller, source) -> None:
    source.fail_metadata = True
    _press(controller, "enter")

    _press(controller, "r")

    assert controller.status == "Rescan failed: schema agreement timed out"
    assert controller.status_is_error is True
    assert _labels(controller)[:2] == ["Tables", "orders"]

    _press(controller, "down")
    assert controller.status is None


def test_resize_splits_panes(controller) -> None:
    controller.feed(Resize(width=80, height=24))

    assert (controller.list_view.width, controller.list_view.height) == (38, 17)
    assert (controller.details.width, controller.details.height) == (38, 17)


def test_pane_geometry_never_negative() -> None:
    assert pane_geometry(100, 30) == (48, 23)
    assert pane_geometry(3, 3) == (0, 0)


@pytest.mark.parametrize("key", ["q", "c-c"])
def test_quit_keys(controller, key: str) -> None:
    _press(controller, key)
    assert controller.quit_requested is True


def test_help_toggles(controller) -> None:
    _press(controller, "?")
    assert controller.show_help is True
    _press(controller, "?")
    assert controller.show_help is False


def test_unbound_key_changes_nothing(controller) -> None:
    assert controller.feed(KeyPress("z")) is False


def _with_user_types(snapshot: KeyspaceSnapshot) -> KeyspaceSnapshot:
    return KeyspaceSnapshot(
        name=snapshot.name,
        tables=snapshot.tables,
        functions=snapshot.functions,
        materialized_views=snapshot.materialized_views,
        user_types={"address": ("street", "city")},
    )


def test_rescan_finishing_after_filter_is_adopted(
    slow_controller, deferred, source
) -> None:
    _press(slow_controller, "r", "/", "u", "enter")
    assert [task.name for task in deferred.tasks] == ["scan:2", "scan:3"]
    source.snapshot = _with_user_types(source.snapshot)

    deferred.run(1)
    slow_controller.drain()
    assert "UserTypes" not in _labels(slow_controller)

    deferred.run(0)
    assert slow_controller.drain() is True

    assert source.metadata_calls == 2
    assert _labels(slow_controller) == ["Tables", "Functions", "UserTypes"]
    assert slow_controller.filter_query == "u"
    assert slow_controller.status is None


def test_filter_pass_over_older_snapshot_uses_rescanned_schema(
    slow_controller, deferred, source
) -> None:
    _press(slow_controller, "r", "/", "u", "enter")
    source.snapshot = _with_user_types(source.snapshot)

    deferred.run(0)
    slow_controller.drain()
    assert _labels(slow_controller) == ["Tables", "Functions", "UserTypes"]

    deferred.run(0)
    slow_controller.drain()
    assert _labels(slow_controller) == ["Tables", "Functions", "UserTypes"]


def test_rescan_failure_after_filter_is_reported(
    slow_controller, deferred, source
) -> None:
    _press(slow_controller, "r", "/", "u", "enter")
    source.fail_metadata = True

    deferred.run(1)
    deferred.run(0)
    slow_controller.drain()

    assert slow_controller.status == "Rescan failed: schema agreement timed out"
    assert _labels(slow_controller) == ["Tables", "Functions"]


def test_unexpected_details_failure_is_shown(
    controller, source, monkeypatch: pytest.MonkeyPatch
) -> None:
    def broken(path):
        raise RuntimeError("decoder exploded")

    monkeypatch.setattr(source, "fetch_rows", broken)
    _press(controller, "down", "enter", "down", "enter")

    assert controller.details.loading is False
    assert controller.details.error == "Unexpected error: decoder exploded"


def test_unexpected_scan_failure_is_shown(
    controller, source, monkeypatch: pytest.MonkeyPatch
) -> None:
    def broken():
        raise RuntimeError("socket closed")

    monkeypatch.setattr(source, "fetch_keyspace_metadata", broken)
    _press(controller, "r")

    assert controller.status == "Rescan failed: Unexpected error: socket closed"
    assert controller.status_is_error is True
    assert _labels(controller) == ["Tables", "Functions", "Views"]
