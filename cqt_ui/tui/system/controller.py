"""Root state machine tying the search bar, node list and details pane together."""

from __future__ import annotations

import logging
import queue
from enum import Enum
from typing import Callable

from cqt_common.errors import CqtError
from cqt_source.protocols import MetadataSource
from cqt_source.snapshot import KeyspaceSnapshot
from cqt_ui.settings import KeyBindingsConfig
from cqt_ui.tui.system.components.details_pane import DetailsPane
from cqt_ui.tui.system.components.list_view import ListView
from cqt_ui.tui.system.components.node_tree import NodeTree
from cqt_ui.tui.system.components.scanner import scan
from cqt_ui.tui.system.components.search_bar import SearchBar
from cqt_ui.tui.system.events import (
    DetailsResult,
    Event,
    EventKind,
    FilterChanged,
    KeyPress,
    Resize,
    ScanResult,
)
from cqt_ui.tui.system.scheduler import Scheduler, Task

logger = logging.getLogger(__name__)

MARGIN = 2
HEADER_FOOTER_ROWS = 7


class ControllerState(str, Enum):
    NORMAL = "normal"
    SEARCHING = "searching"


def pane_geometry(width: int, height: int) -> tuple[int, int]:
    """Half-pane width and shared pane height for a terminal of the given size."""
    return max(0, width // 2 - MARGIN), max(0, height - HEADER_FOOTER_ROWS)


class ExplorerController:
    """Owns the node tree and routes every event to the component it concerns.

    Background work (scans, detail fetches) goes through ``scheduler``; its
    results come back as events through :meth:`post` and are applied by
    :meth:`drain` on the loop thread.
    """

    def __init__(
        self,
        source: MetadataSource,
        scheduler: Scheduler,
        *,
        pretty_json: bool = True,
        keys: KeyBindingsConfig | None = None,
        snapshot: KeyspaceSnapshot | None = None,
    ) -> None:
        self.keys = keys or KeyBindingsConfig()
        self._source = source
        self._scheduler = scheduler
        self._snapshot = snapshot
        self._events: queue.Queue[Event] = queue.Queue()

        self.tree = NodeTree(root_label=source.keyspace)
        self.list_view = ListView(keys=self.keys)
        self.search_bar = SearchBar(self.post, keys=self.keys)
        self.details = DetailsPane(source, pretty_json=pretty_json, keys=self.keys)

        self.filter_query = ""
        self.show_help = False
        self.status: str | None = None
        self.status_is_error = False
        self.quit_requested = False
        self.width = 0
        self.height = 0

        self._scan_generation = 0
        self._applied_generation = 0
        # Generation of the request that read the cached snapshot; 0 is startup.
        self._snapshot_generation = 0

        self._handlers: dict[EventKind, Callable[[Event], bool]] = {
            EventKind.RESIZE: self._on_resize,
            EventKind.KEY_PRESS: self._on_key,
            EventKind.SCAN_RESULT: self._on_scan_result,
            EventKind.DETAILS_RESULT: self._on_details_result,
            EventKind.FILTER_CHANGED: self._on_filter_changed,
        }
        # Matched in this order while no search is being typed.
        self._key_actions: list[tuple[str, Callable[[], bool]]] = [
            ("quit", self._quit),
            ("search", self._start_search),
            ("enter", self._enter),
            ("scan", self._rescan),
            ("help", self._toggle_help),
        ]

    @property
    def state(self) -> ControllerState:
        if self.search_bar.active:
            return ControllerState.SEARCHING
        return ControllerState.NORMAL

    @property
    def keyspace(self) -> str:
        return self._source.keyspace

    def start(self) -> None:
        """Kick off the initial scan, reusing the startup snapshot when present."""
        self.request_scan(refetch=self._snapshot is None)

    def post(self, event: Event) -> None:
        """Enqueue an event; safe to call from any thread."""
        self._events.put(event)

    def drain(self) -> bool:
        """Dispatch every queued event; True when any of them changed state."""
        changed = False
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return changed
            changed = self.dispatch(event) or changed

    def feed(self, event: Event) -> bool:
        self.post(event)
        return self.drain()

    def dispatch(self, event: Event) -> bool:
        handler = self._handlers[event.kind]
        try:
            return handler(event)
        except CqtError as exc:
            logger.warning("Error handling %s: %s", event.kind.value, exc.to_dict())
            self._set_status(str(exc), error=True)
            return True

    def request_scan(self, *, refetch: bool) -> None:
        """Schedule a scan; ``refetch`` re-reads the schema from the cluster."""
        self._scan_generation += 1
        generation = self._scan_generation
        source = self._source
        cached = self._snapshot
        fetch = refetch or cached is None
        origin = generation if fetch else self._snapshot_generation

        def run() -> ScanResult:
            snapshot = cached
            if fetch:
                try:
                    snapshot = source.fetch_keyspace_metadata()
                except CqtError as exc:
                    return ScanResult(
                        generation=generation,
                        error=str(exc),
                        snapshot_generation=origin,
                    )
            outcome = scan(snapshot)
            return ScanResult(
                generation=generation,
                labels=outcome.labels,
                paths=outcome.paths,
                snapshot=snapshot,
                snapshot_generation=origin,
            )

        def on_error(exc: Exception) -> ScanResult:
            return ScanResult(
                generation=generation,
                error=f"Unexpected error: {exc}",
                snapshot_generation=origin,
            )

        self._scheduler.submit(
            Task(name=f"scan:{generation}", run=run, on_error=on_error)
        )

    def _on_resize(self, event: Event) -> bool:
        assert isinstance(event, Resize)
        self.width, self.height = event.width, event.height
        pane_width, pane_height = pane_geometry(event.width, event.height)
        self.list_view.resize(pane_width, pane_height)
        self.details.resize(pane_width, pane_height)
        return True

    def _on_key(self, event: Event) -> bool:
        assert isinstance(event, KeyPress)
        had_status = self.status is not None
        self.status = None
        if self.search_bar.active:
            return self.search_bar.handle(event) or had_status
        for binding, action in self._key_actions:
            if self.keys.matches(binding, event.key):
                return action()
        return self._forward(event) or had_status

    def _forward(self, event: Event) -> bool:
        changed = False
        for component in (self.list_view, self.search_bar, self.details):
            if component.handle(event):
                changed = True
                break
        self._close_details_if_moved()
        return changed

    def _close_details_if_moved(self) -> None:
        if self.details.open_path is None:
            return
        node = self.list_view.current_node()
        if node is None or node.path != self.details.open_path:
            self.details.clear()

    def _on_scan_result(self, event: Event) -> bool:
        assert isinstance(event, ScanResult)
        if event.error is not None:
            return self._on_scan_error(event)

        # A schema read newer than the cached one is always adopted, even when
        # a later filter pass over the older snapshot was applied first.
        adopted = False
        newer = event.snapshot_generation > self._snapshot_generation
        if event.snapshot is not None and newer:
            self._snapshot = event.snapshot
            self._snapshot_generation = event.snapshot_generation
            adopted = True

        current = event.generation >= self._applied_generation
        if not current and not adopted:
            logger.debug(
                "Dropping scan %d, %d already applied",
                event.generation,
                self._applied_generation,
            )
            return False

        if current and event.snapshot_generation == self._snapshot_generation:
            labels, paths = event.labels, event.paths
        else:
            # Built from a snapshot other than the cached one; rescan the cache
            # with the filter in effect now.
            assert self._snapshot is not None
            outcome = scan(self._snapshot)
            labels, paths = outcome.labels, outcome.paths

        self._applied_generation = max(self._applied_generation, event.generation)
        self.status = None
        self._rebuild(labels, paths)
        self.list_view.refresh(self.tree)
        self.list_view.reset_cursor()
        self.details.clear()
        logger.debug("Scan %d applied: %d nodes", event.generation, len(self.tree))
        return True

    def _on_scan_error(self, event: ScanResult) -> bool:
        if event.snapshot_generation < self._snapshot_generation:
            logger.debug(
                "Ignoring failure of scan %d, newer schema loaded", event.generation
            )
            return False
        logger.warning("Scan %d failed: %s", event.generation, event.error)
        self._set_status(f"Rescan failed: {event.error}", error=True)
        return True

    def _rebuild(
        self, labels: tuple[str, ...], paths: tuple[tuple[str, ...], ...]
    ) -> None:
        self.tree.clear()
        for label in labels:
            self.tree.add_child((), label, self.filter_query)
        for path in paths:
            self.tree.add_child(path[:-1], path[-1], self.filter_query)

    def _on_details_result(self, event: Event) -> bool:
        assert isinstance(event, DetailsResult)
        return self.details.apply(event)

    def _on_filter_changed(self, event: Event) -> bool:
        assert isinstance(event, FilterChanged)
        self.filter_query = event.query
        self.request_scan(refetch=False)
        return True

    def _quit(self) -> bool:
        self.quit_requested = True
        return True

    def _start_search(self) -> bool:
        self.search_bar.toggle_active(True)
        return True

    def _enter(self) -> bool:
        node = self.list_view.current_node()
        if node is None:
            return False
        if self.tree.is_leaf(node):
            self._scheduler.submit(self.details.request(node))
        else:
            self.tree.toggle_expand(node)
            self.list_view.refresh(self.tree)
        return True

    def _rescan(self) -> bool:
        self._set_status("Rescanning keyspace…")
        self.request_scan(refetch=True)
        return True

    def _toggle_help(self) -> bool:
        self.show_help = not self.show_help
        return True

    def _set_status(self, message: str, *, error: bool = False) -> None:
        self.status = message
        self.status_is_error = error
