"""Column/value rows of the currently opened leaf."""

from __future__ import annotations

import json
import logging

from prompt_toolkit.formatted_text import ANSI
from rich.console import Console
from rich.highlighter import JSONHighlighter
from rich.text import Text

from cqt_common.errors import CqtError, FormatError
from cqt_source.protocols import MetadataSource
from cqt_ui.settings import KeyBindingsConfig
from cqt_ui.tui.core import theme
from cqt_ui.tui.system.events import DetailsResult, Event, KeyPress
from cqt_ui.tui.system.models import DetailRow, Node
from cqt_ui.tui.system.scheduler import Task

logger = logging.getLogger(__name__)

JSON_INDENT = 4


def pretty_json(raw: str) -> str:
    """Re-serialize JSON text with 4-space indentation, or raise FormatError."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise FormatError("Value is not valid JSON", cause=exc) from exc
    try:
        return json.dumps(data, indent=JSON_INDENT, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise FormatError("Value could not be re-serialized", cause=exc) from exc


def format_value(raw: str, pretty: bool = True) -> str:
    if not pretty:
        return raw
    try:
        return pretty_json(raw)
    except FormatError:
        return raw


class DetailsPane:
    """Fetches, formats and renders the rows of one selected leaf.

    Every request gets a fresh tag; results carrying any other tag are
    dropped, so a slow fetch for a previous selection never overwrites the
    current one.
    """

    def __init__(
        self,
        source: MetadataSource,
        *,
        pretty_json: bool = True,
        keys: KeyBindingsConfig | None = None,
        width: int = 0,
        height: int = 0,
    ) -> None:
        self._source = source
        self._pretty = pretty_json
        self._keys = keys or KeyBindingsConfig()
        self._console = Console(
            width=max(1, width), force_terminal=True, color_system="truecolor"
        )
        self._highlighter = JSONHighlighter()
        self._tag = 0
        self.width = width
        self.height = height
        self.scroll_offset = 0
        self.pending_tag: int | None = None
        self.open_path: tuple[str, ...] | None = None
        self.rows: list[DetailRow] = []
        self.error: str | None = None
        self.loading = False

    def resize(self, width: int, height: int) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self._console.width = max(1, self.width)

    def request(self, node: Node) -> Task:
        self._tag += 1
        tag = self._tag
        path = node.path
        self.pending_tag = tag
        self.open_path = path
        self.rows = []
        self.error = None
        self.loading = True
        self.scroll_offset = 0
        source = self._source

        def run() -> DetailsResult:
            try:
                rows = source.fetch_rows(path)
            except CqtError as exc:
                logger.warning("Details fetch failed for %s: %s", "/".join(path), exc)
                return DetailsResult(tag=tag, path=path, error=str(exc))
            return DetailsResult(tag=tag, path=path, rows=tuple(rows))

        def on_error(exc: Exception) -> DetailsResult:
            return DetailsResult(tag=tag, path=path, error=f"Unexpected error: {exc}")

        return Task(name=f"details:{'/'.join(path)}", run=run, on_error=on_error)

    def apply(self, result: DetailsResult) -> bool:
        if result.tag != self.pending_tag:
            logger.debug("Discarding stale details for %s", "/".join(result.path))
            return False
        self.pending_tag = None
        self.loading = False
        self.error = result.error
        self.rows = [
            DetailRow(name=name, raw=raw, formatted=format_value(raw, self._pretty))
            for name, raw in result.rows
        ]
        return True

    def clear(self) -> None:
        self.pending_tag = None
        self.open_path = None
        self.rows = []
        self.error = None
        self.loading = False
        self.scroll_offset = 0

    def handle(self, event: Event) -> bool:
        if not isinstance(event, KeyPress) or self.open_path is None:
            return False
        if self._keys.matches("details_up", event.key):
            return self._scroll(-1)
        if self._keys.matches("details_down", event.key):
            return self._scroll(1)
        return False

    def _scroll(self, delta: int) -> bool:
        target = max(0, self.scroll_offset + delta)
        if target == self.scroll_offset:
            return False
        self.scroll_offset = target
        return True

    def _body(self) -> Text:
        if self.open_path is None:
            return Text("Select a leaf and press enter to view its data.", style="dim")
        title = Text(" / ".join(self.open_path), style=theme.RICH_ACCENT_BOLD)
        if self.loading:
            return Text.assemble(title, "\n\n", Text("Loading…", style="dim"))
        if self.error:
            return Text.assemble(title, "\n\n", Text(self.error, style=theme.RICH_ERROR))
        if not self.rows:
            return Text.assemble(title, "\n\n", Text("No rows.", style="dim"))
        body = Text.assemble(title, "\n")
        for row in self.rows:
            body.append("\n")
            body.append(row.name, style=theme.RICH_DETAIL_NAME)
            body.append("\n")
            value = Text(row.formatted)
            if row.formatted != row.raw:
                self._highlighter.highlight(value)
            for line in value.split("\n"):
                line.pad_left(2)
                body.append_text(line)
                body.append("\n")
        return body

    def render_lines(self) -> list[str]:
        """ANSI lines of the current body, before windowing."""
        if self.width <= 0:
            return []
        with self._console.capture() as cap:
            self._console.print(self._body(), overflow="fold")
        return cap.get().splitlines()

    def render(self) -> ANSI:
        lines = self.render_lines()
        max_offset = max(0, len(lines) - self.height)
        self.scroll_offset = min(self.scroll_offset, max_offset)
        window = lines[self.scroll_offset : self.scroll_offset + self.height]
        return ANSI("\n".join(window))
