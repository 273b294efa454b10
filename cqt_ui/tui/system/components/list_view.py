"""Scrollable, cursor-driven view over the flattened node tree."""

from __future__ import annotations

from typing import TypeAlias

from cqt_ui.settings import KeyBindingsConfig
from cqt_ui.tui.system.components.node_tree import NodeTree
from cqt_ui.tui.system.events import Event, KeyPress
from cqt_ui.tui.system.models import Node, VisibleRow

RowFragment: TypeAlias = tuple[str, str]

ELLIPSIS = "…"
INDENT = "  "


def truncate(text: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    return text[: width - 1] + ELLIPSIS


class ListView:
    def __init__(
        self,
        *,
        width: int = 0,
        height: int = 0,
        keys: KeyBindingsConfig | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.scroll_offset = 0
        self.cursor: int | None = None
        self._keys = keys or KeyBindingsConfig()
        self._rows: list[VisibleRow] = []
        self._tree: NodeTree | None = None

    @property
    def rows(self) -> list[VisibleRow]:
        return self._rows

    def resize(self, width: int, height: int) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self._follow_cursor()

    def refresh(self, tree: NodeTree) -> None:
        self._tree = tree
        self._rows = tree.flatten()
        if not self._rows:
            self.cursor = None
        elif self.cursor is None:
            self.cursor = 0
        else:
            self.cursor = max(0, min(self.cursor, len(self._rows) - 1))
        self._follow_cursor()

    def move_cursor(self, delta: int) -> bool:
        """Move by ``delta`` rows, clamped to the list; True when it moved."""
        if self.cursor is None:
            return False
        target = max(0, min(self.cursor + delta, len(self._rows) - 1))
        if target == self.cursor:
            return False
        self.cursor = target
        self._follow_cursor()
        return True

    def reset_cursor(self) -> None:
        self.cursor = 0 if self._rows else None
        self.scroll_offset = 0

    def current_node(self) -> Node | None:
        if self.cursor is None:
            return None
        return self._rows[self.cursor].node

    def handle(self, event: Event) -> bool:
        if not isinstance(event, KeyPress):
            return False
        page = max(1, self.height)
        keys = self._keys
        if keys.matches("up", event.key):
            return self.move_cursor(-1)
        if keys.matches("down", event.key):
            return self.move_cursor(1)
        if keys.matches("page_up", event.key):
            return self.move_cursor(-page)
        if keys.matches("page_down", event.key):
            return self.move_cursor(page)
        if keys.matches("home", event.key):
            return self.move_cursor(-len(self._rows))
        if keys.matches("end", event.key):
            return self.move_cursor(len(self._rows))
        return False

    def _follow_cursor(self) -> None:
        if self.cursor is None:
            self.scroll_offset = 0
            return
        if self.cursor < self.scroll_offset:
            self.scroll_offset = self.cursor
        elif self.height and self.cursor >= self.scroll_offset + self.height:
            self.scroll_offset = self.cursor - self.height + 1
        max_offset = max(0, len(self._rows) - max(1, self.height))
        self.scroll_offset = max(0, min(self.scroll_offset, max_offset))

    def _row_text(self, row: VisibleRow) -> str:
        node = row.node
        if self._tree is not None and not self._tree.is_leaf(node):
            marker = "▾ " if node.expanded else "▸ "
        else:
            marker = "• "
        return f"{INDENT * row.depth}{marker}{node.label}"

    def render(self) -> list[RowFragment]:
        """Exactly ``height`` newline-terminated rows, padded to ``width``."""
        fragments: list[RowFragment] = []
        window = self._rows[self.scroll_offset : self.scroll_offset + self.height]
        for offset, row in enumerate(window):
            index = self.scroll_offset + offset
            text = truncate(self._row_text(row), self.width).ljust(self.width)
            style = "class:cursor" if index == self.cursor else f"class:{row.node.kind.value}"
            fragments.append((style, text + "\n"))
        for _ in range(self.height - len(window)):
            fragments.append(("", " " * self.width + "\n"))
        return fragments
