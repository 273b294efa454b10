"""Single-line search prompt that emits the filter once it is submitted."""

from __future__ import annotations

from typing import Callable

from cqt_ui.settings import KeyBindingsConfig
from cqt_ui.tui.system.events import Event, FilterChanged, KeyPress

SEARCH_PROMPT = "Search: "


class SearchBar:
    """Owns the search text and whether keystrokes are routed to it.

    The query survives activation toggles; only editing keys change it.
    """

    def __init__(
        self,
        emit: Callable[[Event], None],
        *,
        keys: KeyBindingsConfig | None = None,
        query: str = "",
    ) -> None:
        self._emit = emit
        self._keys = keys or KeyBindingsConfig()
        self.active = False
        self.query = query

    def toggle_active(self, active: bool) -> None:
        self.active = active

    def handle(self, event: Event) -> bool:
        if not self.active or not isinstance(event, KeyPress):
            return False
        keys = self._keys
        if keys.matches("submit", event.key):
            self.active = False
            self._emit(FilterChanged(query=self.query))
        elif keys.matches("cancel", event.key):
            self.active = False
        elif keys.matches("backspace", event.key):
            self.query = self.query[:-1]
        elif event.is_printable:
            self.query += event.key
        return True

    def render(self) -> list[tuple[str, str]]:
        style = "class:search.active" if self.active else "class:search"
        cursor = "▏" if self.active else ""
        return [
            ("class:search.prompt", SEARCH_PROMPT),
            (style, f"{self.query}{cursor}"),
        ]
