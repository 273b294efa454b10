from __future__ import annotations

import asyncio
import logging
from typing import Any

from prompt_toolkit.application import Application
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import HSplit, Layout, VSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Frame

from cqt_ui.settings import KeyBindingsConfig
from cqt_ui.tui.core import theme
from cqt_ui.tui.system.controller import ControllerState, ExplorerController
from cqt_ui.tui.system.events import Event, KeyPress, Resize
from cqt_ui.tui.system.scheduler import Scheduler

logger = logging.getLogger(__name__)

# prompt_toolkit reports these control sequences under their c-* names.
_KEY_ALIASES = {
    "c-m": "enter",
    "c-j": "enter",
    "c-h": "backspace",
    "c-i": "tab",
}
_IGNORED_KEYS = {
    Keys.CPRResponse,
    Keys.Vt100MouseEvent,
    Keys.WindowsMouseEvent,
    Keys.Ignore,
}


def normalize_key(key: Any, data: str) -> str | None:
    """Map a prompt_toolkit key press to the names used by KeyBindingsConfig."""
    if isinstance(key, Keys):
        if key in _IGNORED_KEYS:
            return None
        return _KEY_ALIASES.get(key.value, key.value)
    return key or data or None


class ExplorerScreen:
    """Full-screen prompt_toolkit front end for an :class:`ExplorerController`.

    Terminal key presses and size changes become controller events; results
    from background tasks are posted from worker threads and drained on the
    application loop.
    """

    def __init__(
        self,
        controller: ExplorerController,
        scheduler: Scheduler,
        *,
        title: str = "CQL explorer",
    ) -> None:
        self._controller = controller
        self._loop: asyncio.AbstractEventLoop | None = None
        self._size: tuple[int, int] | None = None
        scheduler.bind(self._deliver)

        self.list_control = FormattedTextControl(self._render_list, focusable=True)
        self.details_control = FormattedTextControl(self._render_details)
        list_view = controller.list_view
        details = controller.details

        inner_layout = HSplit(
            [
                Window(FormattedTextControl(self._render_header), height=1),
                Window(FormattedTextControl(self._render_search), height=1),
                Window(height=1, char="-", style="class:separator"),
                VSplit(
                    [
                        Window(
                            self.list_control,
                            width=lambda: Dimension.exact(list_view.width),
                        ),
                        Window(width=1, char="│", style="class:separator"),
                        Window(
                            self.details_control,
                            width=lambda: Dimension.exact(details.width),
                        ),
                    ]
                ),
                Window(FormattedTextControl(self._render_help), height=2),
            ]
        )

        self._app: Application[int] = Application(
            layout=Layout(
                Frame(inner_layout, title=title),
                focused_element=self.list_control,
            ),
            key_bindings=self._bindings(),
            style=_explorer_style(),
            full_screen=True,
            before_render=self._check_size,
        )

    def run(self) -> int:
        result = self._app.run(pre_run=self._on_start)
        return 0 if result is None else result

    def _on_start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._check_size(self._app)
        self._controller.start()
        self._flush()

    def _deliver(self, event: Event) -> None:
        # Called from worker threads.
        self._controller.post(event)
        loop = self._loop
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self._flush)

    def _flush(self) -> None:
        if self._controller.drain():
            self._app.invalidate()
        self._exit_if_done()

    def _check_size(self, app: Application[Any]) -> None:
        size = app.output.get_size()
        current = (size.columns, size.rows)
        if current != self._size:
            self._size = current
            logger.debug("Terminal resized to %dx%d", size.columns, size.rows)
            self._controller.feed(Resize(width=size.columns, height=size.rows))

    def _bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add(Keys.Any)
        def _(event: KeyPressEvent) -> None:
            press = event.key_sequence[-1]
            key = normalize_key(press.key, press.data)
            if key is None:
                return
            self._controller.feed(KeyPress(key=key))
            self._exit_if_done()

        @kb.add(Keys.BracketedPaste)
        def _(event: KeyPressEvent) -> None:
            if self._controller.state is not ControllerState.SEARCHING:
                return
            for char in event.data:
                if char.isprintable():
                    self._controller.feed(KeyPress(key=char))

        return kb

    def _exit_if_done(self) -> None:
        if not self._controller.quit_requested:
            return
        app = self._app
        if app.is_running and app.future is not None and not app.future.done():
            app.exit(result=0)

    def _render_header(self) -> list[tuple[str, str]]:
        controller = self._controller
        fragments = [
            ("class:title", f" keyspace: {controller.keyspace}"),
            ("", f"   filter: {controller.filter_query or '-'}"),
        ]
        if controller.status:
            style = "class:status.error" if controller.status_is_error else "class:status"
            fragments.append((style, f"   {controller.status}"))
        return fragments

    def _render_search(self) -> list[tuple[str, str]]:
        return self._controller.search_bar.render()

    def _render_list(self) -> list[tuple[str, str]]:
        return self._controller.list_view.render()

    def _render_details(self) -> ANSI:
        return self._controller.details.render()

    def _render_help(self) -> list[tuple[str, str]]:
        keys = self._controller.keys
        if self._controller.state is ControllerState.SEARCHING:
            entries = [("submit", "apply filter"), ("cancel", "close search")]
        else:
            entries = [
                ("quit", "quit"),
                ("search", "search"),
                ("enter", "expand/open"),
                ("scan", "rescan"),
                ("help", "more keys"),
            ]
        fragments = _help_line(keys, entries)
        if self._controller.show_help:
            fragments.append(("", "\n"))
            fragments.extend(
                _help_line(
                    keys,
                    [
                        ("up", "up"),
                        ("down", "down"),
                        ("page_up", "page up"),
                        ("page_down", "page down"),
                        ("home", "first"),
                        ("end", "last"),
                        ("details_up", "scroll details up"),
                        ("details_down", "scroll details down"),
                    ],
                )
            )
        return fragments


def _help_line(
    keys: KeyBindingsConfig, entries: list[tuple[str, str]]
) -> list[tuple[str, str]]:
    fragments: list[tuple[str, str]] = [("", " ")]
    for index, (binding, description) in enumerate(entries):
        if index:
            fragments.append(("class:help", " · "))
        fragments.append(("class:help.key", keys.label(binding)))
        fragments.append(("class:help", f" {description}"))
    return fragments


def _explorer_style() -> Style:
    return Style.from_dict(theme.prompt_toolkit_explorer_style())
