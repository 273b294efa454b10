from __future__ import annotations

from typing import Mapping

RICH_ACCENT = "blue"
RICH_ACCENT_BOLD = f"bold {RICH_ACCENT}"
RICH_ERROR = "red"
RICH_DETAIL_NAME = "bold cyan"

PRESENTER_TEMPLATES: dict[str, str] = {
    "info": "[blue]ℹ[/blue] {message}",
    "error": "[red]✖ {message}[/red]",
}


def presenter_message(level: str, message: str) -> str:
    template = PRESENTER_TEMPLATES.get(level, "{message}")
    return template.format(message=message)


def prompt_toolkit_explorer_style() -> Mapping[str, str]:
    return {
        "cursor": "bg:#0000aa fg:white bold",
        "category": "fg:#0000aa bold",
        "entity": "",
        "field": "fg:#666666",
        "separator": "fg:#0000aa",
        "frame.border": "fg:#0000aa",
        "frame.label": "fg:#0000aa bold",
        "search": "bg:#eeeeee fg:#000000",
        "search.active": "bg:#ffffff fg:#000000 bold",
        "search.prompt": "bold",
        "status": "fg:#aa5500",
        "status.error": "fg:#aa0000 bold",
        "help": "fg:#666666",
        "help.key": "bold",
        "title": "bold",
    }
