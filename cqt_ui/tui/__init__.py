"""
Explorer core (tree, list, search, details, controller) and its
prompt_toolkit front end.
"""

from cqt_ui.tui.screens.explorer_screen import ExplorerScreen
from cqt_ui.tui.system.controller import ControllerState, ExplorerController
from cqt_ui.tui.system.scheduler import InlineScheduler, TaskScheduler

__all__ = [
    "ControllerState",
    "ExplorerController",
    "ExplorerScreen",
    "InlineScheduler",
    "TaskScheduler",
]
