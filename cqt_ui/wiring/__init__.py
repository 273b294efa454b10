"""Dependency wiring for the explorer."""

from cqt_ui.wiring.dependencies import run_explorer

__all__ = ["run_explorer"]
