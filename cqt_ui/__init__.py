"""Terminal UI and CLI for cql-tui.

The console entry point lives in :mod:`cqt_ui.cli.main`.
"""
