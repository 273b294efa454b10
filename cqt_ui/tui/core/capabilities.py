from __future__ import annotations

import os
import sys


def is_tty_available() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def supports_fullscreen_ui() -> bool:
    """True when both streams are terminals that understand cursor movement."""
    if os.environ.get("TERM", "").lower() == "dumb":
        return False
    return is_tty_available()
