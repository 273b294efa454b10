"""Shared helpers for cql-tui."""

from cqt_common.api import bind_log_context, configure_logging

__all__ = ["bind_log_context", "configure_logging"]
