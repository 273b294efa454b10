"""Public API surface for cqt_common."""

from cqt_common.errors import (
    ClusterConnectionError,
    ConfigurationError,
    CqtError,
    DetailsFetchError,
    FormatError,
    MetadataFetchError,
)
from cqt_common.logging import bind_log_context, clear_log_context, configure_logging

__all__ = [
    "bind_log_context",
    "clear_log_context",
    "configure_logging",
    "CqtError",
    "ClusterConnectionError",
    "ConfigurationError",
    "DetailsFetchError",
    "FormatError",
    "MetadataFetchError",
]
