"""stdlib logging routed through a structlog formatter."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Any

import structlog

from cqt_common.config.env import parse_bool_env

# Logger names of third-party libraries held at WARNING or above.
QUIET_LOGGERS = ("cassandra",)

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


@dataclass(frozen=True)
class LogOptions:
    level: int
    json: bool
    log_file: str | None


def resolve_options(
    *,
    level: str | int | None = None,
    debug: bool = False,
    log_file: str | None = None,
    json: bool | None = None,
) -> LogOptions:
    """Merge explicit arguments with ``CQT_LOG_LEVEL/JSON/FILE``; arguments win."""
    raw_level = level if level is not None else os.environ.get("CQT_LOG_LEVEL")
    env_json = parse_bool_env(os.environ.get("CQT_LOG_JSON"))
    return LogOptions(
        level=logging.DEBUG if debug else _level_number(raw_level),
        json=bool(env_json) if json is None else json,
        log_file=log_file or os.environ.get("CQT_LOG_FILE") or None,
    )


def _level_number(value: str | int | None) -> int:
    if value is None:
        return logging.INFO
    if isinstance(value, int):
        return value
    if value.strip().isdigit():
        return int(value)
    resolved = logging.getLevelName(value.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    *,
    level: str | int | None = None,
    debug: bool = False,
    log_file: str | None = None,
    json: bool | None = None,
    stream: bool = True,
    force: bool = False,
) -> LogOptions:
    """Install handlers on the root logger and configure structlog.

    ``stream=False`` leaves stderr alone, which the full-screen explorer
    needs; with no log file either, records are dropped by a NullHandler.
    Without ``force`` an already configured root logger is left untouched.
    """
    options = resolve_options(level=level, debug=debug, log_file=log_file, json=json)
    root = logging.getLogger()
    if root.handlers and not force:
        _configure_structlog()
        return options

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=(
            structlog.processors.JSONRenderer()
            if options.json
            else structlog.dev.ConsoleRenderer(colors=False)
        ),
        foreign_pre_chain=_SHARED_PROCESSORS,
    )
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in _build_handlers(options, stream):
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(options.level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(options.level, logging.WARNING))

    _configure_structlog()
    return options


def _build_handlers(options: LogOptions, stream: bool) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if stream:
        handlers.append(logging.StreamHandler(sys.stderr))
    if options.log_file:
        handlers.append(logging.FileHandler(options.log_file, encoding="utf-8"))
    return handlers or [logging.NullHandler()]


def bind_log_context(**values: Any) -> None:
    """Attach key/values (e.g. the keyspace) to every following log record."""
    structlog.contextvars.bind_contextvars(**values)


def clear_log_context() -> None:
    structlog.contextvars.clear_contextvars()


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
