"""
Command-line interface for cql-tui.

Opens a session against the given nodes and browses one keyspace's schema in
a full-screen terminal UI.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from cqt_common.errors import CqtError
from cqt_common.logging import configure_logging
from cqt_source.protocols import DEFAULT_ROW_LIMIT
from cqt_ui.settings import DEFAULT_ADDRESS, ExplorerSettings
from cqt_ui.tui.core import theme
from cqt_ui.wiring.dependencies import run_explorer

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Browse a Cassandra keyspace schema in the terminal.",
    add_completion=False,
)


@app.command()
def explore(
    address: str = typer.Option(
        DEFAULT_ADDRESS,
        "--address",
        "-a",
        envvar="CQT_ADDRESS",
        help="Comma-separated node addresses (host[:port]).",
    ),
    keyspace: Optional[str] = typer.Option(
        None,
        "--keyspace",
        "-k",
        envvar="CQT_KEYSPACE",
        help="Keyspace to explore (defaults to the first non-system keyspace).",
    ),
    username: Optional[str] = typer.Option(
        None, "--username", "-u", envvar="CQT_USERNAME", help="Cluster username."
    ),
    password: Optional[str] = typer.Option(
        None, "--password", "-p", envvar="CQT_PASSWORD", help="Cluster password."
    ),
    pretty_json: bool = typer.Option(
        True,
        "--pp-json/--no-pp-json",
        envvar="CQT_PP_JSON",
        help="Pretty print JSON values.",
    ),
    row_limit: int = typer.Option(
        DEFAULT_ROW_LIMIT,
        "--row-limit",
        min=1,
        envvar="CQT_ROW_LIMIT",
        help="Maximum rows fetched when opening a table or column.",
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", envvar="CQT_LOG_FILE", help="Write logs to this file."
    ),
    debug: bool = typer.Option(False, "--debug", help="Log at DEBUG level."),
) -> None:
    """Explore tables, functions, aggregates, views and user types."""
    # A stderr handler would draw over the full-screen UI.
    configure_logging(
        debug=debug,
        log_file=str(log_file) if log_file else None,
        stream=False,
        force=True,
    )
    console = Console(stderr=True)
    try:
        settings = ExplorerSettings.from_cli(
            address=address,
            keyspace=keyspace,
            username=username,
            password=password,
            pretty_json=pretty_json,
            row_limit=row_limit,
        )
        code = run_explorer(settings)
    except CqtError as exc:
        logger.error("Startup failed: %s", exc.to_dict())
        console.print(theme.presenter_message("error", escape(exc.describe())))
        raise typer.Exit(1)
    except Exception as exc:
        logger.exception("Explorer crashed")
        message = escape(f"There's been an error: {exc}")
        console.print(theme.presenter_message("error", message))
        raise typer.Exit(1)
    if log_file:
        message = escape(f"Log written to {log_file}")
        console.print(theme.presenter_message("info", message))
    raise typer.Exit(code)


def main() -> None:
    """Console script entrypoint (Typer app)."""
    app()


if __name__ == "__main__":
    main()
