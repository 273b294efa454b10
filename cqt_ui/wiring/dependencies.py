from __future__ import annotations

import logging
from typing import Callable

from cqt_common.errors import ConfigurationError
from cqt_common.logging import bind_log_context
from cqt_source.protocols import MetadataSource
from cqt_ui.settings import ExplorerSettings
from cqt_ui.tui.core.capabilities import supports_fullscreen_ui
from cqt_ui.tui.screens.explorer_screen import ExplorerScreen
from cqt_ui.tui.system.controller import ExplorerController
from cqt_ui.tui.system.scheduler import TaskScheduler

logger = logging.getLogger(__name__)

SourceFactory = Callable[[ExplorerSettings], MetadataSource]


def open_cassandra_source(settings: ExplorerSettings) -> MetadataSource:
    # Imported here so the UI core stays importable without the driver loaded.
    from cqt_source.cassandra import open_session

    return open_session(
        settings.hosts,
        settings.keyspace,
        settings.credentials,
        port=settings.port,
        row_limit=settings.row_limit,
    )


def run_explorer(
    settings: ExplorerSettings,
    *,
    source_factory: SourceFactory = open_cassandra_source,
    screen_factory: Callable[..., ExplorerScreen] = ExplorerScreen,
) -> int:
    """Open the session, read the initial snapshot and run the UI until quit.

    Connection and initial metadata failures propagate to the caller; once
    the UI is up, errors are shown in-band by the controller.
    """
    if not supports_fullscreen_ui():
        raise ConfigurationError(
            "The explorer needs an interactive terminal",
            hint="run it directly in a terminal, without pipes or redirection",
        )

    source = source_factory(settings)
    bind_log_context(keyspace=source.keyspace)
    scheduler = TaskScheduler()
    try:
        snapshot = source.fetch_keyspace_metadata()
        logger.info(
            "Loaded schema of %s: %d tables, %d views",
            snapshot.name,
            len(snapshot.tables),
            len(snapshot.materialized_views),
        )
        controller = ExplorerController(
            source,
            scheduler,
            pretty_json=settings.pretty_json,
            keys=settings.keys,
            snapshot=snapshot,
        )
        screen = screen_factory(
            controller, scheduler, title=f"CQL explorer · {source.keyspace}"
        )
        return screen.run()
    finally:
        scheduler.shutdown()
        source.close()
