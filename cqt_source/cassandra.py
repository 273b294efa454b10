"""Cassandra-backed MetadataSource built on the DataStax python driver."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from cassandra import DriverException
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, NoHostAvailable, Session
from cassandra.metadata import protect_name
from cassandra.query import SimpleStatement, tuple_factory

from cqt_common.errors import (
    ClusterConnectionError,
    DetailsFetchError,
    MetadataFetchError,
    wrap_error,
)
from cqt_source.protocols import DEFAULT_PORT, DEFAULT_ROW_LIMIT, Credentials, RowPair
from cqt_source.snapshot import (
    AGGREGATES,
    FUNCTIONS,
    TABLES,
    USER_TYPES,
    VIEWS,
    KeyspaceSnapshot,
)

logger = logging.getLogger(__name__)

SYSTEM_KEYSPACES = frozenset(
    {
        "system",
        "system_auth",
        "system_distributed",
        "system_schema",
        "system_traces",
        "system_views",
        "system_virtual_schema",
    }
)

_DRIVER_ERRORS = (NoHostAvailable, DriverException, OSError)


def open_session(
    hosts: Sequence[str],
    keyspace: str | None = None,
    credentials: Credentials | None = None,
    *,
    port: int = DEFAULT_PORT,
    row_limit: int = DEFAULT_ROW_LIMIT,
    connect_timeout: float = 10.0,
) -> "CassandraSource":
    """Connect to the cluster and return a source bound to one keyspace.

    When ``keyspace`` is empty the first non-system keyspace (by name) is used.
    """
    auth_provider = None
    if credentials is not None:
        auth_provider = PlainTextAuthProvider(
            username=credentials.username, password=credentials.password
        )
    cluster = Cluster(
        contact_points=list(hosts),
        port=port,
        auth_provider=auth_provider,
        connect_timeout=connect_timeout,
    )
    try:
        session = cluster.connect()
    except _DRIVER_ERRORS as exc:
        cluster.shutdown()
        raise wrap_error(
            ClusterConnectionError,
            f"Unable to connect to {', '.join(hosts)}:{port}: {exc}",
            context={"hosts": list(hosts), "port": port},
            cause=exc,
        ) from exc

    session.row_factory = tuple_factory
    try:
        resolved = keyspace or _default_keyspace(cluster.metadata.keyspaces)
    except MetadataFetchError:
        cluster.shutdown()
        raise
    logger.info("Connected to %s, keyspace %s", ", ".join(hosts), resolved)
    return CassandraSource(cluster, session, resolved, row_limit=row_limit)


def _default_keyspace(keyspaces: Mapping[str, Any]) -> str:
    candidates = sorted(name for name in keyspaces if name not in SYSTEM_KEYSPACES)
    if not candidates:
        raise MetadataFetchError("No user keyspace found on the cluster")
    return candidates[0]


def snapshot_from_metadata(ks_meta: Any) -> KeyspaceSnapshot:
    """Convert driver ``KeyspaceMetadata`` into a :class:`KeyspaceSnapshot`."""
    return KeyspaceSnapshot(
        name=ks_meta.name,
        tables={
            name: tuple(ks_meta.tables[name].columns)
            for name in sorted(ks_meta.tables)
        },
        functions={name: () for name in sorted(ks_meta.functions)},
        aggregates={name: () for name in sorted(ks_meta.aggregates)},
        materialized_views={
            name: tuple(ks_meta.views[name].columns) for name in sorted(ks_meta.views)
        },
        user_types={
            name: tuple(ks_meta.user_types[name].field_names)
            for name in sorted(ks_meta.user_types)
        },
    )


def value_to_text(value: Any) -> str:
    """Render a driver value as the raw text shown in the details pane."""
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)


class CassandraSource:
    """MetadataSource over a single long-lived driver session."""

    def __init__(
        self,
        cluster: Cluster,
        session: Session,
        keyspace: str,
        *,
        row_limit: int = DEFAULT_ROW_LIMIT,
    ) -> None:
        self._cluster = cluster
        self._session = session
        self._keyspace = keyspace
        self._row_limit = row_limit

    @property
    def keyspace(self) -> str:
        return self._keyspace

    def close(self) -> None:
        self._cluster.shutdown()

    def _keyspace_metadata(self) -> Any:
        ks_meta = self._cluster.metadata.keyspaces.get(self._keyspace)
        if ks_meta is None:
            raise MetadataFetchError(
                f"Keyspace {self._keyspace!r} does not exist",
                context={"keyspace": self._keyspace},
            )
        return ks_meta

    def fetch_keyspace_metadata(self) -> KeyspaceSnapshot:
        try:
            self._cluster.refresh_schema_metadata()
        except _DRIVER_ERRORS as exc:
            raise wrap_error(
                MetadataFetchError,
                f"Unable to refresh schema metadata: {exc}",
                context={"keyspace": self._keyspace},
                cause=exc,
            ) from exc
        return snapshot_from_metadata(self._keyspace_metadata())

    def fetch_rows(self, path: Sequence[str]) -> list[RowPair]:
        path = tuple(path)
        if len(path) not in (2, 3):
            raise DetailsFetchError(
                f"Nothing to show for {' / '.join(path) or 'root'}",
                context={"path": path},
            )
        category, entity = path[0], path[1]
        field = path[2] if len(path) == 3 else None
        try:
            ks_meta = self._keyspace_metadata()
        except MetadataFetchError as exc:
            raise wrap_error(
                DetailsFetchError, str(exc), context={"path": path}, cause=exc
            ) from exc

        if category in (TABLES, VIEWS):
            return self._select(entity, field)
        if category == FUNCTIONS:
            return _function_rows(_lookup(ks_meta.functions, path))
        if category == AGGREGATES:
            return _aggregate_rows(_lookup(ks_meta.aggregates, path))
        if category == USER_TYPES:
            return _user_type_rows(_lookup(ks_meta.user_types, path), field, path)
        raise DetailsFetchError(
            f"Unknown schema category {category!r}", context={"path": path}
        )

    def _select(self, entity: str, column: str | None) -> list[RowPair]:
        target = protect_name(column) if column else "*"
        query = (
            f"SELECT {target} FROM {protect_name(self._keyspace)}."
            f"{protect_name(entity)} LIMIT {self._row_limit}"
        )
        logger.debug("Fetching rows: %s", query)
        try:
            result = self._session.execute(SimpleStatement(query))
        except _DRIVER_ERRORS as exc:
            raise wrap_error(
                DetailsFetchError,
                f"Query failed: {exc}",
                context={"query": query},
                cause=exc,
            ) from exc

        columns = list(result.column_names or [])
        rows: list[RowPair] = []
        for index, row in enumerate(result):
            if column:
                rows.append((str(index), value_to_text(row[0])))
                continue
            for name, value in zip(columns, row):
                rows.append((f"{index}.{name}", value_to_text(value)))
        return rows


def _lookup(collection: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    try:
        return collection[path[1]]
    except KeyError as exc:
        raise DetailsFetchError(
            f"{path[1]!r} no longer exists in {path[0]}", context={"path": path}
        ) from exc


def _function_rows(function: Any) -> list[RowPair]:
    arguments = ", ".join(
        f"{name} {cql_type}"
        for name, cql_type in zip(function.argument_names, function.argument_types)
    )
    return [
        ("name", function.name),
        ("arguments", arguments),
        ("return_type", value_to_text(function.return_type)),
        ("language", value_to_text(function.language)),
        ("called_on_null_input", value_to_text(function.called_on_null_input)),
        ("body", value_to_text(function.body)),
    ]


def _aggregate_rows(aggregate: Any) -> list[RowPair]:
    return [
        ("name", aggregate.name),
        ("argument_types", ", ".join(aggregate.argument_types)),
        ("state_func", value_to_text(aggregate.state_func)),
        ("state_type", value_to_text(aggregate.state_type)),
        ("final_func", value_to_text(aggregate.final_func)),
        ("initial_condition", value_to_text(aggregate.initial_condition)),
        ("return_type", value_to_text(aggregate.return_type)),
    ]


def _user_type_rows(
    user_type: Any, field: str | None, path: tuple[str, ...]
) -> list[RowPair]:
    pairs = list(zip(user_type.field_names, user_type.field_types))
    if field is None:
        return [(name, value_to_text(cql_type)) for name, cql_type in pairs]
    for name, cql_type in pairs:
        if name == field:
            return [("type", value_to_text(cql_type))]
    raise DetailsFetchError(
        f"Field {field!r} no longer exists on {user_type.name}",
        context={"path": path},
    )
