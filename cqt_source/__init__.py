"""Schema metadata access for cql-tui.

The UI core only talks to :class:`MetadataSource`; the Cassandra-backed
implementation lives in :mod:`cqt_source.cassandra`.
"""

from cqt_source.protocols import Credentials, MetadataSource, RowPair
from cqt_source.snapshot import CATEGORY_ORDER, KeyspaceSnapshot

__all__ = [
    "CATEGORY_ORDER",
    "Credentials",
    "KeyspaceSnapshot",
    "MetadataSource",
    "RowPair",
]
