"""Turn a keyspace snapshot into the labels and paths fed to the node tree."""

from __future__ import annotations

from dataclasses import dataclass

from cqt_source.snapshot import CATEGORY_ORDER, KeyspaceSnapshot


@dataclass(frozen=True)
class ScanOutcome:
    labels: tuple[str, ...]
    paths: tuple[tuple[str, ...], ...]


def scan_categories(snapshot: KeyspaceSnapshot) -> list[str]:
    """Category labels in display priority, skipping empty collections."""
    return [label for label, attr in CATEGORY_ORDER if getattr(snapshot, attr)]


def scan_paths(snapshot: KeyspaceSnapshot) -> list[tuple[str, ...]]:
    """Entity paths per category, each followed by its field paths."""
    paths: list[tuple[str, ...]] = []
    for label in scan_categories(snapshot):
        for entity, fields in snapshot.collection(label).items():
            paths.append((label, entity))
            paths.extend((label, entity, name) for name in fields)
    return paths


def scan(snapshot: KeyspaceSnapshot) -> ScanOutcome:
    return ScanOutcome(
        labels=tuple(scan_categories(snapshot)),
        paths=tuple(scan_paths(snapshot)),
    )
