"""Deduplicate a run's events and write them with one atomic update."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from roadfeed.models.event import CanonicalEvent
from roadfeed.store.base import Store

_logger = logging.getLogger(__name__)


def dedupe(events: Iterable[CanonicalEvent]) -> list[CanonicalEvent]:
    """Keep the first event seen for each id, preserving input order."""
    unique: dict[str, CanonicalEvent] = {}
    for event in events:
        unique.setdefault(event.id, event)
    return list(unique.values())


async def write_entries(
    store: Store,
    path: str,
    entries: Mapping[str, Mapping[str, Any]],
    *,
    dry_run: bool = False,
    label: str = "entry",
) -> int:
    """Write keyed *entries* under *path* in a single update.

    Each key fully replaces what was stored under it; other keys are left
    alone. An empty mapping issues no write. Returns the number of entries
    (also in dry run, where the write itself is skipped).
    """
    if not entries:
        return 0
    if dry_run:
        _logger.info("Dry run: would write %d %s(s) to %s", len(entries), label, path)
        return len(entries)

    await store.update(path, dict(entries))
    _logger.debug("Wrote %d %s(s) to %s", len(entries), label, path)
    return len(entries)


async def upsert_events(
    store: Store,
    path: str,
    events: Iterable[CanonicalEvent],
    *,
    dry_run: bool = False,
) -> int:
    """Write deduplicated *events* under *path*, keyed by id."""
    entries = {event.id: event.to_store() for event in dedupe(events)}
    return await write_entries(store, path, entries, dry_run=dry_run, label="event")
