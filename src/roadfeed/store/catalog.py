"""Highway catalog written from the PBS scope listing."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from roadfeed.sources.base import FeedScope
from roadfeed.store.base import Store

_logger = logging.getLogger(__name__)


def catalog_entries(highways: Iterable[FeedScope]) -> list[dict[str, Any]]:
    entries: list[dict[str, Any]] = []
    for scope in highways:
        if scope.key is None:
            continue
        entry: dict[str, Any] = {"sn": scope.key}
        if scope.name:
            entry["name"] = scope.name
        entries.append(entry)
    return entries


async def write_highway_catalog(
    store: Store,
    path: str,
    highways: Iterable[FeedScope],
    *,
    now: datetime,
    dry_run: bool = False,
) -> int:
    """Replace the catalog at *path* with ``{"formData": [...], "updatedAt": ...}``.

    Nothing is written when no highway was listed, so a failed listing keeps
    the previous catalog. Returns the number of highways.
    """
    entries = catalog_entries(highways)
    if not entries:
        return 0
    if dry_run:
        _logger.info("Dry run: would write %d highway(s) to %s", len(entries), path)
        return len(entries)

    await store.update(path, {"formData": entries, "updatedAt": now.astimezone(UTC).isoformat()})
    return len(entries)
