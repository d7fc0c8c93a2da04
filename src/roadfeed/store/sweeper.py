"""Expiry sweeping for the event store."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from roadfeed.ingestion.mapper import to_epoch_ms
from roadfeed.store.base import Store

_logger = logging.getLogger(__name__)


def is_expired(now_ms: int, entry: Any) -> bool:
    """True when *entry* carries a numeric ``validUntil`` earlier than *now_ms*.

    Entries without a usable ``validUntil`` never expire here.
    """
    if not isinstance(entry, Mapping):
        return False
    valid_until = entry.get("validUntil")
    if isinstance(valid_until, bool) or not isinstance(valid_until, (int, float)):
        return False
    return valid_until < now_ms


def select_expired(entries: Mapping[str, Any], now_ms: int) -> list[str]:
    return [key for key, entry in entries.items() if is_expired(now_ms, entry)]


async def prune_expired(
    store: Store,
    path: str,
    *,
    now: datetime,
    dry_run: bool = False,
) -> int:
    """Delete every entry under *path* whose validity window has elapsed.

    Issues at most one update; an empty region or nothing expired means no
    write at all. Returns the number of entries removed (or that would be
    removed in dry run).
    """
    entries = await store.get(path)
    if not isinstance(entries, Mapping) or not entries:
        return 0

    expired = select_expired(entries, to_epoch_ms(now))
    if not expired:
        return 0
    if dry_run:
        _logger.info("Dry run: would prune %d expired event(s) from %s", len(expired), path)
        return len(expired)

    await store.update(path, dict.fromkeys(expired))
    return len(expired)
