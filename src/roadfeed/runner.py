"""One ingestion batch: fetch -> normalize -> dedup/upsert -> prune.

Shoulder openings and the highway catalog, when their paths are configured,
are written after the events and before the sweep.

The only concurrency boundary is the fetch stage. Everything after it is
synchronous in-memory work followed by store calls, and each stage completes
before the next one starts, so a run never prunes what it just wrote.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

import aiohttp

from roadfeed._transport import HttpTransport
from roadfeed.config import FeedConfig
from roadfeed.ingestion.mapper import to_epoch_ms
from roadfeed.ingestion.normalize import drop_stale, normalize_records
from roadfeed.ingestion.orchestrator import fetch_all
from roadfeed.ingestion.shoulder import extract_shoulder_openings
from roadfeed.models.event import SourceTag
from roadfeed.sources import build_adapters
from roadfeed.sources.base import SourceAdapter
from roadfeed.store.base import Store
from roadfeed.store.catalog import write_highway_catalog
from roadfeed.store.firebase import FirebaseStore
from roadfeed.store.memory import MemoryStore
from roadfeed.store.sweeper import prune_expired
from roadfeed.store.upsert import dedupe, upsert_events, write_entries

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclasses.dataclass
class RunSummary:
    """Counts reported at the end of a run."""

    fetched: int = 0
    normalized: int = 0
    dropped: int = 0
    stale: int = 0
    unique: int = 0
    written: int = 0
    shoulder_openings: int = 0
    catalog_highways: int = 0
    pruned: int = 0
    fetch_units: int = 0
    failed_units: int = 0
    dry_run: bool = False

    def counts(self) -> dict[str, int]:
        return {key: value for key, value in dataclasses.asdict(self).items() if key != "dry_run"}


async def run(
    config: FeedConfig,
    *,
    adapters: Sequence[SourceAdapter],
    store: Store,
    clock: Callable[[], datetime] = _utcnow,
) -> RunSummary:
    """Execute one batch against *store*.

    Store failures propagate as :class:`~roadfeed.exceptions.FeedStoreError`;
    fetch and record failures are absorbed and counted.
    """
    summary = RunSummary(dry_run=config.dry_run)

    fetched = await fetch_all(adapters, concurrency=config.concurrency)
    summary.fetched = len(fetched.records)
    summary.fetch_units = fetched.units
    summary.failed_units = len(fetched.failures)

    now = clock()
    events, summary.dropped = normalize_records(fetched.records, ttl=config.ttl, now=now, default_tz=config.source_tz)
    summary.normalized = len(events)

    if config.max_event_age is not None:
        fresh = drop_stale(events, now=now, max_age=config.max_event_age)
        summary.stale = len(events) - len(fresh)
        events = fresh

    unique = dedupe(events)
    summary.unique = len(unique)
    summary.written = await upsert_events(store, config.events_path, unique, dry_run=config.dry_run)

    if config.shoulder_path:
        openings = extract_shoulder_openings(
            fetched.records,
            ttl=config.ttl,
            now=now,
            default_tz=config.source_tz,
        )
        summary.shoulder_openings = await write_entries(
            store,
            config.shoulder_path,
            {key: opening.to_store() for key, opening in openings.items()},
            dry_run=config.dry_run,
            label="shoulder opening",
        )

    if config.catalog_path:
        summary.catalog_highways = await write_highway_catalog(
            store,
            config.catalog_path,
            fetched.scopes.get(SourceTag.PBS.value, []),
            now=now,
            dry_run=config.dry_run,
        )

    sweep_time = clock()
    summary.pruned = await prune_expired(store, config.events_path, now=sweep_time, dry_run=config.dry_run)
    if config.shoulder_path:
        summary.pruned += await prune_expired(store, config.shoulder_path, now=sweep_time, dry_run=config.dry_run)

    if config.meta_path and not config.dry_run:
        finished = clock()
        await store.update(
            config.meta_path,
            {
                "lastSuccessTime": finished.astimezone(UTC).isoformat(),
                "lastSuccessAt": to_epoch_ms(finished),
                "counts": summary.counts(),
            },
        )

    _logger.info(
        "Run complete%s: fetched=%d normalized=%d dropped=%d stale=%d unique=%d written=%d shoulder=%d "
        "pruned=%d failed_units=%d/%d",
        " (dry run)" if config.dry_run else "",
        summary.fetched,
        summary.normalized,
        summary.dropped,
        summary.stale,
        summary.unique,
        summary.written,
        summary.shoulder_openings,
        summary.pruned,
        summary.failed_units,
        summary.fetch_units,
    )
    return summary


async def run_from_config(
    config: FeedConfig,
    *,
    http_session: aiohttp.ClientSession | None = None,
    store: Store | None = None,
) -> RunSummary:
    """Build transport, adapters and store client from *config*, then run once.

    Without a store URL (dry run only) events go to a throwaway
    :class:`MemoryStore`.
    """
    owns_session = http_session is None
    session = http_session or aiohttp.ClientSession()
    try:
        transport = HttpTransport(session, timeout=config.request_timeout)
        adapters = build_adapters(config, transport)
        if store is None:
            if config.store_url:
                store = FirebaseStore(
                    session,
                    base_url=config.store_url,
                    auth_token=config.store_auth_token,
                    timeout=config.request_timeout,
                )
            else:
                _logger.info("No store URL configured; using an in-memory store")
                store = MemoryStore()
        return await run(config, adapters=adapters, store=store)
    finally:
        if owns_session:
            await session.close()
