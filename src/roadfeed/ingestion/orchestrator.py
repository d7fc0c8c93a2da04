"""Bounded-concurrency fetch stage.

Runs every adapter's scope listing and per-scope fetches through one shared
semaphore. Each unit of work is isolated: a failure is logged, recorded in
:class:`FetchResult.failures` and contributes no records, and the batch
carries on.

Results come back in adapter order, then scope order, then record order
(``asyncio.gather`` keeps input order regardless of completion order), so
"first seen" during deduplication is deterministic for a given snapshot.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from roadfeed._constants import DEFAULT_CONCURRENCY
from roadfeed.exceptions import FeedError, FeedFetchError
from roadfeed.models.event import FetchedRecord
from roadfeed.sources.base import FeedScope, SourceAdapter

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_LISTING_SCOPE = "<scopes>"


@dataclass(frozen=True)
class FetchFailure:
    source: str
    scope: str
    reason: str
    status_code: int | None = None


@dataclass
class FetchResult:
    records: list[FetchedRecord] = field(default_factory=list)
    failures: list[FetchFailure] = field(default_factory=list)
    units: int = 0
    #: Scopes each adapter listed, by adapter name; absent when the listing failed.
    scopes: dict[str, list[FeedScope]] = field(default_factory=dict)

    @property
    def failed_sources(self) -> set[str]:
        return {failure.source for failure in self.failures}


class _Runner:
    def __init__(self, concurrency: int) -> None:
        self._semaphore = asyncio.Semaphore(concurrency)
        self.failures: list[FetchFailure] = []
        self.units = 0
        self.scopes: dict[str, list[FeedScope]] = {}

    async def guarded(self, adapter: SourceAdapter, scope: str, call: Callable[[], Awaitable[T]]) -> T | None:
        self.units += 1
        async with self._semaphore:
            try:
                return await call()
            except FeedError as exc:
                status = exc.status_code if isinstance(exc, FeedFetchError) else None
                _logger.warning("%s scope=%s skipped: %s", adapter.name, scope, exc)
                self.failures.append(FetchFailure(adapter.name, scope, str(exc), status))
            except Exception as exc:  # noqa: BLE001
                _logger.warning("%s scope=%s skipped after unexpected error", adapter.name, scope, exc_info=True)
                self.failures.append(FetchFailure(adapter.name, scope, f"{type(exc).__name__}: {exc}"))
        return None

    async def fetch_scope(self, adapter: SourceAdapter, scope: FeedScope) -> list[FetchedRecord]:
        records = await self.guarded(adapter, scope.label, functools.partial(adapter.fetch_records, scope))
        if records is None:
            return []
        _logger.info("%s scope=%s -> %d record(s)", adapter.name, scope.label, len(records))
        context = adapter.context_for(scope)
        return [FetchedRecord(context, raw) for raw in records]

    async def run_adapter(self, adapter: SourceAdapter) -> list[FetchedRecord]:
        scopes = await self.guarded(adapter, _LISTING_SCOPE, adapter.list_scopes)
        if scopes is None:
            return []
        self.scopes[adapter.name] = list(scopes)
        per_scope = await asyncio.gather(*(self.fetch_scope(adapter, scope) for scope in scopes))
        return [record for records in per_scope for record in records]


async def fetch_all(
    adapters: Sequence[SourceAdapter],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> FetchResult:
    """Fetch raw records from every adapter with at most *concurrency* calls in flight."""
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    runner = _Runner(concurrency)
    per_adapter: list[list[FetchedRecord]] = await asyncio.gather(*(runner.run_adapter(adapter) for adapter in adapters))
    return FetchResult(
        records=[record for records in per_adapter for record in records],
        failures=runner.failures,
        units=runner.units,
        scopes=runner.scopes,
    )
