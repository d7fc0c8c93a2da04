from __future__ import annotations

import asyncio
from typing import Any

import pytest

from roadfeed.exceptions import FeedFetchError
from roadfeed.ingestion.orchestrator import fetch_all
from roadfeed.models.event import SourceTag
from roadfeed.sources.base import FeedScope, SourceAdapter


class _InFlight:
    def __init__(self) -> None:
        self.current = 0
        self.peak = 0


class _ScriptedAdapter(SourceAdapter):
    """Adapter serving canned per-scope results; an exception value is raised."""

    tag = SourceTag.PBS

    def __init__(
        self,
        results: dict[str, Any],
        *,
        delays: dict[str, float] | None = None,
        in_flight: _InFlight | None = None,
        listing_error: Exception | None = None,
    ) -> None:
        super().__init__(transport=None)  # type: ignore[arg-type]
        self._results = results
        self._delays = delays or {}
        self._in_flight = in_flight
        self._listing_error = listing_error

    async def list_scopes(self) -> list[FeedScope]:
        if self._listing_error is not None:
            raise self._listing_error
        return [FeedScope(key=key) for key in self._results]

    async def fetch_records(self, scope: FeedScope) -> list[Any]:
        assert scope.key is not None
        if self._in_flight is not None:
            self._in_flight.current += 1
            self._in_flight.peak = max(self._in_flight.peak, self._in_flight.current)
        try:
            await asyncio.sleep(self._delays.get(scope.key, 0.01))
        finally:
            if self._in_flight is not None:
                self._in_flight.current -= 1
        result = self._results[scope.key]
        if isinstance(result, Exception):
            raise result
        return list(result)


class _NewsAdapter(_ScriptedAdapter):
    tag = SourceTag.TDX_NEWS


@pytest.mark.asyncio
async def test_concurrency_is_capped() -> None:
    in_flight = _InFlight()
    adapter = _ScriptedAdapter({str(i): [{"i": i}] for i in range(20)}, in_flight=in_flight)

    result = await fetch_all([adapter], concurrency=3)

    assert len(result.records) == 20
    assert in_flight.peak == 3
    # 1 listing call + 20 scope fetches
    assert result.units == 21


@pytest.mark.asyncio
async def test_results_follow_adapter_scope_record_order() -> None:
    pbs = _ScriptedAdapter(
        {"1": [{"n": 1}, {"n": 2}], "3": [{"n": 3}]},
        delays={"1": 0.05, "3": 0.0},
    )
    news = _NewsAdapter({"x": [{"n": 4}]}, delays={"x": 0.0})

    result = await fetch_all([pbs, news], concurrency=6)

    assert [record.raw["n"] for record in result.records] == [1, 2, 3, 4]
    assert [record.context.highway_id for record in result.records] == ["1", "1", "3", "x"]
    assert result.records[-1].context.source is SourceTag.TDX_NEWS


@pytest.mark.asyncio
async def test_failing_scope_is_isolated() -> None:
    adapter = _ScriptedAdapter(
        {
            "1": [{"n": 1}],
            "2": FeedFetchError("HTTP 503", status_code=503),
            "3": RuntimeError("boom"),
            "4": [{"n": 4}],
        },
        delays={"3": 0.03},
    )

    result = await fetch_all([adapter])

    assert [record.raw["n"] for record in result.records] == [1, 4]
    assert [(failure.scope, failure.status_code) for failure in result.failures] == [("2", 503), ("3", None)]
    assert "RuntimeError" in result.failures[1].reason
    assert result.failed_sources == {"PBS"}


@pytest.mark.asyncio
async def test_failing_scope_listing_skips_only_that_source() -> None:
    broken = _ScriptedAdapter({}, listing_error=FeedFetchError("HTML instead of JSON"))
    news = _NewsAdapter({"x": [{"n": 1}]})

    result = await fetch_all([broken, news])

    assert [record.raw["n"] for record in result.records] == [1]
    assert len(result.failures) == 1
    assert result.failures[0].source == "PBS"
    assert result.failures[0].scope == "<scopes>"


@pytest.mark.asyncio
async def test_empty_scope_contributes_nothing() -> None:
    result = await fetch_all([_ScriptedAdapter({"1": []})])
    assert result.records == []
    assert result.failures == []


@pytest.mark.asyncio
async def test_invalid_concurrency() -> None:
    with pytest.raises(ValueError):
        await fetch_all([], concurrency=0)


@pytest.mark.asyncio
async def test_listed_scopes_are_reported_per_source() -> None:
    pbs = _ScriptedAdapter({"1": [], "3": []})
    broken = _NewsAdapter({}, listing_error=FeedFetchError("down"))

    result = await fetch_all([pbs, broken])

    assert result.scopes == {"PBS": [FeedScope(key="1"), FeedScope(key="3")]}
