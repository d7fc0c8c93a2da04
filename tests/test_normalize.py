from __future__ import annotations

import dataclasses
from datetime import UTC, datetime, timedelta, timezone

import pytest

from roadfeed.exceptions import FeedValidationError
from roadfeed.ingestion.aliases import PBS_ALIASES
from roadfeed.ingestion.mapper import to_epoch_ms
from roadfeed.ingestion.normalize import drop_stale, normalize, normalize_records
from roadfeed.models.event import Direction, FetchedRecord, SourceContext, SourceTag

TAIPEI = timezone(timedelta(hours=8))
NOW = datetime(2025, 11, 12, 8, 0, tzinfo=UTC)
TTL = 7200

PBS_CONTEXT = SourceContext(source=SourceTag.PBS, highway_id="1", highway_name="國道1號")


def _pbs_record(**changes: object) -> dict[str, object]:
    record: dict[str, object] = {
        "number": "1234",
        "road": "國道1號",
        "title": "事故",
        "comment": "34K+500 車禍 佔用內側車道",
        "kilo": "34K+500",
        "direction": "南向",
        "region": "N",
        "roadtype": "事故",
        "lastmodified": "2025-11-12 15:15:00.0",
        "postdate": "2025-11-12",
    }
    record.update(changes)
    return record


def test_normalize_pbs_record() -> None:
    event = normalize(_pbs_record(), PBS_CONTEXT, ttl=TTL, now=NOW, default_tz=TAIPEI)

    assert len(event.id) == 32
    assert event.source is SourceTag.PBS
    assert event.highway_id == "1"
    assert event.highway_name == "國道1號"
    assert event.title == "事故"
    assert event.description == "34K+500 車禍 佔用內側車道"
    assert event.category == "事故"
    assert event.direction is Direction.S
    assert event.region == "N"
    assert event.km_start == pytest.approx(34.5)
    assert event.km_end is None
    assert event.updated_at == to_epoch_ms(datetime(2025, 11, 12, 7, 15, tzinfo=UTC))
    assert event.posted_at == to_epoch_ms(datetime(2025, 11, 11, 16, 0, tzinfo=UTC))
    assert event.updated_at_synthetic is False
    assert event.valid_until == to_epoch_ms(NOW) + TTL * 1000
    assert event.raw["number"] == "1234"


def test_normalize_is_deterministic_across_fetches() -> None:
    first = normalize(_pbs_record(), PBS_CONTEXT, now=NOW, default_tz=TAIPEI)
    second = normalize(
        _pbs_record(lastFetchedAt=123),
        PBS_CONTEXT,
        now=NOW + timedelta(minutes=5),
        default_tz=TAIPEI,
    )
    assert first.id == second.id
    assert second.valid_until > first.valid_until


def test_normalize_synthesizes_updated_at_from_clock() -> None:
    record = _pbs_record(lastmodified=None, postdate="garbage")
    event = normalize(record, PBS_CONTEXT, ttl=TTL, now=NOW)

    assert event.updated_at_synthetic is True
    assert event.updated_at == to_epoch_ms(NOW)
    assert event.posted_at is None
    assert event.valid_until == to_epoch_ms(NOW) + TTL * 1000


def test_synthetic_clock_does_not_change_id() -> None:
    record = _pbs_record(lastmodified=None)
    first = normalize(record, PBS_CONTEXT, now=NOW)
    later = normalize(record, PBS_CONTEXT, now=NOW + timedelta(hours=1))
    assert first.id == later.id


def test_valid_until_stays_after_future_updated_at() -> None:
    # Provider clock ahead of ours: update time is later than now + ttl.
    now = datetime(2025, 11, 12, 0, 0, tzinfo=UTC)
    event = normalize(_pbs_record(), PBS_CONTEXT, ttl=TTL, now=now, default_tz=TAIPEI)

    assert event.updated_at is not None
    assert event.valid_until > event.updated_at
    assert event.valid_until == event.updated_at + TTL * 1000


def test_title_falls_back_to_placeholder() -> None:
    record = {"number": "9", "lastmodified": "2025-11-12 15:15:00.0"}
    event = normalize(record, PBS_CONTEXT, now=NOW, default_tz=TAIPEI)
    assert event.title == "路況事件"
    assert event.direction is Direction.N


def test_normalize_tdx_news_uses_record_highway() -> None:
    record = {
        "NewsID": "N-77",
        "RoadID": "000010",
        "RoadName": "國道1號",
        "Title": "封閉",
        "Description": "南下 100K 封閉外側車道",
        "NewsCategory": "施工",
        "UpdateTime": "2025-11-12T15:03:20+08:00",
        "PublishTime": "2025-11-12T14:00:00+08:00",
    }
    event = normalize(record, SourceContext(source=SourceTag.TDX_NEWS), now=NOW)

    assert event.highway_id == "000010"
    assert event.highway_name == "國道1號"
    assert event.category == "施工"
    assert event.updated_at == to_epoch_ms(datetime(2025, 11, 12, 7, 3, 20, tzinfo=UTC))
    assert event.posted_at == to_epoch_ms(datetime(2025, 11, 12, 6, 0, tzinfo=UTC))


@pytest.mark.parametrize("raw", ["not a record", 42, None, ["a", "b"]])
def test_normalize_rejects_non_objects(raw: object) -> None:
    with pytest.raises(FeedValidationError):
        normalize(raw, PBS_CONTEXT, now=NOW)  # type: ignore[arg-type]


def test_to_store_uses_camel_case_and_drops_nulls() -> None:
    stored = normalize(_pbs_record(), PBS_CONTEXT, now=NOW, default_tz=TAIPEI).to_store()

    assert stored["source"] == "PBS"
    assert stored["direction"] == "S"
    assert stored["highwayId"] == "1"
    assert stored["kmStart"] == pytest.approx(34.5)
    assert stored["updatedAtSynthetic"] is False
    assert "validUntil" in stored
    assert "kmEnd" not in stored
    assert "km_start" not in stored


def test_normalize_records_drops_bad_records_and_keeps_order() -> None:
    records = [
        FetchedRecord(PBS_CONTEXT, _pbs_record(number="1")),
        FetchedRecord(PBS_CONTEXT, "garbage"),
        FetchedRecord(PBS_CONTEXT, _pbs_record(number="2")),
    ]
    events, dropped = normalize_records(records, now=NOW, default_tz=TAIPEI)

    assert dropped == 1
    assert [event.raw["number"] for event in events] == ["1", "2"]


def test_drop_stale_keeps_synthetic_and_recent_events() -> None:
    fresh = normalize(_pbs_record(number="1"), PBS_CONTEXT, now=NOW, default_tz=TAIPEI)
    old = normalize(
        _pbs_record(number="2", lastmodified="2025-11-01 08:00:00"),
        PBS_CONTEXT,
        now=NOW,
        default_tz=TAIPEI,
    )
    synthetic = normalize(_pbs_record(number="3", lastmodified=None), PBS_CONTEXT, now=NOW)

    kept = drop_stale([fresh, old, synthetic], now=NOW, max_age=86400)
    assert [event.raw["number"] for event in kept] == ["1", "3"]


def test_aliases_come_from_source_table_unless_overridden() -> None:
    record = _pbs_record(headline="改寫標題")
    custom = dataclasses.replace(PBS_ALIASES, title=("headline", "title"))

    default = normalize(record, PBS_CONTEXT, ttl=TTL, now=NOW, default_tz=TAIPEI)
    overridden = normalize(record, PBS_CONTEXT, aliases=custom, ttl=TTL, now=NOW, default_tz=TAIPEI)

    assert default.title == "事故"
    assert overridden.title == "改寫標題"
