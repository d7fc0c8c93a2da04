from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from roadfeed.ingestion.mapper import to_epoch_ms
from roadfeed.ingestion.shoulder import extract_shoulder_openings
from roadfeed.models.event import Direction, FetchedRecord, SourceContext, SourceTag
from roadfeed.store.base import store_key

TAIPEI = timezone(timedelta(hours=8))
NOW = datetime(2025, 11, 12, 8, 0, tzinfo=UTC)
NEWS = SourceContext(source=SourceTag.TDX_NEWS)


def _news(**changes: object) -> dict[str, object]:
    item: dict[str, object] = {
        "NewsID": "N-100",
        "RoadID": "000010",
        "RoadName": "國道1號",
        "Title": "國道1號 南向 開放路肩",
        "Direction": "南向",
        "StartKM": "40K+200",
        "EndKM": "45K+000",
        "PublishTime": "2025-11-12T06:30:00+08:00",
        "UpdateTime": "2025-11-12T15:00:00+08:00",
    }
    item.update(changes)
    return item


def test_extracts_shoulder_notice_fields() -> None:
    openings = extract_shoulder_openings([FetchedRecord(NEWS, _news())], ttl=7200, now=NOW)

    assert list(openings) == ["N-100"]
    opening = openings["N-100"]
    assert opening.road_id == "000010"
    assert opening.road_name == "國道1號"
    assert opening.direction is Direction.S
    assert opening.start_km == pytest.approx(40.2)
    assert opening.end_km == pytest.approx(45.0)
    assert opening.time_range == "2025-11-12T06:30:00+08:00 ~ 2025-11-12T15:00:00+08:00"
    assert opening.updated_at == to_epoch_ms(datetime(2025, 11, 12, 7, 0, tzinfo=UTC))
    assert opening.published_at == to_epoch_ms(datetime(2025, 11, 11, 22, 30, tzinfo=UTC))
    assert opening.valid_until == to_epoch_ms(NOW) + 7_200_000


def test_only_news_titles_with_keyword_are_kept() -> None:
    records = [
        FetchedRecord(NEWS, _news(NewsID="N-1", Title="施工封閉內側車道")),
        FetchedRecord(SourceContext(source=SourceTag.TDX_EVENT), _news(NewsID="N-2")),
        FetchedRecord(SourceContext(source=SourceTag.PBS, highway_id="1"), {"title": "開放路肩"}),
        FetchedRecord(NEWS, _news(NewsID=None)),
        FetchedRecord(NEWS, "not a record"),
        FetchedRecord(NEWS, _news(NewsID="N-3")),
    ]
    assert list(extract_shoulder_openings(records, now=NOW)) == ["N-3"]


def test_first_notice_per_news_id_wins() -> None:
    records = [
        FetchedRecord(NEWS, _news(StartKM="1K+000")),
        FetchedRecord(NEWS, _news(StartKM="2K+000")),
    ]
    openings = extract_shoulder_openings(records, now=NOW)
    assert openings["N-100"].start_km == pytest.approx(1.0)


def test_to_store_is_camel_case_and_keys_are_path_safe() -> None:
    openings = extract_shoulder_openings([FetchedRecord(NEWS, _news(NewsID="A.1/2"))], now=NOW)

    (key,) = openings
    assert key == "A_1_2"
    stored = openings[key].to_store()
    assert stored["newsId"] == "A.1/2"
    assert stored["source"] == "TDX_NEWS"
    assert stored["timeRange"].endswith("~ 2025-11-12T15:00:00+08:00")
    assert "startKm" in stored


def test_naive_times_use_default_tz() -> None:
    record = _news(UpdateTime="2025-11-12 15:00:00", PublishTime=None)
    opening = extract_shoulder_openings([FetchedRecord(NEWS, record)], now=NOW, default_tz=TAIPEI)["N-100"]
    assert opening.updated_at == to_epoch_ms(datetime(2025, 11, 12, 7, 0, tzinfo=UTC))
    assert opening.time_range == "~ 2025-11-12 15:00:00"


def test_store_key() -> None:
    assert store_key(" 12#3[4]$ ") == "12_3_4__"
