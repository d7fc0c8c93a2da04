"""Hard-shoulder openings picked out of TDX news items.

The TDX news feed announces temporary shoulder openings as ordinary news
whose title mentions 路肩. Besides being normalized as events, those items
are kept as :class:`ShoulderOpening` records keyed by their news id.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, tzinfo

from roadfeed._constants import DEFAULT_TTL_SECONDS
from roadfeed.ingestion.aliases import TDX_NEWS_ALIASES
from roadfeed.ingestion.mapper import (
    first_text,
    first_value,
    parse_direction,
    parse_km,
    resolve_timestamp,
    to_epoch_ms,
)
from roadfeed.models.event import FetchedRecord, SourceTag
from roadfeed.models.shoulder import ShoulderOpening
from roadfeed.store.base import store_key

_logger = logging.getLogger(__name__)

SHOULDER_KEYWORD = "路肩"


def _time_range(raw: Mapping[str, object]) -> str | None:
    published = first_text(raw, ("PublishTime",))
    updated = first_text(raw, ("UpdateTime",))
    if published is None and updated is None:
        return None
    return f"{published or ''} ~ {updated or ''}".strip()


def extract_shoulder_openings(
    records: Iterable[FetchedRecord],
    *,
    ttl: float = DEFAULT_TTL_SECONDS,
    now: datetime | None = None,
    default_tz: tzinfo = UTC,
) -> dict[str, ShoulderOpening]:
    """Return shoulder openings from TDX news records, keyed by news id.

    Records from other sources, titles without the keyword and items without
    a news id are skipped. The first item seen for a news id wins.
    """
    now_ms = to_epoch_ms(now if now is not None else datetime.now(UTC))
    ttl_ms = int(ttl * 1000)
    aliases = TDX_NEWS_ALIASES

    openings: dict[str, ShoulderOpening] = {}
    for context, raw in records:
        if context.source is not SourceTag.TDX_NEWS or not isinstance(raw, Mapping):
            continue
        title = first_text(raw, aliases.title)
        if title is None or SHOULDER_KEYWORD not in title:
            continue
        news_id = first_text(raw, aliases.sequence)
        if news_id is None:
            _logger.debug("Skipping shoulder notice without a news id: %s", title)
            continue
        key = store_key(news_id)
        if key in openings:
            continue

        updated_at = resolve_timestamp(raw, aliases.updated, default_tz=default_tz)
        valid_until = now_ms + ttl_ms
        if updated_at is not None and valid_until <= updated_at:
            valid_until = updated_at + ttl_ms

        openings[key] = ShoulderOpening(
            news_id=news_id,
            road_id=first_text(raw, aliases.highway),
            road_name=first_text(raw, aliases.highway_name),
            title=title,
            start_km=parse_km(first_value(raw, aliases.km_start)),
            end_km=parse_km(first_value(raw, aliases.km_end)),
            direction=parse_direction(first_value(raw, aliases.direction)),
            time_range=_time_range(raw),
            published_at=resolve_timestamp(raw, aliases.posted, default_tz=default_tz),
            updated_at=updated_at,
            valid_until=valid_until,
        )
    return openings
