"""Raw record -> :class:`CanonicalEvent` normalization.

Pure apart from the wall clock, which sets ``valid_until`` and stands in for
``updated_at`` when no provider timestamp parses.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, tzinfo
from typing import Any

from pydantic import ValidationError

from roadfeed._constants import DEFAULT_TTL_SECONDS, FALLBACK_TITLE
from roadfeed.exceptions import FeedValidationError
from roadfeed.ingestion.aliases import ALIASES_BY_SOURCE, FieldAliases
from roadfeed.ingestion.fingerprint import digest, stable_projection
from roadfeed.ingestion.mapper import first_text, first_value, parse_direction, parse_km, to_epoch_ms
from roadfeed.models.event import CanonicalEvent, FetchedRecord, SourceContext

_logger = logging.getLogger(__name__)


def normalize(
    raw: Mapping[str, Any],
    context: SourceContext,
    *,
    ttl: float = DEFAULT_TTL_SECONDS,
    now: datetime | None = None,
    aliases: FieldAliases | None = None,
    default_tz: tzinfo = UTC,
) -> CanonicalEvent:
    """Turn one provider record into a canonical event.

    Parameters
    ----------
    raw
        The provider record, as decoded from JSON.
    context
        Source tag and highway scope the record was fetched under.
    ttl
        Seconds the event stays valid from *now*.
    now
        Clock override; defaults to the current UTC time.
    aliases
        Alias table override; defaults to the table registered for the source.
    default_tz
        Timezone for provider timestamps that carry no offset.

    Raises
    ------
    FeedValidationError
        If *raw* is not a mapping or the event cannot be built.
    """
    if not isinstance(raw, Mapping):
        raise FeedValidationError(f"{context.source} record is not an object: {type(raw).__name__}")

    table = aliases if aliases is not None else ALIASES_BY_SOURCE[context.source]
    now_ms = to_epoch_ms(now if now is not None else datetime.now(UTC))
    ttl_ms = int(ttl * 1000)

    projection = stable_projection(raw, context, table, default_tz=default_tz)

    updated_at: int | None = projection["updated"]
    synthetic = updated_at is None
    if updated_at is None:
        updated_at = now_ms

    valid_until = now_ms + ttl_ms
    if valid_until <= updated_at:
        # Provider clock ahead of ours; keep the window after the update time.
        valid_until = updated_at + ttl_ms

    try:
        return CanonicalEvent(
            id=digest(projection),
            source=context.source,
            highway_id=context.highway_id or first_text(raw, table.highway),
            highway_name=context.highway_name or first_text(raw, table.highway_name),
            title=projection["title"] or FALLBACK_TITLE,
            description=projection["desc"],
            category=first_text(raw, table.category),
            direction=parse_direction(first_value(raw, table.direction)),
            region=first_text(raw, table.region),
            km_start=parse_km(first_value(raw, table.km_start)),
            km_end=parse_km(first_value(raw, table.km_end)),
            posted_at=projection["posted"],
            updated_at=updated_at,
            updated_at_synthetic=synthetic,
            valid_until=valid_until,
            raw=dict(raw),
        )
    except ValidationError as exc:
        raise FeedValidationError(f"{context.source} record rejected: {exc.error_count()} invalid field(s)") from exc


def normalize_records(
    records: Iterable[FetchedRecord],
    *,
    ttl: float = DEFAULT_TTL_SECONDS,
    now: datetime | None = None,
    default_tz: tzinfo = UTC,
) -> tuple[list[CanonicalEvent], int]:
    """Normalize a batch, dropping records that fail validation.

    Returns the events in input order and the number of dropped records.
    """
    if now is None:
        now = datetime.now(UTC)
    events: list[CanonicalEvent] = []
    dropped = 0
    for context, raw in records:
        try:
            events.append(normalize(raw, context, ttl=ttl, now=now, default_tz=default_tz))
        except FeedValidationError as exc:
            dropped += 1
            _logger.warning("Dropping %s record (highway=%s): %s", context.source, context.highway_id, exc)
    return events, dropped


def drop_stale(events: Iterable[CanonicalEvent], *, now: datetime, max_age: float) -> list[CanonicalEvent]:
    """Keep events whose provider update time is within *max_age* seconds of *now*.

    Events with a synthetic update time have no provider age and are kept.
    """
    cutoff = to_epoch_ms(now) - int(max_age * 1000)
    kept: list[CanonicalEvent] = []
    for event in events:
        if not event.updated_at_synthetic and event.updated_at is not None and event.updated_at < cutoff:
            continue
        kept.append(event)
    return kept
