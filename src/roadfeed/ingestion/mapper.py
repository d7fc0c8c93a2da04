"""Field mapping helpers.

Centralizes alias lookup and the tolerant parsers for kilometre posts,
compass directions and provider timestamps. Nothing here raises for a
missing or malformed field; the result is ``None`` (or the documented
default) instead.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Any

from dateutil import parser as dtparser

from roadfeed.ingestion.aliases import TimestampField
from roadfeed.models.event import Direction

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# Sentinel strings providers use for "not available".
_PLACEHOLDERS = frozenset({"", "--", "null", "None"})

_KM_MARKER_RE = re.compile(r"^(\d+)\s*K\s*\+\s*(\d+)\s*M?$", re.IGNORECASE)
_NON_NUMERIC_RE = re.compile(r"[^\d.]")

# Digit-only strings of these lengths are epoch seconds / milliseconds.
_EPOCH_DIGITS = frozenset({10, 13})

# Two unrelated fill-in dates; a string whose parse depends on them lacks a date.
_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))

_DIRECTION_PREFIXES: dict[str, Direction] = {
    "N": Direction.N,
    "S": Direction.S,
    "E": Direction.E,
    "W": Direction.W,
    "北": Direction.N,
    "南": Direction.S,
    "東": Direction.E,
    "东": Direction.E,
    "西": Direction.W,
}

#: Direction used when a record carries none or an unrecognized one.
DEFAULT_DIRECTION = Direction.N


def is_meaningful(value: Any) -> bool:
    """Return True if *value* counts as present for alias lookup."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() not in _PLACEHOLDERS
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value != {} and value != [])


def safe_str(value: Any) -> str | None:
    if not is_meaningful(value):
        return None
    text = str(value).strip()
    return text if text else None


def first_value(raw: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    """Return the first meaningful value among *aliases*, tried in order."""
    for key in aliases:
        value = raw.get(key)
        if is_meaningful(value):
            return value
    return None


def first_text(raw: Mapping[str, Any], aliases: Iterable[str]) -> str | None:
    return safe_str(first_value(raw, aliases))


def parse_km(value: Any) -> float | None:
    """Parse a kilometre post.

    Accepts numbers, plain decimals (``"34.5"``) and the marker notation
    ``"34K+500"`` (km plus metres, giving ``34.5``). Anything else has its
    non-numeric characters stripped before a last parse attempt.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
        return result if math.isfinite(result) else None

    text = str(value).strip()
    if not text:
        return None

    marker = _KM_MARKER_RE.match(text)
    if marker:
        return int(marker.group(1)) + int(marker.group(2)) / 1000

    try:
        result = float(text)
    except ValueError:
        stripped = _NON_NUMERIC_RE.sub("", text)
        try:
            result = float(stripped)
        except ValueError:
            return None
    return result if math.isfinite(result) else None


def parse_direction(value: Any) -> Direction:
    """Map free-form direction text to a compass point.

    The first character decides (``"Northbound"`` -> N, ``"南向"`` -> S).
    Missing or unrecognized input falls back to :data:`DEFAULT_DIRECTION`.
    """
    text = safe_str(value)
    if text is None:
        return DEFAULT_DIRECTION
    return _DIRECTION_PREFIXES.get(text[0].upper(), DEFAULT_DIRECTION)


def to_epoch_ms(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def _epoch_number_to_ms(value: float) -> int | None:
    if not math.isfinite(value) or value <= 0:
        return None
    # Treat values above 1e11 as milliseconds.
    if value > 1e11:
        return int(value)
    return int(value * 1000)


def _parse_date_text(text: str) -> datetime | None:
    try:
        first, second = (dtparser.parse(text, default=default) for default in _FILL_DEFAULTS)
    except (ValueError, OverflowError):
        return None
    if first.date() != second.date():
        return None
    return first


def parse_timestamp_ms(value: Any, *, default_tz: tzinfo = UTC) -> int | None:
    """Parse a provider timestamp to epoch milliseconds.

    Handles epoch numbers (seconds or milliseconds, or 10/13 digit strings)
    and any date string ``dateutil`` understands: ISO-8601 with or without an
    offset, ``"YYYY-MM-DD HH:MM:SS.fffffff"``, RFC 2822, compact
    ``"YYYYMMDD"``. Naive values are read in *default_tz*. Returns ``None``
    when the value does not name a calendar date.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return to_epoch_ms(value if value.tzinfo else value.replace(tzinfo=default_tz))
    if isinstance(value, (int, float)):
        return _epoch_number_to_ms(float(value))

    text = str(value).strip()
    if not text:
        return None
    if text.isdigit() and len(text) in _EPOCH_DIGITS:
        return _epoch_number_to_ms(float(text))

    moment = _parse_date_text(text)
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=default_tz)
    return to_epoch_ms(moment)


def resolve_timestamp(
    raw: Mapping[str, Any],
    chain: Iterable[TimestampField],
    *,
    default_tz: tzinfo = UTC,
) -> int | None:
    """Return the first timestamp in *chain* that parses, else ``None``.

    Split fields (date + time) only count when both halves are present.
    """
    for entry in chain:
        date_value = first_value(raw, (entry.date,))
        if date_value is None:
            continue
        candidate: Any = date_value
        if entry.time is not None:
            time_value = first_text(raw, (entry.time,))
            if time_value is None:
                continue
            candidate = f"{str(date_value).strip()} {time_value}"
        parsed = parse_timestamp_ms(candidate, default_tz=default_tz)
        if parsed is not None:
            return parsed
    return None
