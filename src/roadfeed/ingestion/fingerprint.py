"""Deterministic event identity.

The id is a digest of a fixed projection of fields that describe the event
itself. Fetch times and other values that change on every run without the
event changing are never part of the projection.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from datetime import UTC, tzinfo
from typing import Any

from roadfeed.ingestion.aliases import FieldAliases
from roadfeed.ingestion.mapper import first_text, first_value, resolve_timestamp
from roadfeed.models.event import SourceContext

#: Hex characters kept from the SHA-256 digest (128 bits).
FINGERPRINT_HEX_LENGTH = 32


def stable_projection(
    raw: Mapping[str, Any],
    context: SourceContext,
    aliases: FieldAliases,
    *,
    default_tz: tzinfo = UTC,
) -> dict[str, Any]:
    """Build the schema-fixed identity projection of *raw*."""
    km = first_value(raw, aliases.km_start)
    return {
        "src": context.source.value,
        "highway": context.highway_id or first_text(raw, aliases.highway),
        "title": first_text(raw, aliases.title),
        "desc": first_text(raw, aliases.description),
        "km": None if km is None else str(km).strip(),
        "number": first_text(raw, aliases.sequence),
        "updated": resolve_timestamp(raw, aliases.updated, default_tz=default_tz),
        "posted": resolve_timestamp(raw, aliases.posted, default_tz=default_tz),
    }


def digest(projection: Mapping[str, Any]) -> str:
    encoded = json.dumps(projection, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()[:FINGERPRINT_HEX_LENGTH]


def fingerprint(
    raw: Mapping[str, Any],
    context: SourceContext,
    aliases: FieldAliases,
    *,
    default_tz: tzinfo = UTC,
) -> str:
    """Return the stable event id for *raw* seen through *context*."""
    return digest(stable_projection(raw, context, aliases, default_tz=default_tz))
