"""Canonical road event model.

Every provider record is reconciled into a :class:`CanonicalEvent`. The
model is frozen: a later run produces a new value that replaces the stored
one wholesale, it never patches an existing event.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class SourceTag(StrEnum):
    PBS = "PBS"
    TDX_NEWS = "TDX_NEWS"
    TDX_EVENT = "TDX_EVENT"


class Direction(StrEnum):
    N = "N"
    S = "S"
    E = "E"
    W = "W"


class SourceContext(BaseModel):
    """Where a raw record came from (provider + highway scope)."""

    model_config = ConfigDict(frozen=True)

    source: SourceTag
    highway_id: str | None = None
    highway_name: str | None = None


class CanonicalEvent(BaseModel):
    """A provider-agnostic road event.

    Timestamps are epoch milliseconds. ``raw`` keeps the original record for
    diagnostics and never takes part in the fingerprint.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str = Field(..., description="Deterministic fingerprint of the stable fields")
    source: SourceTag
    highway_id: str | None = None
    highway_name: str | None = None
    title: str | None = None
    description: str | None = None
    category: str | None = None
    direction: Direction | None = None
    region: str | None = None
    km_start: float | None = None
    km_end: float | None = None
    posted_at: int | None = None
    updated_at: int | None = None
    updated_at_synthetic: bool = Field(
        default=False,
        description="True when updated_at fell back to the wall clock.",
    )
    valid_until: int
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def _require_id(cls, value: str) -> str:
        event_id = value.strip()
        if not event_id:
            raise ValueError("id must be non-empty")
        return event_id

    @model_validator(mode="after")
    def _check_validity_window(self) -> CanonicalEvent:
        if self.updated_at is not None and self.valid_until <= self.updated_at:
            raise ValueError("valid_until must be later than updated_at")
        return self

    def to_store(self) -> dict[str, Any]:
        """Serialise for the store: camelCase keys, JSON types, no ``None`` values."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class FetchedRecord(NamedTuple):
    """One raw provider record paired with the context it was fetched in.

    ``raw`` is whatever the provider returned for that list item; it is
    usually a dict, and the normalizer rejects anything else.
    """

    context: SourceContext
    raw: Any
