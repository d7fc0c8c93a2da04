"""Hard-shoulder opening notices."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from roadfeed.models.event import Direction, SourceTag


class ShoulderOpening(BaseModel):
    """A temporary hard-shoulder opening announced in a TDX news item.

    Stored under the news id; ``time_range`` keeps the provider's
    ``"<PublishTime> ~ <UpdateTime>"`` text as published.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    news_id: str
    source: SourceTag = SourceTag.TDX_NEWS
    road_id: str | None = None
    road_name: str | None = None
    title: str
    start_km: float | None = None
    end_km: float | None = None
    direction: Direction
    time_range: str | None = None
    published_at: int | None = None
    updated_at: int | None = None
    valid_until: int

    @model_validator(mode="after")
    def _check_validity_window(self) -> ShoulderOpening:
        if self.updated_at is not None and self.valid_until <= self.updated_at:
            raise ValueError("valid_until must be later than updated_at")
        return self

    def to_store(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
