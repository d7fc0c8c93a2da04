"""Freeway Bureau (PBS) road report adapter.

Endpoints:
  - /queryHighway              -> ``{"formData": [{"name", "sn"}, ...]}``
  - /roadAllCache?sn=<sn>      -> ``{"formData": [record, ...]}``
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from roadfeed._transport import Transport
from roadfeed.ingestion.mapper import safe_str
from roadfeed.models.event import SourceTag
from roadfeed.sources.base import FeedScope, SourceAdapter

_logger = logging.getLogger(__name__)


class PbsHighway(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    sn: str
    name: str | None = None

    @field_validator("sn", mode="before")
    @classmethod
    def _coerce_sn(cls, value: Any) -> Any:
        return safe_str(value) if isinstance(value, (int, str)) else value

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str | None:
        return safe_str(value)


class _PbsHighwayList(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    form_data: list[PbsHighway] = Field(..., alias="formData")


class _PbsRoadAll(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    form_data: list[Any] = Field(..., alias="formData")


class PbsAdapter(SourceAdapter):
    """Fans out one ``roadAllCache`` call per highway listed by ``queryHighway``."""

    tag = SourceTag.PBS

    def __init__(self, transport: Transport, *, base_url: str) -> None:
        super().__init__(transport)
        self._base_url = base_url.rstrip("/")

    async def list_scopes(self) -> list[FeedScope]:
        url = f"{self._base_url}/queryHighway"
        payload = await self._transport.get_json(url)
        highways = self._parse_envelope(_PbsHighwayList, payload, url=url, scope=FeedScope()).form_data
        _logger.info("PBS lists %d highway(s)", len(highways))
        return [FeedScope(key=highway.sn, name=highway.name) for highway in highways]

    async def fetch_records(self, scope: FeedScope) -> list[Any]:
        url = f"{self._base_url}/roadAllCache"
        params = {"sn": scope.key} if scope.key is not None else None
        payload = await self._transport.get_json(url, params=params)
        return self._parse_envelope(_PbsRoadAll, payload, url=url, scope=scope).form_data
