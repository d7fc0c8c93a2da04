"""TDX (Transport Data eXchange) freeway adapters.

Endpoints:
  - /v2/Road/Traffic/Live/News/Freeway   -> list, or ``{"Newses": [...]}``
  - /v2/Road/Traffic/Live/Event/Freeway  -> list, or ``{"LiveEvents": [...]}``

Authentication is the OAuth2 client-credentials flow. Without credentials
the adapters call the API anonymously, which TDX allows at a lower rate.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any, ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from roadfeed._constants import TOKEN_EXPIRY_MARGIN_SECONDS
from roadfeed._transport import Transport
from roadfeed.exceptions import FeedEnvelopeError
from roadfeed.models.event import SourceTag
from roadfeed.sources.base import FeedScope, SourceAdapter

_logger = logging.getLogger(__name__)


class TdxToken(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    access_token: str = Field(..., min_length=1)
    expires_in: float = 86400.0
    token_type: str = "Bearer"


class TdxTokenProvider:
    """Caches a client-credentials bearer token until shortly before it expires."""

    def __init__(
        self,
        transport: Transport,
        *,
        token_url: str,
        client_id: str,
        client_secret: str,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._transport = transport
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._clock = clock
        self._lock = asyncio.Lock()
        self._token: str | None = None
        self._expires_at: float = 0.0

    @property
    def is_valid(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at

    async def get_token(self) -> str:
        """Return a valid access token, exchanging credentials when needed."""
        async with self._lock:
            if self._token is not None and self.is_valid:
                return self._token

            payload = await self._transport.post_form(
                self._token_url,
                {
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                },
            )
            try:
                token = TdxToken.model_validate(payload)
            except ValidationError as exc:
                raise FeedEnvelopeError(
                    f"Token endpoint {self._token_url} returned no access_token",
                    source="TDX",
                    url=self._token_url,
                ) from exc

            self._token = token.access_token
            self._expires_at = self._clock() + max(token.expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0.0)
            _logger.debug("Obtained TDX token valid for %.0fs", token.expires_in)
            return self._token


class _TdxNewsEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    items: list[Any] = Field(..., validation_alias=AliasChoices("Newses", "News"))


class _TdxEventEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    items: list[Any] = Field(..., validation_alias=AliasChoices("LiveEvents", "Events"))


class TdxFeedAdapter(SourceAdapter):
    """Single-call TDX freeway feed; subclasses set the path and envelope."""

    path: ClassVar[str]
    envelope: ClassVar[type[_TdxNewsEnvelope] | type[_TdxEventEnvelope]]

    def __init__(
        self,
        transport: Transport,
        *,
        base_url: str,
        token_provider: TdxTokenProvider | None = None,
    ) -> None:
        super().__init__(transport)
        self._base_url = base_url.rstrip("/")
        self._token_provider = token_provider

    async def _auth_headers(self) -> dict[str, str]:
        if self._token_provider is None:
            return {}
        token = await self._token_provider.get_token()
        return {"authorization": f"Bearer {token}"}

    async def fetch_records(self, scope: FeedScope) -> list[Any]:
        url = f"{self._base_url}{self.path}"
        headers = await self._auth_headers()
        payload = await self._transport.get_json(url, params={"$format": "JSON"}, headers=headers)
        if isinstance(payload, list):
            return payload
        return self._parse_envelope(self.envelope, payload, url=url, scope=scope).items


class TdxNewsAdapter(TdxFeedAdapter):
    tag = SourceTag.TDX_NEWS
    path = "/v2/Road/Traffic/Live/News/Freeway"
    envelope = _TdxNewsEnvelope


class TdxEventAdapter(TdxFeedAdapter):
    tag = SourceTag.TDX_EVENT
    path = "/v2/Road/Traffic/Live/Event/Freeway"
    envelope = _TdxEventEnvelope
