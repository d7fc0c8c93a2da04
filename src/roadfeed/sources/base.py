"""Source adapter abstraction.

One adapter per upstream provider. An adapter owns its endpoint URLs, any
token exchange, and the outer-shape validation of responses; it hands back
raw records and leaves all field interpretation to the normalizer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel, ValidationError

from roadfeed._transport import Transport
from roadfeed.exceptions import FeedEnvelopeError
from roadfeed.models.event import SourceContext, SourceTag

TEnvelope = TypeVar("TEnvelope", bound=BaseModel)


@dataclass(frozen=True)
class FeedScope:
    """A unit of fetching within a source (e.g. one highway)."""

    key: str | None = None
    name: str | None = None

    @property
    def label(self) -> str:
        if self.key is None:
            return "*"
        return f"{self.key} {self.name}" if self.name else self.key


UNSCOPED = FeedScope()


class SourceAdapter(ABC):
    """Base class for provider adapters.

    Subclasses set :attr:`tag` and implement :meth:`fetch_records`. Sources
    that fan out per highway override :meth:`list_scopes`.
    """

    tag: ClassVar[SourceTag]

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    @property
    def name(self) -> str:
        return self.tag.value

    async def list_scopes(self) -> list[FeedScope]:
        """Scopes to fetch; a single unscoped call by default."""
        return [UNSCOPED]

    @abstractmethod
    async def fetch_records(self, scope: FeedScope) -> list[Any]:
        """Fetch raw records for *scope*.

        Returns a possibly empty list. Raises
        :class:`~roadfeed.exceptions.FeedFetchError` on network/HTTP failure
        or an unexpected response envelope.
        """

    def context_for(self, scope: FeedScope) -> SourceContext:
        return SourceContext(source=self.tag, highway_id=scope.key, highway_name=scope.name)

    def _parse_envelope(self, model: type[TEnvelope], payload: Any, *, url: str, scope: FeedScope) -> TEnvelope:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise FeedEnvelopeError(
                f"Unexpected {self.name} response shape from {url}: {exc.error_count()} error(s)",
                source=self.name,
                scope=scope.label,
                url=url,
            ) from exc
