"""Upstream source adapters and the registry that builds them from config."""

from __future__ import annotations

from roadfeed._transport import Transport
from roadfeed.config import FeedConfig
from roadfeed.sources.base import UNSCOPED, FeedScope, SourceAdapter
from roadfeed.sources.pbs import PbsAdapter
from roadfeed.sources.tdx import TdxEventAdapter, TdxNewsAdapter, TdxTokenProvider


def build_adapters(config: FeedConfig, transport: Transport) -> list[SourceAdapter]:
    """Instantiate the adapters named in ``config.sources``, in that order.

    TDX adapters share one token provider so a run exchanges credentials once.
    """
    token_provider: TdxTokenProvider | None = None
    if config.has_tdx_credentials:
        assert config.tdx_client_id is not None and config.tdx_client_secret is not None  # noqa: S101
        token_provider = TdxTokenProvider(
            transport,
            token_url=config.tdx_token_url,
            client_id=config.tdx_client_id,
            client_secret=config.tdx_client_secret,
        )

    adapters: list[SourceAdapter] = []
    for name in config.sources:
        if name == "pbs":
            adapters.append(PbsAdapter(transport, base_url=config.pbs_base_url))
        elif name == "tdx_news":
            adapters.append(TdxNewsAdapter(transport, base_url=config.tdx_base_url, token_provider=token_provider))
        elif name == "tdx_event":
            adapters.append(TdxEventAdapter(transport, base_url=config.tdx_base_url, token_provider=token_provider))
    return adapters


__all__ = [
    "UNSCOPED",
    "FeedScope",
    "PbsAdapter",
    "SourceAdapter",
    "TdxEventAdapter",
    "TdxNewsAdapter",
    "TdxTokenProvider",
    "build_adapters",
]
