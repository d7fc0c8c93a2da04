"""HTTP transport for upstream feeds."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from roadfeed._constants import ACCEPT_JSON, DEFAULT_REQUEST_TIMEOUT, USER_AGENT
from roadfeed._redact import redact_for_log
from roadfeed.exceptions import FeedFetchError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by source adapters.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any: ...

    async def post_form(
        self,
        url: str,
        form: Mapping[str, str],
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any: ...


def decode_json_text(text: str, url: str) -> Any:
    """Decode a JSON body, tolerating a BOM and rejecting HTML error pages."""
    body = text.lstrip("\ufeff").strip()
    if not body:
        raise FeedFetchError(f"Empty response from {url}", url=url)
    if body[0] == "<":
        raise FeedFetchError(f"HTML instead of JSON from {url}: {body[:120]}", url=url)
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise FeedFetchError(f"Invalid JSON from {url}: {body[:200]}", url=url) from exc


class HttpTransport:
    """aiohttp-backed transport; every call carries its own total timeout."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _headers(self, extra: Mapping[str, str] | None) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": ACCEPT_JSON,
            "user-agent": USER_AGENT,
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        _logger.debug(
            "%s %s params=%s headers=%s",
            method,
            url,
            redact_for_log(kwargs.get("params")),
            redact_for_log(kwargs.get("headers")),
        )
        try:
            async with self._http.request(method, url, timeout=self._timeout, **kwargs) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise FeedFetchError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except FeedFetchError:
            raise
        except TimeoutError as exc:
            raise FeedFetchError(f"Request to {url} timed out", url=url) from exc
        except aiohttp.ClientError as exc:
            raise FeedFetchError(f"Request to {url} failed: {exc}", url=url) from exc

        return decode_json_text(text, url)

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self._request("GET", url, params=dict(params or {}), headers=self._headers(headers))

    async def post_form(
        self,
        url: str,
        form: Mapping[str, str],
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        form_headers = {"content-type": "application/x-www-form-urlencoded"}
        if headers:
            form_headers.update(headers)
        return await self._request("POST", url, data=dict(form), headers=self._headers(form_headers))
