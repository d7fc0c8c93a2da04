"""Firebase Realtime Database client over the REST API.

Endpoints:
  - GET   {base_url}/{path}.json   read a subtree (``null`` when absent)
  - PATCH {base_url}/{path}.json   multi-path update; ``null`` deletes a key

The client receives a ready-made auth token (database secret or ID token);
service-account bootstrapping happens outside this package.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from roadfeed._constants import DEFAULT_REQUEST_TIMEOUT
from roadfeed._redact import redact_for_log
from roadfeed.exceptions import FeedStoreError
from roadfeed.store.base import split_path

_logger = logging.getLogger(__name__)


class FirebaseStore:
    """Store client for one Firebase Realtime Database instance."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        base_url: str,
        auth_token: str | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._http = http_session
        self._base_url = base_url.rstrip("/")
        self._auth_token = auth_token
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def url_for(self, path: str) -> str:
        return f"{self._base_url}/{'/'.join(split_path(path))}.json"

    def _params(self) -> dict[str, str]:
        return {"auth": self._auth_token} if self._auth_token else {}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self.url_for(path)
        _logger.debug("%s %s params=%s", method, url, redact_for_log(self._params()))
        try:
            async with self._http.request(
                method,
                url,
                params=self._params(),
                timeout=self._timeout,
                **kwargs,
            ) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise FeedStoreError(
                        f"HTTP {resp.status} from store {method} {path}: {text[:200]}",
                        status_code=resp.status,
                        path=path,
                    )
        except FeedStoreError:
            raise
        except TimeoutError as exc:
            raise FeedStoreError(f"Store {method} {path} timed out", path=path) from exc
        except aiohttp.ClientError as exc:
            raise FeedStoreError(f"Store {method} {path} failed: {exc}", path=path) from exc

        try:
            return json.loads(text) if text.strip() else None
        except json.JSONDecodeError as exc:
            raise FeedStoreError(f"Invalid JSON from store {method} {path}: {text[:200]}", path=path) from exc

    async def get(self, path: str) -> Any | None:
        return await self._request("GET", path)

    async def update(self, path: str, values: Mapping[str, Any | None]) -> None:
        await self._request(
            "PATCH",
            path,
            data=json.dumps(dict(values), ensure_ascii=False, separators=(",", ":")),
            headers={"content-type": "application/json; charset=UTF-8"},
        )
