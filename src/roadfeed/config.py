"""Pipeline configuration for roadfeed."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from datetime import timedelta, timezone
from typing import Any

from roadfeed._constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_EVENTS_PATH,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SOURCE_UTC_OFFSET_HOURS,
    DEFAULT_SOURCES,
    DEFAULT_TTL_SECONDS,
    PBS_BASE_URL,
    SOURCE_NAMES,
    TDX_BASE_URL,
    TDX_TOKEN_URL,
)
from roadfeed.exceptions import FeedConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env: Mapping[str, str], key: str, cast: type) -> Any:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise FeedConfigError(f"{key} must be a number, got {raw!r}") from exc


def parse_source_list(value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
    """Split a comma separated source list (``"pbs, tdx_news"``)."""
    items = value.split(",") if isinstance(value, str) else list(value)
    return tuple(item.strip().lower() for item in items if item and item.strip())


@dataclasses.dataclass(frozen=True)
class FeedConfig:
    """Pipeline configuration.

    Parameters
    ----------
    store_url : str or None
        Firebase Realtime Database URL. Required unless ``dry_run`` is set.
    store_auth_token : str or None
        Token sent as the ``auth`` query parameter on store requests.
    events_path : str
        Store path holding normalized events, keyed by event id.
    meta_path : str or None
        Store path for run metadata. ``None`` disables the metadata write.
    shoulder_path : str or None
        Store path for hard-shoulder openings from TDX news. ``None`` disables
        them.
    catalog_path : str or None
        Store path for the PBS highway catalog. ``None`` disables it.
    ttl : float
        Event time-to-live in seconds, used to compute ``validUntil``.
    concurrency : int
        Maximum number of in-flight upstream fetches.
    request_timeout : float
        Total timeout in seconds for each upstream HTTP call.
    dry_run : bool
        Run the full pipeline but skip every store write.
    sources : tuple of str
        Enabled source adapters (``pbs``, ``tdx_news``, ``tdx_event``).
    pbs_base_url, tdx_base_url, tdx_token_url : str
        Upstream endpoints.
    tdx_client_id, tdx_client_secret : str or None
        TDX client-credentials pair. Anonymous access when both are unset.
    source_utc_offset_hours : float
        UTC offset applied to provider timestamps that carry no offset.
    max_event_age : float or None
        Drop events whose provider update time is older than this many
        seconds. ``None`` keeps everything.
    """

    store_url: str | None = None
    store_auth_token: str | None = None
    events_path: str = DEFAULT_EVENTS_PATH
    meta_path: str | None = None
    shoulder_path: str | None = None
    catalog_path: str | None = None
    ttl: float = DEFAULT_TTL_SECONDS
    concurrency: int = DEFAULT_CONCURRENCY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    dry_run: bool = False
    sources: tuple[str, ...] = DEFAULT_SOURCES
    pbs_base_url: str = PBS_BASE_URL
    tdx_base_url: str = TDX_BASE_URL
    tdx_token_url: str = TDX_TOKEN_URL
    tdx_client_id: str | None = None
    tdx_client_secret: str | None = None
    source_utc_offset_hours: float = DEFAULT_SOURCE_UTC_OFFSET_HOURS
    max_event_age: float | None = None

    @property
    def source_tz(self) -> timezone:
        """Timezone assumed for naive provider timestamps."""
        return timezone(timedelta(hours=self.source_utc_offset_hours))

    @property
    def has_tdx_credentials(self) -> bool:
        return bool(self.tdx_client_id and self.tdx_client_secret)

    def validate(self) -> FeedConfig:
        """Check required settings; raise :class:`FeedConfigError` on problems.

        Returns ``self`` so calls can be chained after :meth:`from_env`.
        """
        if not self.dry_run and not self.store_url:
            raise FeedConfigError("FIREBASE_DB_URL is required unless running with dry run enabled")
        if self.ttl <= 0:
            raise FeedConfigError(f"ttl must be positive, got {self.ttl}")
        if self.concurrency < 1:
            raise FeedConfigError(f"concurrency must be at least 1, got {self.concurrency}")
        if self.request_timeout <= 0:
            raise FeedConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.max_event_age is not None and self.max_event_age <= 0:
            raise FeedConfigError(f"max_event_age must be positive, got {self.max_event_age}")
        if not self.sources:
            raise FeedConfigError("at least one source must be enabled")
        unknown = sorted(set(self.sources) - SOURCE_NAMES)
        if unknown:
            raise FeedConfigError(f"unknown source(s): {', '.join(unknown)}; expected one of {sorted(SOURCE_NAMES)}")
        if bool(self.tdx_client_id) != bool(self.tdx_client_secret):
            raise FeedConfigError("TDX_CLIENT_ID and TDX_CLIENT_SECRET must be set together")
        if not self.events_path.strip("/"):
            raise FeedConfigError("events_path must not be the store root")
        for name in ("meta_path", "shoulder_path", "catalog_path"):
            path = getattr(self, name)
            if path is not None and not path.strip("/"):
                raise FeedConfigError(f"{name} must not be the store root")
            if path is not None and path.strip("/") == self.events_path.strip("/"):
                raise FeedConfigError(f"{name} must differ from events_path")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> FeedConfig:
        """Create configuration from environment variables.

        Explicit keyword arguments override environment values. The result
        is not validated; call :meth:`validate` before use.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "FIREBASE_DB_URL": "store_url",
            "FIREBASE_AUTH_TOKEN": "store_auth_token",
            "FEED_EVENTS_PATH": "events_path",
            "FEED_META_PATH": "meta_path",
            "FEED_SHOULDER_PATH": "shoulder_path",
            "FEED_CATALOG_PATH": "catalog_path",
            "PBS_BASE_URL": "pbs_base_url",
            "TDX_BASE_URL": "tdx_base_url",
            "TDX_TOKEN_URL": "tdx_token_url",
            "TDX_CLIENT_ID": "tdx_client_id",
            "TDX_CLIENT_SECRET": "tdx_client_secret",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and val.strip():
                config_kwargs[field_name] = val.strip()

        # Numeric settings are handled separately
        _ENV_NUMBER_MAP: dict[str, tuple[str, type]] = {
            "FEED_TTL_SECONDS": ("ttl", float),
            "FEED_CONCURRENCY": ("concurrency", int),
            "FEED_REQUEST_TIMEOUT": ("request_timeout", float),
            "FEED_SOURCE_UTC_OFFSET": ("source_utc_offset_hours", float),
            "FEED_MAX_EVENT_AGE_SECONDS": ("max_event_age", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMBER_MAP.items():
            if field_name in overrides:
                continue
            number = _env_number(env, env_key, cast)
            if number is not None:
                config_kwargs[field_name] = number

        sources_env = env.get("FEED_SOURCES")
        if sources_env is not None and "sources" not in overrides:
            config_kwargs["sources"] = parse_source_list(sources_env)

        if "dry_run" not in overrides:
            dry_run = _env_bool(env.get("FEED_DRY_RUN"), False)
            config_kwargs["dry_run"] = _env_bool(env.get("DRY_RUN"), dry_run)

        sources_override = overrides.get("sources")
        if sources_override is not None:
            overrides["sources"] = parse_source_list(sources_override)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
