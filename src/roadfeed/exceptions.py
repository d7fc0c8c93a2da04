"""Custom exception hierarchy for roadfeed."""

from __future__ import annotations


class FeedError(Exception):
    """Base exception for all roadfeed errors."""


class FeedConfigError(FeedError):
    """Invalid or missing configuration."""


class FeedFetchError(FeedError):
    """Upstream fetch failure (network, non-200, timeout, invalid JSON).

    Isolated by the fetch orchestrator: the failing source/scope contributes
    no records and the run continues.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        source: str = "",
        scope: str = "",
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.source = source
        self.scope = scope
        self.url = url
        super().__init__(message)


class FeedEnvelopeError(FeedFetchError):
    """Upstream answered, but not with the expected outer shape."""


class FeedValidationError(FeedError):
    """A raw record is too malformed to normalize; the record is dropped."""


class FeedStoreError(FeedError):
    """Read or write against the event store failed.

    Run-fatal: the batch aborts and exits non-zero.
    """

    def __init__(self, message: str, *, status_code: int | None = None, path: str = "") -> None:
        self.status_code = status_code
        self.path = path
        super().__init__(message)
