"""roadfeed - Multi-source road event ingestion into a TTL-bounded store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("roadfeed")
except PackageNotFoundError:
    __version__ = "0+local"
from roadfeed.config import FeedConfig
from roadfeed.exceptions import (
    FeedConfigError,
    FeedEnvelopeError,
    FeedError,
    FeedFetchError,
    FeedStoreError,
    FeedValidationError,
)
from roadfeed.ingestion.normalize import normalize
from roadfeed.models import CanonicalEvent, Direction, FetchedRecord, ShoulderOpening, SourceContext, SourceTag
from roadfeed.runner import RunSummary, run, run_from_config

__all__ = [
    "__version__",
    "CanonicalEvent",
    "Direction",
    "FeedConfig",
    "FeedConfigError",
    "FeedEnvelopeError",
    "FeedError",
    "FeedFetchError",
    "FeedStoreError",
    "FeedValidationError",
    "FetchedRecord",
    "RunSummary",
    "ShoulderOpening",
    "SourceContext",
    "SourceTag",
    "normalize",
    "run",
    "run_from_config",
]
