"""Data models for roadfeed."""

from roadfeed.models.event import CanonicalEvent, Direction, FetchedRecord, SourceContext, SourceTag
from roadfeed.models.shoulder import ShoulderOpening

__all__ = [
    "CanonicalEvent",
    "Direction",
    "FetchedRecord",
    "ShoulderOpening",
    "SourceContext",
    "SourceTag",
]
