"""Per-provider field alias tables.

Each canonical attribute maps to an ordered tuple of provider field names.
The mapper tries them in order and the first non-empty value wins, so the
tables are plain data and can be tested without any live payload.
"""

from __future__ import annotations

from dataclasses import dataclass

from roadfeed.models.event import SourceTag


@dataclass(frozen=True)
class TimestampField:
    """A timestamp carried in one field, or split over a date and a time field."""

    date: str
    time: str | None = None


@dataclass(frozen=True)
class FieldAliases:
    highway: tuple[str, ...] = ()
    highway_name: tuple[str, ...] = ()
    title: tuple[str, ...] = ()
    description: tuple[str, ...] = ()
    category: tuple[str, ...] = ()
    direction: tuple[str, ...] = ()
    km_start: tuple[str, ...] = ()
    km_end: tuple[str, ...] = ()
    sequence: tuple[str, ...] = ()
    region: tuple[str, ...] = ()
    updated: tuple[TimestampField, ...] = ()
    posted: tuple[TimestampField, ...] = ()


PBS_ALIASES = FieldAliases(
    highway=("sn", "road", "roadtype"),
    title=("title", "subject", "road_bak1", "road", "name", "comment"),
    description=("comment", "srcdetail", "content", "remark"),
    category=("category", "type", "eventtype", "roadtype"),
    direction=("direction", "dir"),
    km_start=("kilo", "km", "kmStart", "fromkm"),
    km_end=("kmEnd", "tokm"),
    sequence=("number",),
    region=("region",),
    updated=(
        TimestampField("lastmodified"),
        TimestampField("happendate", "happentime"),
        TimestampField("updatedate", "updatetime"),
        TimestampField("updatedate"),
    ),
    posted=(
        TimestampField("postdate"),
        TimestampField("happendate", "happentime"),
    ),
)

TDX_NEWS_ALIASES = FieldAliases(
    highway=("RoadID", "RoadId"),
    highway_name=("RoadName",),
    title=("Title",),
    description=("Description", "Comment"),
    category=("NewsCategory", "Category"),
    direction=("Direction",),
    km_start=("StartKM", "StartKm", "Start_KM", "Start"),
    km_end=("EndKM", "EndKm", "End_KM", "End"),
    sequence=("NewsID", "NewsId"),
    updated=(
        TimestampField("UpdateTime"),
        TimestampField("PublishTime"),
    ),
    posted=(
        TimestampField("PublishTime"),
        TimestampField("StartTime"),
    ),
)

TDX_EVENT_ALIASES = FieldAliases(
    highway=("RoadID", "RoadId", "RoadSectionID"),
    highway_name=("RoadName",),
    title=("Title", "EventTitle", "RoadName"),
    description=("Description", "Comment", "EventDescription"),
    category=("EventType", "Type", "EventCategory"),
    direction=("Direction", "RoadDirection"),
    km_start=("StartKM", "StartKm", "Start_KM", "Start"),
    km_end=("EndKM", "EndKm", "End_KM", "End"),
    sequence=("EventID", "EventId"),
    region=("Region", "AuthorityCode"),
    updated=(
        TimestampField("UpdateTime"),
        TimestampField("SrcUpdateTime"),
        TimestampField("StartTime"),
    ),
    posted=(
        TimestampField("PublishTime"),
        TimestampField("StartTime"),
    ),
)

ALIASES_BY_SOURCE: dict[SourceTag, FieldAliases] = {
    SourceTag.PBS: PBS_ALIASES,
    SourceTag.TDX_NEWS: TDX_NEWS_ALIASES,
    SourceTag.TDX_EVENT: TDX_EVENT_ALIASES,
}
