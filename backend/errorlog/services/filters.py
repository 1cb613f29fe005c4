# errorlog/services/filters.py
"""
Query-filter construction for event listing.

Turns the optional, independently supplied listing parameters into an
`EventQuery`: a conjunctive `EventFilter` plus a `Pagination` window.

Rules:
- Each filter is independent; all supplied, valid filters are ANDed.
- An unknown `level` is dropped (listing is lenient, ingestion is strict).
- `startDate` / `endDate` cover whole calendar days in the configured time zone:
  gte = startDate 00:00:00.000, lte = endDate 23:59:59.999. Either may be alone.
- Unparseable `limit` / `offset` fall back to the defaults (50 / 0).
- `owner_id` pins the query to one account and overrides any `userId` parameter.

Everything here is pure: no I/O, no exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import ColumnElement

from errorlog.db.models import EVENT_LEVELS, Event
from errorlog.utils.parsers import day_end, day_start, parse_calendar_date, parse_int

DEFAULT_LIMIT = 50
DEFAULT_OFFSET = 0


def parse_level(raw: Optional[str]) -> Optional[str]:
    """Return `raw` only if it is exactly one of the known levels."""
    return raw if raw in EVENT_LEVELS else None


@dataclass(frozen=True)
class EventFilter:
    """One optional field per filter dimension. None means "not filtered"."""

    level: Optional[str] = None
    server_url: Optional[str] = None
    user_id: Optional[str] = None
    created_gte: Optional[datetime] = None
    created_lte: Optional[datetime] = None

    def as_predicate(self) -> Dict[str, Any]:
        """
        Dictionary form of the filter, containing only the supplied keys:

            {"level": "error", "createdAt": {"gte": datetime(...)}}
        """
        predicate: Dict[str, Any] = {}
        if self.level is not None:
            predicate["level"] = self.level
        if self.server_url is not None:
            predicate["serverUrl"] = self.server_url
        if self.user_id is not None:
            predicate["userId"] = self.user_id

        created: Dict[str, datetime] = {}
        if self.created_gte is not None:
            created["gte"] = self.created_gte
        if self.created_lte is not None:
            created["lte"] = self.created_lte
        if created:
            predicate["createdAt"] = created
        return predicate

    def clauses(self) -> List[ColumnElement[bool]]:
        """SQLAlchemy WHERE clauses, to be ANDed."""
        out: List[ColumnElement[bool]] = []
        if self.level is not None:
            out.append(Event.level == self.level)
        if self.server_url is not None:
            out.append(Event.server_url == self.server_url)
        if self.user_id is not None:
            out.append(Event.user_id == self.user_id)
        if self.created_gte is not None:
            out.append(Event.created_at >= self.created_gte)
        if self.created_lte is not None:
            out.append(Event.created_at <= self.created_lte)
        return out


@dataclass(frozen=True)
class Pagination:
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET


@dataclass(frozen=True)
class EventQuery:
    filter: EventFilter = field(default_factory=EventFilter)
    pagination: Pagination = field(default_factory=Pagination)


def build_pagination(
    limit: Optional[str],
    offset: Optional[str],
    *,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: Optional[int] = None,
) -> Pagination:
    parsed_limit = parse_int(limit, default_limit)
    if max_limit is not None:
        parsed_limit = min(parsed_limit, max_limit)
    return Pagination(limit=parsed_limit, offset=parse_int(offset, DEFAULT_OFFSET))


def build_event_query(
    *,
    level: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    server_url: Optional[str] = None,
    user_id: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    owner_id: Optional[str] = None,
    tz: str = "UTC",
    default_limit: int = DEFAULT_LIMIT,
    max_limit: Optional[int] = None,
) -> EventQuery:
    """
    Build the listing query from raw query-string values.

    Args:
        level/start_date/end_date/server_url/user_id: raw filter values (None = absent)
        limit/offset: raw pagination values
        owner_id: when set, results are restricted to this account regardless of user_id
        tz: IANA zone used to interpret calendar days
        max_limit: optional ceiling applied to limit
    """
    start = parse_calendar_date(start_date)
    end = parse_calendar_date(end_date)

    event_filter = EventFilter(
        level=parse_level(level),
        server_url=server_url or None,
        user_id=owner_id if owner_id is not None else (user_id or None),
        created_gte=day_start(start, tz) if start is not None else None,
        created_lte=day_end(end, tz) if end is not None else None,
    )

    return EventQuery(
        filter=event_filter,
        pagination=build_pagination(limit, offset, default_limit=default_limit, max_limit=max_limit),
    )
