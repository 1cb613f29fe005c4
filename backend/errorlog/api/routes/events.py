# errorlog/api/routes/events.py
"""
/events

- POST   /events         public ingestion
- GET    /events         public listing with filters + pagination
- GET    /events/mine    the caller's own events (session required)
- GET    /events/{id}    one event
- DELETE /events/{id}    delete one event
- DELETE /events         clear every event (session required)

Query parameters arrive as raw strings on purpose: malformed values degrade to
defaults inside the filter builder instead of being rejected.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from errorlog.core.auth import current_user, optional_user
from errorlog.core.config import settings
from errorlog.core.errors import AuthorizationError, NotFoundError
from errorlog.db.models import User
from errorlog.db.session import get_session
from errorlog.schemas.events import ClearEventsResponse, DeleteEventResponse, EventOut, EventsResponse
from errorlog.services import event_service
from errorlog.services.filters import EventQuery, build_event_query

logger = logging.getLogger(__name__)

router = APIRouter()


async def _events_page(session: AsyncSession, query: EventQuery) -> EventsResponse:
    logger.debug(
        "Listing events where %s (limit=%d offset=%d)",
        query.filter.as_predicate(),
        query.pagination.limit,
        query.pagination.offset,
    )
    rows, total = await event_service.list_events(session, query)
    return EventsResponse(
        events=[EventOut.from_row(row) for row in rows],
        total=total,
        limit=query.pagination.limit,
        offset=query.pagination.offset,
    )


def _single_event_owner(user: Optional[User]) -> Optional[str]:
    """
    Owner scope for single-event access.

    Signed-in callers only reach their own events. Callers without a session reach
    any event by exact id, unless public access is switched off.
    """
    if user is not None:
        return user.id
    if not settings.ALLOW_PUBLIC_EVENT_ACCESS:
        raise AuthorizationError()
    return None


@router.post("/events", response_model=EventOut, status_code=201)
async def ingest_event(
    request: Request,
    session: AsyncSession = Depends(get_session),
):
    """
    Store one reported event.

    Example body:
      {"message": "boom", "level": "error", "userId": "u1", "metadata": {"service": "api"}}
    """
    body = event_service.decode_json_body(await request.body())
    payload = event_service.validate_event_payload(body, default_owner_id=settings.DEFAULT_OWNER_ID)

    event = await event_service.create_event(session, payload)
    return EventOut.from_row(event)


@router.get("/events", response_model=EventsResponse)
async def list_events(
    level: Optional[str] = Query(default=None, description="error | warning | info; anything else is ignored"),
    start_date: Optional[str] = Query(default=None, alias="startDate", description="First calendar day (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(default=None, alias="endDate", description="Last calendar day, inclusive"),
    server_url: Optional[str] = Query(default=None, alias="serverUrl", description="Exact server URL"),
    user_id: Optional[str] = Query(default=None, alias="userId", description="Exact reporting user id"),
    limit: Optional[str] = Query(default=None, description="Page size (default 50)"),
    offset: Optional[str] = Query(default=None, description="Rows to skip (default 0)"),
    session: AsyncSession = Depends(get_session),
):
    """
    Browse events, newest first.

    Example:
      /events?level=error&startDate=2024-01-01&endDate=2024-01-31&limit=20
    """
    query = build_event_query(
        level=level,
        start_date=start_date,
        end_date=end_date,
        server_url=server_url,
        user_id=user_id,
        limit=limit,
        offset=offset,
        tz=settings.TIMEZONE,
        default_limit=settings.DEFAULT_PAGE_SIZE,
        max_limit=settings.MAX_PAGE_SIZE,
    )
    return await _events_page(session, query)


@router.get("/events/mine", response_model=EventsResponse)
async def list_my_events(
    level: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    offset: Optional[str] = Query(default=None),
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_session),
):
    """Same shape as GET /events, always restricted to the caller's events."""
    query = build_event_query(
        level=level,
        limit=limit,
        offset=offset,
        owner_id=user.id,
        tz=settings.TIMEZONE,
        default_limit=settings.DEFAULT_PAGE_SIZE,
        max_limit=settings.MAX_PAGE_SIZE,
    )
    return await _events_page(session, query)


@router.get("/events/{event_id}", response_model=EventOut)
async def get_event(
    event_id: str,
    user: Optional[User] = Depends(optional_user),
    session: AsyncSession = Depends(get_session),
):
    event = await event_service.get_event(session, event_id, owner_id=_single_event_owner(user))
    if event is None:
        raise NotFoundError("Event not found")
    return EventOut.from_row(event)


@router.delete("/events/{event_id}", response_model=DeleteEventResponse)
async def delete_event(
    event_id: str,
    user: Optional[User] = Depends(optional_user),
    session: AsyncSession = Depends(get_session),
):
    deleted = await event_service.delete_event(session, event_id, owner_id=_single_event_owner(user))
    if not deleted:
        raise NotFoundError("Event not found")
    return DeleteEventResponse(message="Event deleted successfully", deletedId=event_id)


@router.delete("/events", response_model=ClearEventsResponse)
async def clear_events(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_session),
):
    """Remove every event, whoever owns it."""
    count = await event_service.clear_events(session)
    logger.info("User id=%s cleared all events (%d removed)", user.id, count)
    return ClearEventsResponse(message="All events cleared successfully", deletedCount=count)
