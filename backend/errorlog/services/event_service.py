# errorlog/services/event_service.py
"""
Event persistence and payload validation.

Why a service?
- Keeps the /events routes thin
- Makes the store calls reusable from scripts and tests
- Translates SQLAlchemy failures into StoreError in one place

No operation here retries; each call succeeds or fails once.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import orjson
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from errorlog.core.errors import StoreError, ValidationError
from errorlog.db.models import EVENT_LEVELS, Event
from errorlog.schemas.events import EventCreate
from errorlog.services.filters import EventQuery

logger = logging.getLogger(__name__)


# ----------------------------
# Payload validation
# ----------------------------
def decode_json_body(raw: bytes) -> Mapping[str, Any]:
    """Decode a request body; anything but a JSON object is rejected."""
    try:
        body = orjson.loads(raw)
    except orjson.JSONDecodeError:
        raise ValidationError("Invalid JSON body")
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body")
    return body


def validate_event_payload(body: Mapping[str, Any], default_owner_id: Optional[str] = None) -> EventCreate:
    """
    Apply the ingestion rules to a decoded body.

    - message: required, non-empty
    - userId: required, non-empty (falls back to `default_owner_id` when configured)
    - level: optional, must be one of error|warning|info; never coerced
    """
    if not body.get("message"):
        raise ValidationError("Message is required")

    level = body.get("level")
    if level is not None and level not in EVENT_LEVELS:
        raise ValidationError("Level must be error, warning, or info")

    data = dict(body)
    if not data.get("userId"):
        if default_owner_id is None:
            raise ValidationError("userId is required")
        data["userId"] = default_owner_id
    if level is None:
        data.pop("level", None)

    try:
        return EventCreate.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid event payload",
            details=[{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()],
        )


def serialize_metadata(metadata: Any) -> Optional[str]:
    """
    Metadata is stored as opaque text.

    Strings are kept verbatim (even if they are not valid JSON); other values are
    serialized with orjson. Empty values are stored as NULL.
    """
    if metadata is None or metadata == "":
        return None
    if isinstance(metadata, str):
        return metadata
    return orjson.dumps(metadata).decode("utf-8")


# ----------------------------
# Store operations
# ----------------------------
async def create_event(session: AsyncSession, payload: EventCreate) -> Event:
    event = Event(
        message=payload.message,
        stack=payload.stack,
        level=payload.level,
        event_metadata=serialize_metadata(payload.metadata),
        server_url=payload.server_url,
        user_id=payload.user_id,
        user_secret_key=payload.user_secret_key,
    )
    session.add(event)
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Failed to persist event")
        raise StoreError.from_exception(e)

    logger.info("Ingested event id=%s level=%s user_id=%s", event.id, event.level, event.user_id)
    return event


async def list_events(session: AsyncSession, query: EventQuery) -> Tuple[List[Event], int]:
    """
    Return one page of matching events (newest first) and the total match count.

    The page and the count are two separate reads; a concurrent write between them
    can make `total` disagree with the page by a few rows.
    """
    clauses = query.filter.clauses()

    stmt = (
        select(Event)
        .where(*clauses)
        .order_by(Event.created_at.desc(), Event.id.desc())
        .limit(query.pagination.limit)
        .offset(query.pagination.offset)
    )
    count_stmt = select(func.count()).select_from(Event).where(*clauses)

    try:
        rows: Sequence[Event] = (await session.execute(stmt)).scalars().all()
        total = int((await session.execute(count_stmt)).scalar() or 0)
    except SQLAlchemyError as e:
        logger.exception("Failed to list events")
        raise StoreError.from_exception(e)

    return list(rows), total


async def get_event(session: AsyncSession, event_id: str, owner_id: Optional[str] = None) -> Optional[Event]:
    """Fetch one event; with `owner_id`, events owned by someone else are invisible."""
    stmt = select(Event).where(Event.id == event_id)
    if owner_id is not None:
        stmt = stmt.where(Event.user_id == owner_id)
    try:
        return (await session.execute(stmt)).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch event id=%s", event_id)
        raise StoreError.from_exception(e)


async def delete_event(session: AsyncSession, event_id: str, owner_id: Optional[str] = None) -> bool:
    """Hard-delete one event. Returns False if no (visible) row matched."""
    stmt = delete(Event).where(Event.id == event_id)
    if owner_id is not None:
        stmt = stmt.where(Event.user_id == owner_id)
    try:
        result = await session.execute(stmt)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Failed to delete event id=%s", event_id)
        raise StoreError.from_exception(e)

    deleted = (result.rowcount or 0) > 0
    if deleted:
        logger.info("Deleted event id=%s", event_id)
    return deleted


async def clear_events(session: AsyncSession) -> int:
    """Delete every event regardless of owner. Returns the number removed."""
    try:
        result = await session.execute(delete(Event))
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Failed to clear events")
        raise StoreError.from_exception(e)

    count = int(result.rowcount or 0)
    logger.info("Cleared %d events", count)
    return count

