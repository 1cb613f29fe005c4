# errorlog/schemas/events.py
"""
Schemas for the /events endpoints.

The Event wire shape is fixed (camelCase keys, every key always present):

    {"id", "message", "stack", "level", "metadata", "serverUrl",
     "userId", "userSecretKey", "createdAt"}
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from errorlog.db.models import Event
from errorlog.utils.parsers import isoformat_z


class EventCreate(BaseModel):
    """
    Validated ingestion payload.

    Required-field and level checks happen before this model is built
    (see services/event_service.py) so their error messages stay specific.
    Empty optional strings are normalized to None.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message: str = Field(..., min_length=1)
    stack: Optional[str] = None
    level: Literal["error", "warning", "info"] = "error"
    metadata: Optional[Any] = None
    server_url: Optional[str] = Field(default=None, alias="serverUrl")
    user_id: str = Field(..., min_length=1, alias="userId")
    user_secret_key: Optional[str] = Field(default=None, alias="userSecretKey")

    @field_validator("stack", "server_url", "user_secret_key")
    @classmethod
    def _empty_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class EventOut(BaseModel):
    """A stored event as returned to clients."""

    id: str
    message: str
    stack: Optional[str] = None
    level: str
    metadata: Optional[str] = None
    serverUrl: Optional[str] = None
    userId: str
    userSecretKey: Optional[str] = None
    createdAt: str = Field(..., description="ISO8601 UTC timestamp with milliseconds")

    @classmethod
    def from_row(cls, row: Event) -> "EventOut":
        return cls(
            id=row.id,
            message=row.message,
            stack=row.stack,
            level=row.level,
            metadata=row.event_metadata,
            serverUrl=row.server_url,
            userId=row.user_id,
            userSecretKey=row.user_secret_key,
            createdAt=isoformat_z(row.created_at),
        )


class EventsResponse(BaseModel):
    """
    Response for event listing.

    Example:
    {
      "events": [...],
      "total": 120,
      "limit": 50,
      "offset": 0
    }
    """
    events: List[EventOut] = Field(default_factory=list, description="Page of events, newest first")
    total: int = Field(..., ge=0, description="Total matching events before pagination")
    limit: int = Field(..., ge=0)
    offset: int = Field(..., ge=0)


class DeleteEventResponse(BaseModel):
    message: str
    deletedId: str


class ClearEventsResponse(BaseModel):
    message: str
    deletedCount: int = Field(..., ge=0)
