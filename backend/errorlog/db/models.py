# errorlog/db/models.py
"""
SQLAlchemy ORM models for the error log service.

Tables:
- users: operator accounts (plus the well-known anonymous account)
- events: reported error/warning/info rows
- sessions: session tokens issued to operators by the login collaborator

Notes:
- Timestamps are stored as naive UTC datetimes (timezone-less) for SQLite simplicity.
  We convert to ISO 8601 with a trailing "Z" at the API boundary.
- events.user_id is a plain string, not a foreign key: reporting clients do not
  need a registered account.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

EVENT_LEVELS = ("error", "warning", "info")
DEFAULT_EVENT_LEVEL = "error"


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow_ms() -> datetime:
    """Naive UTC now, truncated to millisecond precision (the wire precision)."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


class User(Base):
    """An operator account. Never deleted; only the password is ever rotated."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)

    # Salted PBKDF2 hash, see services/user_service.py
    password: Mapped[str] = mapped_column(String(256), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=utcnow_ms, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=utcnow_ms, nullable=False)


class Event(Base):
    """
    A single reported event.

    created_at is assigned here at insert time and never updated.
    """

    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)

    message: Mapped[str] = mapped_column(Text, nullable=False)
    stack: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    level: Mapped[str] = mapped_column(String(16), index=True, nullable=False, default=DEFAULT_EVENT_LEVEL)

    # Opaque serialized text; the store never parses it.
    # ("metadata" is reserved on declarative classes, hence the attribute name)
    event_metadata: Mapped[Optional[str]] = mapped_column("metadata", Text, nullable=True)

    server_url: Mapped[Optional[str]] = mapped_column(String(2048), index=True, nullable=True)
    user_id: Mapped[str] = mapped_column(String(256), index=True, nullable=False)
    user_secret_key: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), index=True, nullable=False, default=utcnow_ms
    )


class UserSession(Base):
    """A session token. expires_at = None means the session does not expire."""

    __tablename__ = "sessions"

    token: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=utcnow_ms, nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
