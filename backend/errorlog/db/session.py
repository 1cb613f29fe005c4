# errorlog/db/session.py
"""
Database session and initialization utilities.

We use:
- SQLAlchemy async engine + AsyncSession for request handling
- A sync engine + Session for scripts (seeding, user management) and test fixtures
- SQLite via aiosqlite by default

Key points:
- `init_db()` creates tables and applies SQLite pragmas.
- `get_session()` is a FastAPI dependency that yields an AsyncSession.
"""

from __future__ import annotations

import os
from typing import AsyncGenerator

from sqlalchemy import create_engine, make_url, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker

from errorlog.core.config import settings
from errorlog.db.models import Base


# Keep echo=False; SQL logging is controlled by configure_logging().
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,  # prevents attributes from expiring after commit
    class_=AsyncSession,
)


def _sync_database_url(url: str) -> str:
    """
    Convert the async SQLite URL (sqlite+aiosqlite:///) into a sync-friendly URL.
    """
    if url.startswith("sqlite+aiosqlite"):
        return "sqlite" + url[len("sqlite+aiosqlite") :]
    return url


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _ensure_sqlite_dir(url: str) -> None:
    """SQLite creates the file but not its parent directory."""
    if not _is_sqlite(url):
        return
    database = make_url(url).database
    if database and database != ":memory:":
        directory = os.path.dirname(os.path.abspath(database))
        os.makedirs(directory, exist_ok=True)


sync_engine = create_engine(
    _sync_database_url(settings.DATABASE_URL),
    echo=False,
    future=True,
)
SyncSessionLocal = sessionmaker(
    bind=sync_engine,
    expire_on_commit=False,
    class_=Session,
)


async def init_db() -> None:
    """
    Initialize database schema and apply SQLite pragmas.

    Pragmas:
    - journal_mode=WAL: reads don't block the ingestion writes
    - synchronous=NORMAL: good balance for durability vs speed
    - foreign_keys=ON: sessions.user_id must point at a real user
    """
    _ensure_sqlite_dir(settings.DATABASE_URL)

    async with engine.begin() as conn:
        if _is_sqlite(settings.DATABASE_URL):
            await conn.execute(text("PRAGMA journal_mode=WAL;"))
            await conn.execute(text("PRAGMA synchronous=NORMAL;"))
            await conn.execute(text("PRAGMA foreign_keys=ON;"))

        # Create tables if they don't exist
        await conn.run_sync(Base.metadata.create_all)


def init_db_sync() -> None:
    """Create tables through the sync engine (scripts run outside an event loop)."""
    _ensure_sqlite_dir(settings.DATABASE_URL)
    Base.metadata.create_all(bind=sync_engine)


async def dispose_engine() -> None:
    await engine.dispose()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a scoped AsyncSession.

    Usage:
        @router.get(...)
        async def handler(session: AsyncSession = Depends(get_session)):
            ...

    Transactions are controlled explicitly in service logic.
    """
    async with AsyncSessionLocal() as session:
        yield session
