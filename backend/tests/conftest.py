"""Test configuration and fixtures."""

import os
import tempfile

import pytest

# Point the app at a throwaway SQLite file BEFORE errorlog.core.config is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="errorlog-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["ENV"] = "test"
os.environ["TIMEZONE"] = "UTC"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import delete  # noqa: E402

from errorlog.core.config import settings  # noqa: E402
from errorlog.db.models import Event, User, UserSession, utcnow_ms  # noqa: E402
from errorlog.db.session import SyncSessionLocal, get_session, init_db_sync  # noqa: E402
from errorlog.main import app  # noqa: E402
from errorlog.services.user_service import create_user, issue_session  # noqa: E402

SESSION_COOKIE = "authjs.session-token"


@pytest.fixture(scope="session")
def schema():
    init_db_sync()


@pytest.fixture(scope="session")
def client(schema):
    """One TestClient (and one event loop) for the whole run."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def db(schema):
    """Sync session for arranging data; every table is emptied afterwards."""
    session = SyncSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.execute(delete(UserSession))
        session.execute(delete(Event))
        session.execute(delete(User))
        session.commit()
        session.close()


@pytest.fixture(autouse=True)
def _clean_tables(db):
    yield


@pytest.fixture
def operator(db):
    return create_user(db, "operator@example.com", "s3cret-pass", name="Operator")


def session_header(token):
    return {"Cookie": f"{SESSION_COOKIE}={token}"}


@pytest.fixture
def auth_header():
    """Build the Cookie header for an arbitrary token."""
    return session_header


@pytest.fixture
def operator_auth(db, operator):
    return session_header(issue_session(db, operator))


@pytest.fixture
def other_operator(db):
    return create_user(db, "other@example.com", "0ther-pass", name="Other")


@pytest.fixture
def other_auth(db, other_operator):
    return session_header(issue_session(db, other_operator))


@pytest.fixture
def make_event(db):
    """Insert an event with an explicit created_at (ingestion always stamps 'now')."""

    def _make(
        message="boom",
        level="error",
        user_id="u1",
        server_url=None,
        created_at=None,
        **extra,
    ):
        event = Event(
            message=message,
            level=level,
            user_id=user_id,
            server_url=server_url,
            created_at=created_at or utcnow_ms(),
            **extra,
        )
        db.add(event)
        db.commit()
        return event

    return _make


@pytest.fixture
def restore_settings():
    """Snapshot mutable settings that individual tests flip."""
    saved = {
        "DEFAULT_OWNER_ID": settings.DEFAULT_OWNER_ID,
        "ALLOW_PUBLIC_EVENT_ACCESS": settings.ALLOW_PUBLIC_EVENT_ACCESS,
        "MAX_PAGE_SIZE": settings.MAX_PAGE_SIZE,
        "ENV": settings.ENV,
    }
    yield settings
    for key, value in saved.items():
        setattr(settings, key, value)


class _FailingSession:
    """Stands in for AsyncSession; every statement raises `error`."""

    def __init__(self, error):
        self.error = error
        self.rolled_back = False

    def add(self, obj):
        pass

    async def execute(self, *args, **kwargs):
        raise self.error

    async def commit(self):
        raise self.error

    async def rollback(self):
        self.rolled_back = True


@pytest.fixture
def failing_store():
    """Route every request's DB session to one that fails with the given SQLAlchemy error."""
    sessions = []

    def _install(error):
        async def _session():
            session = _FailingSession(error)
            sessions.append(session)
            yield session

        app.dependency_overrides[get_session] = _session
        return sessions

    yield _install
    app.dependency_overrides.pop(get_session, None)
