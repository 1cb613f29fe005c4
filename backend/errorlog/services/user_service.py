# errorlog/services/user_service.py
"""
Operator accounts and session tokens.

Account management (seeding, creating users, issuing sessions) runs from
scripts and fixtures, so those functions take a sync Session. Only session
resolution happens per request and is async.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from errorlog.db.models import User, UserSession, utcnow_ms

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10
BCRYPT_MAX_BYTES = 72


# ----------------------------
# Passwords
# ----------------------------
def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, *, rounds: int = BCRYPT_ROUNDS) -> str:
    """Return a bcrypt hash (`$2b$<rounds>$...`)."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, encoded: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), encoded.encode("utf-8"))
    except ValueError:
        # not a bcrypt hash
        return False


# ----------------------------
# Accounts (sync)
# ----------------------------
def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def create_user(db: Session, email: str, password: str, name: Optional[str] = None) -> User:
    """
    Create an account, or rotate the password if the email already exists.

    Password rotation is the only mutation an existing account ever sees.
    """
    user = get_user_by_email(db, email)
    if user is not None:
        user.password = hash_password(password)
        user.updated_at = utcnow_ms()
        db.commit()
        logger.info("Rotated password for user %s", email)
        return user

    user = User(email=email, password=hash_password(password), name=name)
    db.add(user)
    db.commit()
    logger.info("Created user %s (id=%s)", email, user.id)
    return user


def ensure_anonymous_user(db: Session, email: str) -> User:
    """
    Return the well-known anonymous account, creating it if needed.

    Its password is random and never disclosed: nobody logs in as it.
    """
    user = get_user_by_email(db, email)
    if user is not None:
        return user
    return create_user(db, email, secrets.token_urlsafe(32), name="Anonymous System User")


def issue_session(db: Session, user: User, ttl: Optional[timedelta] = None) -> str:
    """Create a session token for `user`. Without `ttl` the session never expires."""
    token = secrets.token_urlsafe(32)
    expires_at = utcnow_ms() + ttl if ttl is not None else None
    db.add(UserSession(token=token, user_id=user.id, expires_at=expires_at))
    db.commit()
    return token


# ----------------------------
# Session resolution (async, per request)
# ----------------------------
async def resolve_session(session: AsyncSession, token: str, now: Optional[datetime] = None) -> Optional[User]:
    """Return the user behind `token`, or None for unknown or expired tokens."""
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    stmt = (
        select(User, UserSession.expires_at)
        .join(UserSession, UserSession.user_id == User.id)
        .where(UserSession.token == token)
    )
    row = (await session.execute(stmt)).first()
    if row is None:
        return None

    user, expires_at = row
    if expires_at is not None and expires_at <= now:
        logger.debug("Session for user id=%s expired at %s", user.id, expires_at)
        return None
    return user
