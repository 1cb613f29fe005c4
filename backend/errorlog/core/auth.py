# errorlog/core/auth.py
"""
Auth gate.

Two layers, matching how sessions are issued by the login collaborator:

1. `auth_gate_middleware` classifies every request once and only checks that a
   session cookie is *present*: API routes that need a session get a 401, pages
   get redirected to /login, and /login redirects signed-in users to /dashboard.
2. The `current_user` / `optional_user` dependencies resolve the cookie against the
   sessions table. Presence alone never grants an identity.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import Depends, Request
from fastapi.responses import ORJSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from errorlog.core.config import settings
from errorlog.core.errors import AuthorizationError, error_body
from errorlog.db.models import User
from errorlog.db.session import get_session
from errorlog.services.user_service import resolve_session

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"


class RouteAccess(str, enum.Enum):
    PUBLIC = "public"
    REQUIRES_AUTH = "requires-auth"
    REDIRECT_IF_AUTHENTICATED = "redirect-if-authenticated"


def _is_page(path: str) -> bool:
    return path == "/" or path == DASHBOARD_PATH or path.startswith(DASHBOARD_PATH + "/")


def classify_route(method: str, path: str) -> RouteAccess:
    """Static route classification; evaluated once per request."""
    method = method.upper()
    path = path.rstrip("/") or "/"

    if _is_page(path):
        return RouteAccess.REQUIRES_AUTH
    if path == LOGIN_PATH:
        return RouteAccess.REDIRECT_IF_AUTHENTICATED
    if path == "/events/mine" and method == "GET":
        return RouteAccess.REQUIRES_AUTH
    if path == "/events" and method == "DELETE":
        return RouteAccess.REQUIRES_AUTH
    return RouteAccess.PUBLIC


def session_token(request: Request) -> Optional[str]:
    """First non-empty session cookie among the configured names."""
    for name in settings.SESSION_COOKIE_NAMES:
        value = request.cookies.get(name)
        if value:
            return value
    return None


async def auth_gate_middleware(request: Request, call_next):
    # CORS preflights never carry cookies
    if request.method == "OPTIONS":
        return await call_next(request)

    access = classify_route(request.method, request.url.path)
    has_session = session_token(request) is not None

    if access is RouteAccess.REQUIRES_AUTH and not has_session:
        if _is_page(request.url.path.rstrip("/") or "/"):
            query = urlencode({"callbackUrl": request.url.path})
            return RedirectResponse(url=f"{LOGIN_PATH}?{query}", status_code=307)
        return ORJSONResponse(
            status_code=401,
            content=error_body(AuthorizationError.code, "Unauthorized"),
        )

    if access is RouteAccess.REDIRECT_IF_AUTHENTICATED and has_session:
        return RedirectResponse(url=DASHBOARD_PATH, status_code=307)

    return await call_next(request)


# ----------------------------
# Dependencies
# ----------------------------
async def optional_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> Optional[User]:
    """
    None when no session cookie is sent.

    A cookie that does not resolve to a live session is an error, not anonymity:
    raises AuthorizationError.
    """
    token = session_token(request)
    if token is None:
        return None

    user = await resolve_session(session, token)
    if user is None:
        logger.info("Rejected invalid or expired session on %s %s", request.method, request.url.path)
        raise AuthorizationError()
    return user


async def current_user(user: Optional[User] = Depends(optional_user)) -> User:
    if user is None:
        raise AuthorizationError()
    return user
