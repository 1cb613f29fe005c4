# errorlog/core/errors.py
"""
Error taxonomy and the FastAPI exception handlers that render it.

Every failure leaves the service as JSON with at least an `error` field:

    {"error": "Message is required", "code": "VALIDATION_ERROR", "details": null}

`details` is only populated in dev for unexpected failures.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from errorlog.core.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthorizationError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized", details: Optional[Any] = None):
        super().__init__(message, details)


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class PayloadTooLargeError(AppError):
    status_code = 413
    code = "PAYLOAD_TOO_LARGE"


class StoreError(AppError):
    """The datastore failed. The message shown to callers is always generic."""

    status_code = 500
    code = "STORE_ERROR"

    def __init__(self, message: str = "Internal server error", details: Optional[Any] = None, unavailable: bool = False):
        super().__init__(message, details)
        if unavailable:
            self.status_code = 503
            self.code = "STORE_UNAVAILABLE"

    @classmethod
    def from_exception(cls, exc: SQLAlchemyError) -> "StoreError":
        return cls(
            details={"type": exc.__class__.__name__, "message": str(exc)},
            unavailable=isinstance(exc, OperationalError),
        )


def error_body(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    return {"error": message, "code": code, "details": details}


def _dev_details(details: Optional[Any]) -> Optional[Any]:
    # Show internals only in dev
    return details if settings.ENV == "dev" else None


async def app_error_handler(request: Request, exc: AppError):
    details = exc.details
    if isinstance(exc, StoreError):
        details = _dev_details(details)
    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, details),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return ORJSONResponse(
        status_code=400,
        content=error_body("VALIDATION_ERROR", "Invalid request", jsonable_encoder(exc.errors())),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_body("HTTP_ERROR", message),
        headers=getattr(exc, "headers", None),
    )


async def store_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    return await app_error_handler(request, StoreError.from_exception(exc))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    details = _dev_details({"type": exc.__class__.__name__, "message": str(exc)})
    return ORJSONResponse(
        status_code=500,
        content=error_body("INTERNAL_ERROR", "An unexpected error occurred.", details),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, store_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
