from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse

from errorlog.api.routes.events import router as events_router
from errorlog.core.auth import auth_gate_middleware
from errorlog.core.config import settings
from errorlog.core.errors import PayloadTooLargeError, error_body, register_exception_handlers
from errorlog.core.logging import configure_logging, request_id_var

logger = logging.getLogger("errorlog")


def ok(data: Any = None, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"success": True, "data": data, "error": None, "meta": meta or {}}


# -------------------------
# App factory
# -------------------------
app = FastAPI(
    title="Error Log Service",
    version="0.1.0",
    default_response_class=ORJSONResponse,
)


# -------------------------
# Middleware
# -------------------------
# Registration order matters: the last one added runs first. CORS must wrap the
# auth gate so that rejected requests still carry CORS headers.
app.middleware("http")(auth_gate_middleware)


# Request-id + timing + payload-size guard
@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    start = time.perf_counter()

    content_length = request.headers.get("content-length")
    if content_length is not None:
        try:
            if int(content_length) > settings.MAX_PAYLOAD_BYTES:
                return ORJSONResponse(
                    status_code=PayloadTooLargeError.status_code,
                    content=error_body(
                        PayloadTooLargeError.code,
                        f"Payload too large. Max is {settings.MAX_PAYLOAD_KB} KB.",
                    ),
                    headers={"x-request-id": request_id},
                )
        except ValueError:
            pass

    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)

    response.headers["x-request-id"] = request_id
    response.headers["x-response-ms"] = f"{(time.perf_counter() - start) * 1000:.2f}"
    return response


app.add_middleware(GZipMiddleware, minimum_size=1024)

# Reporting clients call in from any origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# -------------------------
# Routes
# -------------------------
@app.get("/health", response_class=ORJSONResponse)
async def health():
    return ok({"status": "ok", "env": settings.ENV})


app.include_router(events_router, tags=["events"])


# -------------------------
# Error handling
# -------------------------
register_exception_handlers(app)


# -------------------------
# Startup / shutdown
# -------------------------
@app.on_event("startup")
async def on_startup():
    configure_logging(settings.LOG_LEVEL)

    from errorlog.db.session import init_db

    await init_db()

    if settings.DEFAULT_OWNER_ID:
        logger.info("Events without userId will be owned by %s", settings.DEFAULT_OWNER_ID)
    else:
        logger.info("Events without userId will be rejected")


@app.on_event("shutdown")
async def on_shutdown():
    from errorlog.db.session import dispose_engine

    await dispose_engine()
