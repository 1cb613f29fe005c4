# errorlog/core/logging.py
"""
Logging setup for the error log service.

One stdout handler on the root logger. Every line carries the id of the HTTP
request it was emitted under (the `x-request-id` the caller sent, or one we
generated), so an ingest or delete can be followed through routes, services
and store failures. Lines logged outside a request (startup, scripts) show "-".
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging.

    Args:
        level: "DEBUG", "INFO", "WARNING", ... Unknown names fall back to INFO.

    SQL statements are echoed through `sqlalchemy.engine` only at DEBUG.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Clear any existing handlers to avoid duplicate logs
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if log_level <= logging.DEBUG else logging.WARNING
    )
