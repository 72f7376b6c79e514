"""Structured JSON logging with correlation ID support.

Usage:
    logger = get_logger(__name__)
    logger.info("message appended", extra={"extra_fields": safe_log_context(...)})
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import get_correlation_id

_LOGGER_PREFIX = "smsgateway"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, tagged with the active correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_obj["correlationId"] = correlation_id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_obj.update(record.extra_fields)

        return json.dumps(log_obj, default=str)


def get_logger(name: str) -> logging.Logger:
    """Get a logger configured for JSON output on stdout.

    Loggers outside the package namespace are nested under it so a single
    level switch covers the whole service.
    """
    if not name.startswith(_LOGGER_PREFIX):
        name = f"{_LOGGER_PREFIX}.{name}"
    logger = logging.getLogger(name)

    # Only configure once (avoid duplicate handlers on re-import)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False

    return logger
