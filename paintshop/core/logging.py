"""JSON log output.

Every record is one JSON object carrying the service name, the request id and
the authenticated principal when they are known. Structured fields are passed
with ``logger.info("event.name", extra=log_extra(key=value))``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Mapping

from ..middlewares import principal_ctx_var, request_id_ctx_var
from .config import settings

# Replaced by the per-request log line written in RequestIdMiddleware.
_MUTED_LOGGERS = ("uvicorn.access",)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.utcnow().isoformat(timespec="milliseconds") + "Z",
            "service": settings.APP_NAME,
            "env": settings.APP_ENV,
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        for key, ctx_var in (("request_id", request_id_ctx_var), ("principal", principal_ctx_var)):
            value = ctx_var.get()
            if value:
                payload[key] = value
        fields = getattr(record, "extra_data", None)
        if isinstance(fields, Mapping):
            payload.update(fields)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel(level.upper())
    for name in _MUTED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_extra(**fields: object) -> dict[str, dict[str, object]]:
    """Wrap keyword fields the way :class:`JsonLogFormatter` expects them."""

    return {"extra_data": fields}
