from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_ctx_var: ContextVar[str | None] = ContextVar("principal", default=None)
logger = logging.getLogger("paintshop.request")

QUIET_PATHS = frozenset({"/health", "/metrics"})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Correlation id per request plus one access log line.

    Probe and scrape endpoints are not logged. Server errors are logged at
    ``ERROR`` so a stock write that ran out of retries stands out.
    """

    def __init__(self, app, header_name: str = "X-Request-ID") -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self.header_name) or uuid4().hex
        token = request_id_ctx_var.set(request_id)
        request.state.request_id = request_id
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[self.header_name] = request_id
        if request.url.path in QUIET_PATHS:
            return response

        fields = {
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": elapsed_ms,
            "request_id": request_id,
        }
        # Sync endpoints run in a worker thread; the principal they set is
        # only visible here through request state.
        principal = getattr(request.state, "principal", None)
        if principal:
            fields["principal"] = principal
        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        logger.log(level, "request.completed", extra={"extra_data": fields})
        return response
