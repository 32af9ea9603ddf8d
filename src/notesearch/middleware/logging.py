"""Request logging middleware."""
import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

# Probed by the orchestrator every few seconds.
QUIET_PATHS = frozenset({
    "/api/v1/health/live",
    "/api/v1/health/search",
})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one structured line per request and tags it with a request id.

    The id is taken from an inbound ``X-Request-ID`` header when the
    caller sent one, bound into structlog context vars for the duration
    of the request, and echoed back on the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("http_request_failed")
            structlog.contextvars.clear_contextvars()
            raise

        logger.info(
            "http_request",
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            client=request.client.host if request.client else None,
        )
        structlog.contextvars.clear_contextvars()
        response.headers["X-Request-ID"] = request_id
        return response
