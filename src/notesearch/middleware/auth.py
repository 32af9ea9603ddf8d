"""API key guard for operator-only endpoints."""

import secrets
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()

PROTECTED_PREFIXES: tuple[str, ...] = ("/api/v1/sync",)


def _unauthorized(error: str) -> JSONResponse:
    return JSONResponse(status_code=401, content={"success": False, "error": error})


class AdminKeyMiddleware(BaseHTTPMiddleware):
    """Requires ``X-API-Key`` on sync and index-maintenance endpoints.

    Search, health, and webhook routes pass through; webhooks carry
    their own HMAC signature.
    """

    def __init__(self, app: Callable[..., Awaitable[Response]], api_key: str) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._api_key = api_key

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        path = request.url.path
        if not path.startswith(PROTECTED_PREFIXES):
            return await call_next(request)

        supplied = request.headers.get("X-API-Key")
        if not supplied:
            logger.warning("admin_key_missing", path=path)
            return _unauthorized("Missing X-API-Key header")
        if not secrets.compare_digest(supplied, self._api_key):
            logger.warning("admin_key_rejected", path=path)
            return _unauthorized("Invalid API key")

        return await call_next(request)
