"""Middleware for observability: request/response logging."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from talebox.infrastructure.observability.logging import (
    get_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)


# Hey future me, this middleware logs EVERY HTTP request/response and sets the correlation ID
# for everything that happens inside it. The mini-player polls /api/player/state a LOT - those
# are logged at DEBUG so they don't drown the interesting lines.
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses."""

    QUIET_PATHS = ("/api/player/state", "/api/notifications", "/health")

    def __init__(self, app: ASGIApp, log_request_body: bool = False) -> None:
        """Initialize middleware.

        Args:
            app: ASGI application
            log_request_body: Whether to log request body (can be verbose)
        """
        super().__init__(app)
        self.log_request_body = log_request_body

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and log details."""
        set_correlation_id(request.headers.get("X-Correlation-ID"))

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"
        level = logging.DEBUG if path.startswith(self.QUIET_PATHS) else logging.INFO

        extra: dict[str, object] = {
            "method": method,
            "path": path,
            "query_params": str(request.query_params),
            "client_ip": client_ip,
        }
        if self.log_request_body and method in ("POST", "PUT", "PATCH"):
            body = await request.body()
            extra["body"] = body.decode("utf-8", errors="replace")[:1000]
        logger.log(level, f"→ {method} {path}", extra=extra)

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            logger.exception(
                f"Request failed: {method} {path}",
                extra={
                    "method": method,
                    "path": path,
                    "duration_seconds": duration,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        status_emoji = "✓" if response.status_code < 400 else "✗"
        logger.log(
            level,
            f"{status_emoji} {method} {path} → {response.status_code} ({duration_ms:.0f}ms)",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": int(duration_ms),
            },
        )

        response.headers["X-Correlation-ID"] = get_correlation_id()
        return response
