"""
Correlation ID middleware and utilities for request tracing.

Usage:
    from unpack.shared.correlation import CorrelationMiddleware, get_correlation_id

    # In main.py:
    app.add_middleware(CorrelationMiddleware)

    # In any code:
    correlation_id = get_correlation_id()

The correlation ID is:
- Read from X-Correlation-ID or X-Request-ID header if present
- Generated as a new UUID if not present
- Stored in request.state.correlation_id for endpoint access
- Added to response headers for client debugging
"""

import contextvars
import uuid
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


_correlation_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)

CORRELATION_HEADERS = [
    "X-Correlation-ID",
    "X-Request-ID",
]

RESPONSE_HEADER = "X-Correlation-ID"


def get_correlation_id() -> Optional[str]:
    """Correlation ID for the current request context, if any."""
    return _correlation_id_ctx.get()


def generate_correlation_id() -> str:
    """New 8-character correlation ID."""
    return str(uuid.uuid4())[:8]


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to every request and response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        correlation_id = None
        for header in CORRELATION_HEADERS:
            correlation_id = request.headers.get(header)
            if correlation_id:
                break

        if not correlation_id:
            correlation_id = generate_correlation_id()

        request.state.correlation_id = correlation_id
        token = _correlation_id_ctx.set(correlation_id)

        try:
            response = await call_next(request)
            response.headers[RESPONSE_HEADER] = correlation_id
            return response
        finally:
            _correlation_id_ctx.reset(token)


class CorrelationContext:
    """
    Context manager for setting a correlation ID outside of a request.

    Example:
        with CorrelationContext("capture-42"):
            logger.info("Processing capture")  # Will include correlation_id
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _correlation_id_ctx.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _correlation_id_ctx.reset(self._token)
