"""
Middleware configuration for the application.
Correlation ID propagation and request timing logs.
"""

import time
from typing import Callable

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its outcome and elapsed time."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        log = logger.bind(method=request.method, path=request.url.path)
        log.info(
            "Request started",
            client_ip=request.client.host if request.client else "unknown",
            content_length=request.headers.get("content-length"),
        )

        try:
            response = await call_next(request)
        except Exception:
            log.exception("Request failed", process_time_ms=_elapsed_ms(started))
            raise

        log.info(
            "Request completed",
            status_code=response.status_code,
            process_time_ms=_elapsed_ms(started),
        )
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def setup_middleware(app: FastAPI) -> None:
    """Register middleware. Starlette runs them in reverse order of addition."""
    app.add_middleware(RequestLoggingMiddleware)

    # Added last so it runs first and the request id is bound for the logger above
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        update_request_header=True,
    )
