"""
Access Log Middleware

Writes one line per request naming the operation the path was routed to,
e.g.::

    GET /abc redirect abc -> https://example.com 302 0.41ms IP:10.0.0.7
    GET /add/abc=example.com add 200 1.92ms IP:10.0.0.7

Redirects carry their short name and Location; other operations only
their kind. The client address comes from X-Forwarded-For when a proxy
set it.
"""

import logging
import time
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from shorty.api.request_router import RouteKind, classify_path

logger = logging.getLogger("shorty.access")


def client_address(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def describe_route(path: str, location: Optional[str] = None) -> str:
    """Short description of what a request path asked for."""
    kind = classify_path(path)
    if kind is not RouteKind.REDIRECT:
        return kind.value
    if location:
        return f"redirect {path[1:]} -> {location}"
    return f"redirect {path[1:]}"


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Logs the routed operation, status and latency of every request."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        route = describe_route(request.url.path, response.headers.get("location"))
        logger.info(
            f"{request.method} {request.url.path} {route} "
            f"{response.status_code} {elapsed_ms:.2f}ms IP:{client_address(request)}"
        )
        response.headers["X-Process-Time"] = f"{elapsed_ms / 1000:.6f}"
        return response


def add_access_log_middleware(app):
    app.add_middleware(AccessLogMiddleware)
