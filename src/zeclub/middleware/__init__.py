"""Middleware and exception handler registration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from zeclub.config import Settings
from zeclub.middleware.error_handler import setup_error_handlers
from zeclub.middleware.logging import setup_logging
from zeclub.middleware.rate_limit import RateLimitMiddleware
from zeclub.middleware.request_context import REQUEST_ID_HEADER, RequestContextMiddleware

# Response headers the portal's browser code is allowed to read
EXPOSED_HEADERS = [REQUEST_ID_HEADER, "X-Process-Time", "X-RateLimit-Remaining", "X-RateLimit-Limit"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Install logging, the exception handlers and the middleware stack.

    Starlette runs middleware in reverse registration order, so the stack
    from the outside in is CORS, request context, rate limiting.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
        trust_proxy=settings.rate_limit_trust_proxy,
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=EXPOSED_HEADERS,
    )
