"""Fixed-window rate limiting per client, counted in Redis.

Without a Redis pool (or when Redis errors) requests pass through unlimited.
"""

import time
from typing import Any

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from zeclub.dependencies import get_redis_pool

logger = structlog.get_logger()

KEY_PREFIX = "zeclub:ratelimit"
_EXEMPT_PATHS = frozenset({"/health", "/ready"})


def client_identifier(request: Request, trust_proxy: bool = False) -> str:
    """Client address; behind the portal's proxy the first X-Forwarded-For hop."""
    if trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Allow ``requests_per_window`` requests per client per ``window_seconds``."""

    def __init__(
        self,
        app: Any,  # noqa: ANN401
        requests_per_window: int = 100,
        window_seconds: int = 60,
        trust_proxy: bool = False,
    ) -> None:
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds
        self.trust_proxy = trust_proxy

    def _headers(self, remaining: int) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.requests_per_window),
            "X-RateLimit-Remaining": str(max(0, remaining)),
        }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        pool = get_redis_pool(request)
        if pool is None or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        now = int(time.time())
        window = now // self.window_seconds
        key = f"{KEY_PREFIX}:{client_identifier(request, self.trust_proxy)}:{window}"

        try:
            pipe = pool.client.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window_seconds + 1)
            count, _ = await pipe.execute()
        except (RuntimeError, RedisError):
            logger.warning("rate_limit_unavailable", path=request.url.path)
            return await call_next(request)

        if count > self.requests_per_window:
            retry_after = (window + 1) * self.window_seconds - now
            logger.info("rate_limited", key=key, count=count)
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": str(max(1, retry_after)), **self._headers(0)},
            )

        response = await call_next(request)
        response.headers.update(self._headers(self.requests_per_window - count))
        return response
