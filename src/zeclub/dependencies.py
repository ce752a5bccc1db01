"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from zeclub.redis_client import RedisPool


def get_redis_pool(request: Request) -> RedisPool | None:
    """Return the process Redis pool, or None when the app runs without Redis."""
    return getattr(request.app.state, "redis", None)
