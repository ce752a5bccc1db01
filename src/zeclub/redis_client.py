"""Redis connection pool."""

from __future__ import annotations

import redis.asyncio as redis


class RedisPool:
    """Owns the Redis client for one process (opened in the lifespan)."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Initialize the Redis connection pool."""
        self._client = redis.from_url(  # type: ignore[no-untyped-call]
            self.url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
        )

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            msg = "Redis not initialized. Call connect() first."
            raise RuntimeError(msg)
        return self._client
