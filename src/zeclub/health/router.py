"""Liveness, readiness and version checks (outside the /api/v1 prefix)."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from zeclub.config import get_settings
from zeclub.database import get_session
from zeclub.dependencies import get_redis_pool
from zeclub.redis_client import RedisPool

router = APIRouter()

# Check results that still count as ready
_READY_STATES = frozenset({"ok", "disabled"})


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


async def _check_redis(pool: RedisPool | None) -> str:
    # Redis only backs rate limiting; the API runs without it
    if pool is None:
        return "disabled"
    try:
        await pool.client.ping()
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    """200 while the process is up."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    pool: RedisPool | None = Depends(get_redis_pool),  # noqa: B008
) -> JSONResponse:
    """200 when the database (and Redis, if configured) answer, 503 otherwise."""
    checks = {
        "database": await _check_database(db),
        "redis": await _check_redis(pool),
    }
    ready = all(state in _READY_STATES for state in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"version": settings.app_version, "environment": settings.environment}
