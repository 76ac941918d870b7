"""Liveness and readiness endpoints, mounted at the application root."""

from fastapi import APIRouter
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from authsession import __version__
from authsession.database import async_session_maker
from authsession.redis import get_redis
from authsession.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])


async def _database_status() -> str:
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        return f"unhealthy: {type(exc).__name__}"
    return "healthy"


async def _redis_status() -> str:
    redis_client = await get_redis()
    if redis_client is None:
        return "unhealthy: unavailable"
    try:
        await redis_client.ping()
    except (RedisError, OSError) as exc:
        return f"unhealthy: {type(exc).__name__}"
    return "healthy"


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", version=__version__)


@router.get("/health/ready", response_model=HealthResponse, summary="Readiness probe")
async def readiness_check() -> HealthResponse:
    """
    Report database and Redis connectivity.

    Login, refresh and the rate limiter need Redis, so the service is only
    ready when both backends answer.
    """
    db_status = await _database_status()
    redis_status = await _redis_status()
    ready = db_status == "healthy" and redis_status == "healthy"

    return HealthResponse(
        status="healthy" if ready else "unhealthy",
        version=__version__,
        database=db_status,
        redis=redis_status,
    )


@router.get("/health/live", response_model=HealthResponse, summary="Liveness probe")
async def liveness_check() -> HealthResponse:
    return HealthResponse(status="alive", version=__version__)
