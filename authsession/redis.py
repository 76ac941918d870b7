"""Redis connection and utilities."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from uuid import uuid4

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from authsession.config import settings

logger = structlog.get_logger()

# Global Redis connection pool
redis_pool: Optional[redis.ConnectionPool] = None
redis_client: Optional[redis.Redis] = None


async def init_redis() -> redis.Redis:
    """Initialize Redis connection pool."""
    global redis_pool, redis_client

    redis_pool = redis.ConnectionPool.from_url(
        settings.redis_url,
        password=settings.redis_password if settings.redis_password else None,
        decode_responses=True,
        max_connections=50,
    )
    client = redis.Redis(connection_pool=redis_pool)

    try:
        await client.ping()
    except RedisError:
        await close_redis_pool(client)
        raise

    redis_client = client
    return redis_client


async def get_redis() -> Optional[redis.Redis]:
    """
    Get Redis client dependency.

    Returns None while Redis is unreachable; callers then run without rate
    limiting and without the per-account lock.
    """
    if redis_client is not None:
        return redis_client

    try:
        return await init_redis()
    except RedisError as exc:
        logger.warning("redis_unavailable", error=str(exc), error_type=type(exc).__name__)
        return None


async def close_redis_pool(client: redis.Redis) -> None:
    """Close a client and forget the global pool."""
    global redis_pool, redis_client

    await client.aclose()
    if redis_pool:
        await redis_pool.disconnect()

    redis_client = None
    redis_pool = None


async def close_redis() -> None:
    """Close Redis connection pool."""
    if redis_client:
        await close_redis_pool(redis_client)


class AccountLock:
    """
    Redis lock serialising the read-check-write sequence on one account's
    refresh token slot.

    Without a Redis client the scope is a no-op and concurrent rotations for
    the same account may race.
    """

    PREFIX = "account_lock:"

    def __init__(
        self,
        redis_client: Optional[redis.Redis],
        timeout: Optional[int] = None,
        blocking_timeout: Optional[int] = None,
    ):
        self.redis = redis_client
        self.timeout = timeout or settings.account_lock_timeout_seconds
        self.blocking_timeout = (
            blocking_timeout or settings.account_lock_blocking_timeout_seconds
        )

    @asynccontextmanager
    async def hold(self, account_id: str) -> AsyncIterator[None]:
        """Hold the lock for an account for the duration of the block."""
        if self.redis is None:
            yield
            return

        lock = self.redis.lock(
            f"{self.PREFIX}{account_id}",
            timeout=self.timeout,
            blocking_timeout=self.blocking_timeout,
        )
        async with lock:
            yield


class RateLimiter:
    """Redis-based sliding window rate limiter."""

    PREFIX = "rate_limit:"

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    async def is_allowed(
        self, key: str, max_requests: int, window_seconds: int = 60
    ) -> tuple[bool, int, int]:
        """
        Check if a request is allowed under rate limit.

        Returns:
            Tuple of (is_allowed, remaining_requests, retry_after_seconds)
        """
        rate_key = f"{self.PREFIX}{key}"
        seconds, microseconds = await self.redis.time()
        current_timestamp = int(seconds)
        window_start = current_timestamp - window_seconds

        # Use a pipeline for atomic operations
        pipe = self.redis.pipeline()

        # Remove old entries outside the window
        pipe.zremrangebyscore(rate_key, 0, window_start)
        # Count current entries
        pipe.zcard(rate_key)
        # One member per attempt, even for attempts inside the same second
        member = f"{current_timestamp}.{int(microseconds):06d}:{uuid4().hex}"
        pipe.zadd(rate_key, {member: current_timestamp})
        # Set expiry on the key
        pipe.expire(rate_key, window_seconds)

        results = await pipe.execute()
        current_count = results[1]

        if current_count >= max_requests:
            # Get the oldest entry to calculate retry-after
            oldest = await self.redis.zrange(rate_key, 0, 0, withscores=True)
            if oldest:
                retry_after = int(oldest[0][1]) + window_seconds - current_timestamp
                return False, 0, max(retry_after, 1)
            return False, 0, window_seconds

        remaining = max_requests - current_count - 1
        return True, remaining, 0
