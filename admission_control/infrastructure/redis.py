"""
Redis Connection Module

Creates the asynchronous Redis client used by the distributed rate limit
storage.

**Security Note**: Use a `rediss://` URL with credentials when Redis is reached
over an untrusted network. Connection details, passwords in particular, are
never logged.

Functions:
    create_redis_client: Build a client from settings.
    redis_client: Async context manager that closes the client on exit.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from redis.asyncio import Redis

from admission_control.core.config.settings import AdmissionControlSettings

logger = structlog.get_logger(__name__)


def create_redis_client(settings: AdmissionControlSettings) -> Redis:
    """
    Build an asynchronous Redis client from settings.

    A short socket timeout keeps a degraded Redis from stalling admission
    checks; timeouts surface as storage errors and the algorithms fail open.
    """
    password = settings.REDIS_PASSWORD.get_secret_value() or None
    client = Redis.from_url(
        settings.REDIS_URL,
        password=password,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
        encoding="utf-8",
        decode_responses=True,
    )
    logger.debug("Redis client created")
    return client


@asynccontextmanager
async def redis_client(settings: AdmissionControlSettings) -> AsyncIterator[Redis]:
    """
    Provides an asynchronous Redis client, closing it after use.

    Example:
        async with redis_client(settings) as redis:
            storage = RedisRateLimitStorage(redis)
    """
    client = create_redis_client(settings)
    try:
        yield client
    finally:
        await client.aclose()
        logger.debug("Redis connection closed")
