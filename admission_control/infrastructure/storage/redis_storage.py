"""Redis implementation of the rate limit storage port.

Maps each port operation onto Redis commands:

- get: GET
- set: SET with PX, or plain SET (which clears any previous expiry)
- increment: INCR + PEXPIRE-if-no-expiry, atomic through a Lua script
- add_to_sorted_set: ZADD + PEXPIRE in a MULTI/EXEC pipeline
- count_in_range: ZCOUNT (inclusive bounds)
- remove_expired: ZREMRANGEBYSCORE -inf (floor (exclusive upper bound);
  Redis deletes the key itself once the set is empty

Driver exceptions are translated into the storage error hierarchy so the
algorithms can apply their fail-open policy.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog
from redis import exceptions as redis_exceptions
from redis.asyncio import Redis

from admission_control.core.exceptions import (
    StorageConnectionError,
    StorageDataError,
    StorageTimeoutError,
    StorageUnavailableError,
)
from admission_control.domain.rate_limiting.repositories import RateLimitStorage

logger = structlog.get_logger(__name__)


class RedisRateLimitStorage(RateLimitStorage):
    """
    Rate limit storage backed by Redis.

    Every port operation is a single atomic Redis command, script or
    transaction. `atomic(key)` keeps the port's default and does not lock:
    concurrent callers on the same key across processes can each pass the
    limit check before either writes.
    """

    # Atomic increment; applies the expiry only when the key has none yet
    _INCREMENT_SCRIPT = """
    local value = redis.call('INCR', KEYS[1])
    local ttl_ms = tonumber(ARGV[1])
    if ttl_ms and ttl_ms > 0 and redis.call('PTTL', KEYS[1]) == -1 then
        redis.call('PEXPIRE', KEYS[1], ttl_ms)
    end
    return value
    """

    def __init__(self, redis_client: Redis):
        """
        Initialize the Redis-based rate limit storage.

        Args:
            redis_client (Redis): The async Redis client instance.
        """
        self.redis = redis_client
        self._increment_sha: Optional[str] = None

    async def get(self, key: str) -> Optional[str]:
        with self._translate_errors("get", key):
            value = await self.redis.get(key)
        return self._decode(value)

    async def set(self, key: str, value: str, ttl_seconds: Optional[float] = None) -> None:
        with self._translate_errors("set", key):
            if ttl_seconds is not None:
                await self.redis.set(key, value, px=self._to_milliseconds(ttl_seconds))
            else:
                await self.redis.set(key, value)

    async def increment(self, key: str, ttl_seconds: Optional[float] = None) -> int:
        ttl_ms = self._to_milliseconds(ttl_seconds) if ttl_seconds is not None else 0
        with self._translate_errors("increment", key):
            await self._register_scripts()
            try:
                result = await self.redis.evalsha(self._increment_sha, 1, key, ttl_ms)
            except redis_exceptions.NoScriptError:
                # Script cache was flushed (e.g. server restart); load it again
                self._increment_sha = None
                await self._register_scripts()
                result = await self.redis.evalsha(self._increment_sha, 1, key, ttl_ms)
        return int(result)

    async def add_to_sorted_set(
        self, key: str, score: float, member: str, window_seconds: float
    ) -> None:
        with self._translate_errors("add_to_sorted_set", key):
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.zadd(key, {member: score})
                pipe.pexpire(key, self._to_milliseconds(window_seconds))
                await pipe.execute()

    async def count_in_range(self, key: str, min_score: float, max_score: float) -> int:
        with self._translate_errors("count_in_range", key):
            return int(await self.redis.zcount(key, min_score, max_score))

    async def remove_expired(self, key: str, floor: float) -> None:
        with self._translate_errors("remove_expired", key):
            await self.redis.zremrangebyscore(key, "-inf", f"({floor!r}")

    async def health_check(self) -> bool:
        """Return True if Redis answers a PING."""
        try:
            with self._translate_errors("ping", ""):
                await self.redis.ping()
            return True
        except StorageUnavailableError:
            return False

    async def _register_scripts(self) -> None:
        """Register Lua scripts with Redis for atomic operations."""
        if self._increment_sha is None:
            self._increment_sha = await self.redis.script_load(self._INCREMENT_SCRIPT)

    @staticmethod
    def _to_milliseconds(seconds: float) -> int:
        return max(1, math.ceil(seconds * 1000))

    @staticmethod
    def _decode(value) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise StorageDataError("Stored value is not valid UTF-8") from e
        return str(value)

    @contextmanager
    def _translate_errors(self, operation: str, key: str) -> Iterator[None]:
        try:
            yield
        except redis_exceptions.TimeoutError as e:
            logger.warning("Redis operation timed out", operation=operation, key=key)
            raise StorageTimeoutError(f"Redis {operation} timed out: {e}") from e
        except redis_exceptions.ConnectionError as e:
            logger.warning("Redis connection failed", operation=operation, key=key)
            raise StorageConnectionError(f"Redis {operation} failed to connect: {e}") from e
        except redis_exceptions.RedisError as e:
            logger.warning("Redis operation failed", operation=operation, key=key, error=str(e))
            raise StorageUnavailableError(f"Redis {operation} failed: {e}") from e
