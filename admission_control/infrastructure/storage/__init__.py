"""Rate limit storage adapters."""

from .in_memory import InMemoryRateLimitStorage
from .redis_storage import RedisRateLimitStorage

__all__ = ["InMemoryRateLimitStorage", "RedisRateLimitStorage"]
