"""In-memory implementation of the rate limit storage port.

Useful for tests and single-node deployments. It does not coordinate across
processes, so it is not suitable for distributed systems.

Expiry is lazy: a record past its time-to-live is dropped when it is next
accessed. There is no background sweep.
"""

from __future__ import annotations

import threading
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional

import structlog

from admission_control.core.exceptions import StorageDataError
from admission_control.domain.rate_limiting.repositories import RateLimitStorage

logger = structlog.get_logger(__name__)


class InMemoryRateLimitStorage(RateLimitStorage):
    """Thread-safe in-memory rate limit storage.

    A single re-entrant lock serialises every primitive, so `increment`,
    sorted-set inserts and expiry-checked reads are atomic with respect to
    each other. `atomic(key)` additionally holds a per-key lock across a
    whole read-modify-write sequence, which keeps limits exact when several
    threads check the same key. None of the operations suspend, so the lock
    is never held across a yield to the event loop.

    Args:
        clock: Returns the current time in seconds; drives expiry.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._lock = threading.RLock()
        self._values: Dict[str, str] = {}
        self._value_expiry: Dict[str, float] = {}
        self._sorted_sets: Dict[str, Dict[str, float]] = {}
        self._sorted_set_expiry: Dict[str, float] = {}
        self._key_locks: Dict[str, threading.Lock] = {}

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            self._expire_value(key)
            return self._values.get(key)

    async def set(self, key: str, value: str, ttl_seconds: Optional[float] = None) -> None:
        with self._lock:
            self._values[key] = value
            if ttl_seconds is not None:
                self._value_expiry[key] = self._clock() + ttl_seconds
            else:
                self._value_expiry.pop(key, None)

    async def increment(self, key: str, ttl_seconds: Optional[float] = None) -> int:
        with self._lock:
            self._expire_value(key)
            current = self._values.get(key)
            try:
                new_value = (int(current) if current else 0) + 1
            except ValueError as e:
                raise StorageDataError(f"Value at {key} is not an integer") from e
            self._values[key] = str(new_value)

            if ttl_seconds is not None and key not in self._value_expiry:
                self._value_expiry[key] = self._clock() + ttl_seconds

            return new_value

    async def add_to_sorted_set(
        self, key: str, score: float, member: str, window_seconds: float
    ) -> None:
        with self._lock:
            self._expire_sorted_set(key)
            self._sorted_sets.setdefault(key, {})[member] = score
            self._sorted_set_expiry[key] = self._clock() + window_seconds

    async def count_in_range(self, key: str, min_score: float, max_score: float) -> int:
        with self._lock:
            self._expire_sorted_set(key)
            members = self._sorted_sets.get(key)
            if not members:
                return 0
            return sum(1 for score in members.values() if min_score <= score <= max_score)

    async def remove_expired(self, key: str, floor: float) -> None:
        with self._lock:
            self._expire_sorted_set(key)
            members = self._sorted_sets.get(key)
            if members is None:
                return

            for member in [m for m, score in members.items() if score < floor]:
                del members[member]

            if not members:
                del self._sorted_sets[key]
                self._sorted_set_expiry.pop(key, None)

    @asynccontextmanager
    async def atomic(self, key: str) -> AsyncIterator[None]:
        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())
        with key_lock:
            yield

    def clear(self) -> None:
        """Drop every key."""
        with self._lock:
            self._values.clear()
            self._value_expiry.clear()
            self._sorted_sets.clear()
            self._sorted_set_expiry.clear()

    def _expire_value(self, key: str) -> None:
        expires_at = self._value_expiry.get(key)
        if expires_at is not None and self._clock() > expires_at:
            self._values.pop(key, None)
            del self._value_expiry[key]
            logger.debug("Expired rate limit record", key=key)

    def _expire_sorted_set(self, key: str) -> None:
        expires_at = self._sorted_set_expiry.get(key)
        if expires_at is not None and self._clock() > expires_at:
            self._sorted_sets.pop(key, None)
            del self._sorted_set_expiry[key]
            logger.debug("Expired rate limit log", key=key)
