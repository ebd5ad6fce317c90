"""
Rate Limiting Storage Port

Repository interface defining the contract between the rate limiting
algorithms and their persistence/coordination backend. The algorithms depend
on this abstraction only; the in-memory and Redis adapters in the
infrastructure layer implement it.

Contract:
- Every operation is atomic on its own. A compound sequence on one key is
  serialised only inside `atomic(key)`, and only by adapters that support it.
- Backend faults are raised as `StorageUnavailableError` (or a subclass),
  never as driver-specific exceptions.
- Scores are numbers (epoch milliseconds in practice); score ranges are
  inclusive on both ends unless stated otherwise.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional


class RateLimitStorage(ABC):
    """
    Storage port for rate limiting state.

    Offers plain string values with optional time-to-live, atomic counters,
    and timestamp-scored sorted sets. Any conforming backend must implement
    all six operations to the same contract.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read a string value.

        Args:
            key: Storage key

        Returns:
            The stored value, or None if absent or expired

        Raises:
            StorageUnavailableError: When the backend cannot serve the read
        """
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: Optional[float] = None) -> None:
        """
        Overwrite a string value.

        Args:
            key: Storage key
            value: Value to store
            ttl_seconds: Expire the record after this many seconds. When
                omitted, no expiry is set and any previous expiry is cleared.
        """
        raise NotImplementedError

    @abstractmethod
    async def increment(self, key: str, ttl_seconds: Optional[float] = None) -> int:
        """
        Atomically increment a counter, creating it at 1 if absent.

        Args:
            key: Storage key
            ttl_seconds: Expiry applied only if the key has no expiry yet

        Returns:
            The counter value after incrementing
        """
        raise NotImplementedError

    @abstractmethod
    async def add_to_sorted_set(
        self, key: str, score: float, member: str, window_seconds: float
    ) -> None:
        """
        Insert a scored member and refresh the key's expiry.

        Args:
            key: Storage key of the sorted set
            score: Member score, usually a timestamp in milliseconds
            member: Unique member value for this score
            window_seconds: New time-to-live of the whole set
        """
        raise NotImplementedError

    @abstractmethod
    async def count_in_range(self, key: str, min_score: float, max_score: float) -> int:
        """
        Count members whose score lies in [min_score, max_score], inclusive.

        Returns:
            Number of matching members, 0 for an absent key
        """
        raise NotImplementedError

    @abstractmethod
    async def remove_expired(self, key: str, floor: float) -> None:
        """
        Delete all members with score strictly less than `floor`.

        The whole key is deleted once the set becomes empty.
        """
        raise NotImplementedError

    @asynccontextmanager
    async def atomic(self, key: str) -> AsyncIterator[None]:
        """
        Critical section for a read-modify-write sequence on one key.

        Callers issuing several operations that must not interleave with
        another caller on the same key run them inside this block. The
        default does not serialise anything; adapters that can provide
        per-key mutual exclusion override it.

        Args:
            key: Storage key the sequence operates on
        """
        yield
