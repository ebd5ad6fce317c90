"""Sliding window log rate limiting algorithm."""

from __future__ import annotations

import uuid

from ..entities import AdmissionDecision
from ..repositories import RateLimitStorage
from ..value_objects import RateLimitAlgorithm, SlidingWindowLogConfig
from .base import RateLimitAlgorithmStrategy


class SlidingWindowLogAlgorithm(RateLimitAlgorithmStrategy):
    """
    Sliding window log: keeps one timestamped entry per admitted request.

    Provides precise, non-bursty control: no trailing interval of
    `window_seconds` ever holds more than `max_requests` admitted requests,
    including across what a fixed-window limiter would treat as a boundary.

    Algorithm:
    1. window_start = now - window
    2. Count entries scored in [window_start, now] (both ends inclusive)
    3. At or over the limit: prune entries older than window_start and deny
    4. Otherwise log the request, prune, and allow
    """

    algorithm = RateLimitAlgorithm.SLIDING_WINDOW_LOG

    async def _evaluate(
        self, key: str, config: SlidingWindowLogConfig, storage: RateLimitStorage
    ) -> AdmissionDecision:
        now = self._now_ms()
        window_start = now - config.window_seconds * 1000

        count = await storage.count_in_range(key, window_start, now)

        if count >= config.max_requests:
            await storage.remove_expired(key, window_start)
            return AdmissionDecision.denied_result(
                key, self.algorithm, metadata={"requests_in_window": count}
            )

        await storage.add_to_sorted_set(key, now, self.request_member(now), config.window_seconds)
        await storage.remove_expired(key, window_start)

        return AdmissionDecision.allowed_result(
            key,
            self.algorithm,
            metadata={"requests_remaining": config.max_requests - count - 1},
        )

    @staticmethod
    def request_member(now_ms: float) -> str:
        """Unique sorted-set member; two requests may share a millisecond."""
        return f"{int(now_ms)}-{uuid.uuid4().hex}"
