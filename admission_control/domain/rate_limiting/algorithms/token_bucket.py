"""Token bucket rate limiting algorithm."""

from __future__ import annotations

import math

from ..entities import AdmissionDecision
from ..repositories import RateLimitStorage
from ..value_objects import RateLimitAlgorithm, TokenBucketConfig, TokenBucketState
from .base import RateLimitAlgorithmStrategy


class TokenBucketAlgorithm(RateLimitAlgorithmStrategy):
    """
    Token bucket: allows bursts up to capacity, then refills at a steady rate.

    Algorithm:
    1. Load the bucket state, or start a full bucket on first sight
    2. Add elapsed_seconds * refill_rate tokens, capped at capacity
    3. If at least one token is available, consume it and allow
    4. Otherwise deny; the refreshed state is persisted either way so the
       refill clock keeps moving
    """

    algorithm = RateLimitAlgorithm.TOKEN_BUCKET

    async def _evaluate(
        self, key: str, config: TokenBucketConfig, storage: RateLimitStorage
    ) -> AdmissionDecision:
        now = self._now_ms()

        raw_state = await storage.get(key)
        if raw_state:
            state = TokenBucketState.from_json(raw_state)
        else:
            state = TokenBucketState.full(config, now)

        state = state.refilled(config, now)
        ttl = self.calculate_ttl(config)

        if state.can_consume:
            state = state.consume()
            await storage.set(key, state.to_json(), ttl)
            return AdmissionDecision.allowed_result(
                key, self.algorithm, metadata={"tokens_remaining": state.tokens}
            )

        await storage.set(key, state.to_json(), ttl)
        return AdmissionDecision.denied_result(
            key,
            self.algorithm,
            metadata={
                "tokens_remaining": state.tokens,
                "retry_after_seconds": (1 - state.tokens) / config.refill_rate_per_second,
            },
        )

    @staticmethod
    def calculate_ttl(config: TokenBucketConfig) -> int:
        """
        Record time-to-live in seconds: twice the time to refill from empty.

        An idle bucket is reclaimed only after it would have been full again,
        so expiry never hands out more tokens than refill would have.
        """
        return math.ceil(2 * config.seconds_to_full)
