"""
Rate Limiting Domain Services

Domain services that orchestrate an admission check.

Services:
- select_algorithm: Maps a configuration variant to its algorithm strategy
- CheckRateLimitService: Main entry point, validates identifiers, resolves
  the algorithm and returns the admission decision

Design Principles:
- Dependency Injection: The service depends on the storage abstraction
- No retry at this layer: storage failures are absorbed by the algorithms'
  fail-open policy before they can reach the service
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from admission_control.core.exceptions import UnsupportedAlgorithmError

from .algorithms import (
    RateLimitAlgorithmStrategy,
    SlidingWindowLogAlgorithm,
    TokenBucketAlgorithm,
)
from .algorithms.base import Clock
from .entities import AdmissionDecision
from .repositories import RateLimitStorage
from .value_objects import (
    ActionId,
    ClientId,
    RateLimitConfig,
    SlidingWindowLogConfig,
    StorageKey,
    TokenBucketConfig,
)


def select_algorithm(
    config: Any,
    *,
    clock: Optional[Clock] = None,
    logger: Optional[structlog.stdlib.BoundLogger] = None,
    namespace: str = StorageKey.DEFAULT_NAMESPACE,
) -> RateLimitAlgorithmStrategy:
    """
    Create the algorithm matching a configuration variant.

    Args:
        config: A TokenBucketConfig or SlidingWindowLogConfig
        clock: Time source handed to the algorithm
        logger: Logger handed to the algorithm
        namespace: Storage key namespace handed to the algorithm

    Returns:
        A fresh algorithm instance

    Raises:
        UnsupportedAlgorithmError: For anything that is not a known variant,
            e.g. a configuration rebuilt from untrusted data
    """
    kwargs = {"clock": clock, "logger": logger, "namespace": namespace}
    if isinstance(config, TokenBucketConfig):
        return TokenBucketAlgorithm(**kwargs)
    if isinstance(config, SlidingWindowLogConfig):
        return SlidingWindowLogAlgorithm(**kwargs)

    tag = getattr(config, "algorithm", None)
    if tag is None and isinstance(config, dict):
        tag = config.get("algorithm")
    raise UnsupportedAlgorithmError(f"Unsupported rate limiting algorithm: {tag}")


class CheckRateLimitService:
    """
    Use case for checking if a request should be allowed.

    Orchestrates the admission check:
    1. Creating value objects from the raw identifiers
    2. Selecting the algorithm for the configuration
    3. Delegating to the algorithm with the storage adapter

    Invalid identifiers raise `InvalidIdentifierError`; they are a rejected
    call, never a True/False decision.
    """

    def __init__(
        self,
        storage: RateLimitStorage,
        clock: Optional[Clock] = None,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        namespace: str = StorageKey.DEFAULT_NAMESPACE,
    ):
        self.storage = storage
        self._clock = clock
        self._logger = logger or structlog.get_logger(__name__)
        self._namespace = namespace

    async def execute(self, client_id: str, action_id: str, config: RateLimitConfig) -> bool:
        """
        Determine if a request should be allowed based on rate limiting rules.

        Args:
            client_id: The client making the request (user ID, IP address, API key)
            action_id: The action being rate limited (e.g. "api-call", "login")
            config: Rate limit configuration selecting the algorithm and its limits

        Returns:
            True if the request should be allowed, False if it should be blocked

        Raises:
            InvalidIdentifierError: If either identifier is empty or whitespace
            UnsupportedAlgorithmError: If the configuration is not a known variant
        """
        decision = await self.evaluate(client_id, action_id, config)
        return decision.allowed

    async def evaluate(
        self, client_id: str, action_id: str, config: RateLimitConfig
    ) -> AdmissionDecision:
        """Same as `execute` but returns the full decision."""
        client = ClientId.create(client_id)
        action = ActionId.create(action_id)

        algorithm = select_algorithm(
            config, clock=self._clock, logger=self._logger, namespace=self._namespace
        )
        return await algorithm.evaluate(client, action, config, self.storage)
