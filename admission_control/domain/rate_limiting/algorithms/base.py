"""Base class for rate limiting algorithms.

Each algorithm is a strategy: it reads and writes its state through the
`RateLimitStorage` port and turns it into an `AdmissionDecision`. The
shared `evaluate` template owns the fail-open policy so every algorithm
applies it the same way, and runs each read-modify-write sequence inside the
storage adapter's per-key critical section.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable, ClassVar, Optional

import structlog

from admission_control.core.exceptions import (
    StorageUnavailableError,
    UnsupportedAlgorithmError,
)

from ..entities import AdmissionDecision
from ..repositories import RateLimitStorage
from ..value_objects import (
    ActionId,
    ClientId,
    RateLimitAlgorithm,
    RateLimitConfig,
    StorageKey,
)

Clock = Callable[[], float]


class RateLimitAlgorithmStrategy(ABC):
    """Port for rate limiting algorithms.

    Subclasses implement `_evaluate` for their configuration variant. Storage
    errors raised inside it never reach the caller: they are logged and turned
    into an allowed `FAIL_OPEN` decision.

    Args:
        clock: Returns the current time in seconds since the epoch.
        logger: Bound structlog logger; a module logger is used when omitted.
        namespace: Prefix of every storage key written by this algorithm.
    """

    algorithm: ClassVar[RateLimitAlgorithm]

    def __init__(
        self,
        clock: Optional[Clock] = None,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        namespace: str = StorageKey.DEFAULT_NAMESPACE,
    ):
        self._clock = clock or time.time
        self._logger = logger or structlog.get_logger(__name__)
        self._namespace = namespace

    async def decide(
        self,
        client_id: ClientId,
        action_id: ActionId,
        config: RateLimitConfig,
        storage: RateLimitStorage,
    ) -> bool:
        """Return True if the request should be allowed, False if blocked."""
        decision = await self.evaluate(client_id, action_id, config, storage)
        return decision.allowed

    async def evaluate(
        self,
        client_id: ClientId,
        action_id: ActionId,
        config: RateLimitConfig,
        storage: RateLimitStorage,
    ) -> AdmissionDecision:
        """Evaluate a request and return the full decision.

        Raises:
            UnsupportedAlgorithmError: If `config` belongs to another algorithm
        """
        if getattr(config, "algorithm", None) is not self.algorithm:
            raise UnsupportedAlgorithmError(
                f"{type(self).__name__} requires {self.algorithm.value} config, "
                f"got {getattr(config, 'algorithm', type(config).__name__)}"
            )

        key = str(self.storage_key(client_id, action_id))
        try:
            async with storage.atomic(key):
                decision = await self._evaluate(key, config, storage)
        except StorageUnavailableError as e:
            self._logger.error(
                "Rate limit storage error, failing open",
                algorithm=self.algorithm.value,
                key=key,
                error=str(e),
                error_code=e.code,
            )
            return AdmissionDecision.fallback_result(key, self.algorithm, str(e))
        except Exception as e:
            # Backends that do not translate their driver errors still fail open
            self._logger.error(
                "Unexpected rate limit backend error, failing open",
                algorithm=self.algorithm.value,
                key=key,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return AdmissionDecision.fallback_result(key, self.algorithm, str(e))

        if decision.allowed:
            self._logger.debug("Request admitted", algorithm=self.algorithm.value, key=key)
        else:
            self._logger.info("Request rate limited", algorithm=self.algorithm.value, key=key)
        return decision

    def storage_key(self, client_id: ClientId, action_id: ActionId) -> StorageKey:
        return StorageKey(client_id=client_id, action_id=action_id, namespace=self._namespace)

    def _now_ms(self) -> float:
        return self._clock() * 1000

    @abstractmethod
    async def _evaluate(
        self, key: str, config: RateLimitConfig, storage: RateLimitStorage
    ) -> AdmissionDecision:
        raise NotImplementedError
