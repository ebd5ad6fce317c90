"""Dependency wiring for the admission-control core.

Factories that turn `AdmissionControlSettings` into a ready-to-use
`CheckRateLimitService`. The domain depends only on the storage port; the
concrete adapter is chosen here from `STORAGE_BACKEND`.
"""

from typing import Optional

import structlog
from redis.asyncio import Redis

from admission_control.core.config.settings import AdmissionControlSettings
from admission_control.domain.rate_limiting.algorithms.base import Clock
from admission_control.domain.rate_limiting.repositories import RateLimitStorage
from admission_control.domain.rate_limiting.services import CheckRateLimitService
from admission_control.infrastructure.redis import create_redis_client
from admission_control.infrastructure.storage.in_memory import InMemoryRateLimitStorage
from admission_control.infrastructure.storage.redis_storage import RedisRateLimitStorage


def build_storage(
    settings: AdmissionControlSettings,
    redis: Optional[Redis] = None,
    clock: Optional[Clock] = None,
) -> RateLimitStorage:
    """Create the storage adapter selected by `STORAGE_BACKEND`.

    Args:
        settings: Loaded settings
        redis: Existing client to reuse for the redis backend
        clock: Time source for the in-memory backend
    """
    if settings.STORAGE_BACKEND == "redis":
        return RedisRateLimitStorage(redis or create_redis_client(settings))
    return InMemoryRateLimitStorage(clock=clock)


def build_check_rate_limit_service(
    settings: Optional[AdmissionControlSettings] = None,
    storage: Optional[RateLimitStorage] = None,
    logger: Optional[structlog.stdlib.BoundLogger] = None,
    clock: Optional[Clock] = None,
) -> CheckRateLimitService:
    """Compose the admission check service.

    Args:
        settings: Settings to read; loaded from the environment when omitted
        storage: Adapter to use instead of the one built from settings
        logger: Logger injected into the service and its algorithms
        clock: Time source shared by the algorithms and the in-memory backend
    """
    settings = settings or AdmissionControlSettings()
    storage = storage or build_storage(settings, clock=clock)
    return CheckRateLimitService(
        storage,
        clock=clock,
        logger=logger or structlog.get_logger("admission_control"),
        namespace=settings.KEY_NAMESPACE,
    )
