"""Rate limiting admission control.

Decides whether a (client, action) pair may proceed, using a token bucket or
a sliding window log over a pluggable storage backend.

Example:
    storage = InMemoryRateLimitStorage()
    limiter = CheckRateLimitService(storage)
    config = TokenBucketConfig(capacity=10, refill_rate_per_second=2)
    allowed = await limiter.execute("user-123", "api-call", config)
"""

from admission_control.core.exceptions import (
    AdmissionControlError,
    InvalidIdentifierError,
    InvalidRateLimitConfigurationError,
    StorageUnavailableError,
    UnsupportedAlgorithmError,
)
from admission_control.domain.rate_limiting import (
    ActionId,
    AdmissionDecision,
    CheckRateLimitService,
    ClientId,
    RateLimitAlgorithm,
    RateLimitConfig,
    RateLimitStorage,
    SlidingWindowLogConfig,
    TokenBucketConfig,
    parse_rate_limit_config,
    select_algorithm,
)
from admission_control.infrastructure.storage import (
    InMemoryRateLimitStorage,
    RedisRateLimitStorage,
)

__version__ = "0.1.0"

__all__ = [
    "AdmissionControlError",
    "InvalidIdentifierError",
    "InvalidRateLimitConfigurationError",
    "StorageUnavailableError",
    "UnsupportedAlgorithmError",
    "ActionId",
    "ClientId",
    "AdmissionDecision",
    "CheckRateLimitService",
    "RateLimitAlgorithm",
    "RateLimitConfig",
    "RateLimitStorage",
    "SlidingWindowLogConfig",
    "TokenBucketConfig",
    "parse_rate_limit_config",
    "select_algorithm",
    "InMemoryRateLimitStorage",
    "RedisRateLimitStorage",
]
