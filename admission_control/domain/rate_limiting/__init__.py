"""Rate Limiting Domain Module

This module contains the domain model of the admission-control core,
following Domain-Driven Design principles:

- Value Objects: Identifiers, configuration variants and persisted state
- Entities: The admission decision
- Algorithms: Token bucket and sliding window log strategies
- Domain Services: Algorithm selection and the admission check use case
- Repositories: The storage port the algorithms run against
"""

from .algorithms import RateLimitAlgorithmStrategy, SlidingWindowLogAlgorithm, TokenBucketAlgorithm
from .entities import AdmissionDecision, AdmissionOutcome
from .repositories import RateLimitStorage
from .services import CheckRateLimitService, select_algorithm
from .value_objects import (
    ActionId,
    ClientId,
    RateLimitAlgorithm,
    RateLimitConfig,
    SlidingWindowLogConfig,
    StorageKey,
    TokenBucketConfig,
    TokenBucketState,
    parse_rate_limit_config,
)

__all__ = [
    "ActionId",
    "ClientId",
    "RateLimitAlgorithm",
    "RateLimitConfig",
    "TokenBucketConfig",
    "SlidingWindowLogConfig",
    "TokenBucketState",
    "StorageKey",
    "parse_rate_limit_config",
    "AdmissionDecision",
    "AdmissionOutcome",
    "RateLimitStorage",
    "RateLimitAlgorithmStrategy",
    "TokenBucketAlgorithm",
    "SlidingWindowLogAlgorithm",
    "CheckRateLimitService",
    "select_algorithm",
]
