"""
Rate Limiting Value Objects

Immutable value objects representing core concepts in the admission-control
domain. These objects encapsulate business rules and invariants while
providing type safety and value-based equality.

Value Objects:
- ClientId / ActionId: Validated identifiers of who is acting and on what
- RateLimitAlgorithm: Enumeration of supported algorithms (the config tag)
- TokenBucketConfig / SlidingWindowLogConfig: The two configuration variants
- TokenBucketState: Persisted state of one token bucket
- StorageKey: Deterministic storage key for a (client, action) pair

Design Principles:
- Immutability: All value objects are immutable after creation
- Validation: Business rules enforced at construction time
- Equality: Value-based equality for proper hashing and comparison
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Mapping, Union

from admission_control.core.exceptions import (
    InvalidIdentifierError,
    InvalidRateLimitConfigurationError,
    StorageDataError,
    UnsupportedAlgorithmError,
)


class RateLimitAlgorithm(str, Enum):
    """
    Enumeration of supported rate limiting algorithms.

    The value doubles as the discriminant tag of a serialized configuration.

    - TOKEN_BUCKET: Allows bursts up to capacity, refills continuously
    - SLIDING_WINDOW_LOG: Exact request log over a trailing window, never bursty
    """
    TOKEN_BUCKET = "token-bucket"
    SLIDING_WINDOW_LOG = "sliding-window-log"

    @property
    def supports_burst(self) -> bool:
        """Check if algorithm admits bursts above its steady rate"""
        return self is RateLimitAlgorithm.TOKEN_BUCKET


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ClientId:
    """The client making the request (user ID, IP address, API key, ...)."""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidIdentifierError("ClientId cannot be empty")

    @classmethod
    def create(cls, value: str) -> ClientId:
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ActionId:
    """The action being rate limited (e.g. "api-call", "login")."""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidIdentifierError("ActionId cannot be empty")

    @classmethod
    def create(cls, value: str) -> ActionId:
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class StorageKey:
    """
    Deterministic storage key for a (client, action) pair.

    Format: namespace:client:action

    This is the only join between persisted algorithm state and identifiers.
    The same pair always maps to the same key, and pairs that differ in one
    component never share one. Components are joined as-is, so identifiers
    containing `:` can collide across both components, e.g.
    ("10.0.0.1:8080", "login") and ("10.0.0.1", "8080:login").
    """

    client_id: ClientId
    action_id: ActionId
    namespace: str = "rate-limit"

    DEFAULT_NAMESPACE: ClassVar[str] = "rate-limit"

    def __str__(self) -> str:
        return f"{self.namespace}:{self.client_id}:{self.action_id}"


# ---------------------------------------------------------------------------
# Configuration variants
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True, slots=True)
class TokenBucketConfig:
    """
    Configuration for the token bucket algorithm.

    Allows bursts up to `capacity`, then refills at `refill_rate_per_second`
    tokens per second.

    Business Rules:
    - Capacity must be positive
    - Refill rate must be positive
    """

    capacity: float
    refill_rate_per_second: float

    def __post_init__(self):
        if not _is_number(self.capacity) or self.capacity <= 0:
            raise InvalidRateLimitConfigurationError("capacity must be positive")
        if not _is_number(self.refill_rate_per_second) or self.refill_rate_per_second <= 0:
            raise InvalidRateLimitConfigurationError("refill_rate_per_second must be positive")

    @property
    def algorithm(self) -> RateLimitAlgorithm:
        return RateLimitAlgorithm.TOKEN_BUCKET

    @property
    def seconds_to_full(self) -> float:
        """Time for an empty bucket to refill to capacity"""
        return self.capacity / self.refill_rate_per_second

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm": self.algorithm.value,
            "capacity": self.capacity,
            "refill_rate_per_second": self.refill_rate_per_second,
        }


@dataclass(frozen=True, slots=True)
class SlidingWindowLogConfig:
    """
    Configuration for the sliding window log algorithm.

    Admits at most `max_requests` within any trailing `window_seconds`.

    Business Rules:
    - max_requests must be a positive integer
    - window_seconds must be positive
    """

    max_requests: int
    window_seconds: float

    def __post_init__(self):
        if (
            not isinstance(self.max_requests, int)
            or isinstance(self.max_requests, bool)
            or self.max_requests <= 0
        ):
            raise InvalidRateLimitConfigurationError("max_requests must be a positive integer")
        if not _is_number(self.window_seconds) or self.window_seconds <= 0:
            raise InvalidRateLimitConfigurationError("window_seconds must be positive")

    @property
    def algorithm(self) -> RateLimitAlgorithm:
        return RateLimitAlgorithm.SLIDING_WINDOW_LOG

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm": self.algorithm.value,
            "max_requests": self.max_requests,
            "window_seconds": self.window_seconds,
        }


RateLimitConfig = Union[TokenBucketConfig, SlidingWindowLogConfig]


# Accepted spellings of each field when a configuration is read from a mapping
_FIELD_ALIASES = {
    "capacity": ("capacity",),
    "refill_rate_per_second": (
        "refill_rate_per_second",
        "refillRatePerSecond",
        "refillNumberOfTokensRatePerSecond",
    ),
    "max_requests": ("max_requests", "maxRequests"),
    "window_seconds": ("window_seconds", "windowSeconds", "timeWindowSizeInSeconds"),
}


def _read_field(data: Mapping[str, Any], name: str) -> Any:
    for alias in _FIELD_ALIASES[name]:
        if alias in data:
            return data[alias]
    raise InvalidRateLimitConfigurationError(f"Missing configuration field: {name}")


def parse_rate_limit_config(data: Mapping[str, Any]) -> RateLimitConfig:
    """
    Build a configuration from a serialized mapping.

    The mapping must carry an `algorithm` tag; the remaining fields may use
    snake_case or camelCase names.

    Raises:
        UnsupportedAlgorithmError: If the tag names no known algorithm
        InvalidRateLimitConfigurationError: If a field is missing or invalid
    """
    tag = data.get("algorithm")
    try:
        algorithm = RateLimitAlgorithm(tag)
    except ValueError as e:
        raise UnsupportedAlgorithmError(f"Unsupported rate limiting algorithm: {tag}") from e

    if algorithm is RateLimitAlgorithm.TOKEN_BUCKET:
        return TokenBucketConfig(
            capacity=_read_field(data, "capacity"),
            refill_rate_per_second=_read_field(data, "refill_rate_per_second"),
        )
    return SlidingWindowLogConfig(
        max_requests=_read_field(data, "max_requests"),
        window_seconds=_read_field(data, "window_seconds"),
    )


# ---------------------------------------------------------------------------
# Persisted state
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TokenBucketState:
    """
    Persisted state of one token bucket.

    `tokens` is a continuous quantity; fractional remainders carry over
    between checks. `last_refill` is an epoch timestamp in milliseconds.
    """

    tokens: float
    last_refill: float

    @classmethod
    def full(cls, config: TokenBucketConfig, now_ms: float) -> TokenBucketState:
        """State of a bucket seen for the first time"""
        return cls(tokens=config.capacity, last_refill=now_ms)

    def refilled(self, config: TokenBucketConfig, now_ms: float) -> TokenBucketState:
        """Return the state after continuous refill up to `now_ms`, capped at capacity."""
        elapsed_seconds = (now_ms - self.last_refill) / 1000
        tokens_to_add = elapsed_seconds * config.refill_rate_per_second
        return TokenBucketState(
            tokens=min(config.capacity, self.tokens + tokens_to_add),
            last_refill=now_ms,
        )

    def consume(self) -> TokenBucketState:
        return TokenBucketState(tokens=self.tokens - 1, last_refill=self.last_refill)

    @property
    def can_consume(self) -> bool:
        return self.tokens >= 1

    def to_json(self) -> str:
        return json.dumps({"tokens": self.tokens, "lastRefill": self.last_refill})

    @classmethod
    def from_json(cls, raw: str) -> TokenBucketState:
        """
        Decode persisted state.

        Raises:
            StorageDataError: If the stored value is not a valid bucket state
        """
        try:
            data = json.loads(raw)
            return cls(tokens=float(data["tokens"]), last_refill=float(data["lastRefill"]))
        except (TypeError, ValueError, KeyError) as e:
            raise StorageDataError(f"Corrupt token bucket state: {raw!r}") from e
