"""Admission-control settings and configuration management.

Loads settings from environment variables and `.env` files, validates them,
and exposes the default rate limit configuration used when a caller does not
supply one explicitly.

Environment variables use the `RATE_LIMITING_` prefix, e.g.
`RATE_LIMITING_STORAGE_BACKEND=redis` or
`RATE_LIMITING_TOKEN_BUCKET_CAPACITY=20`.
"""

from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from admission_control.domain.rate_limiting.value_objects import (
    RateLimitAlgorithm,
    RateLimitConfig,
    SlidingWindowLogConfig,
    TokenBucketConfig,
)


class AdmissionControlSettings(BaseSettings):
    """Configuration for the rate limiting admission-control core.

    Security Note:
        - REDIS_URL should use `rediss://` with credentials when the store is
          reached over an untrusted network. The password is never logged.
    """

    # Storage
    STORAGE_BACKEND: Literal["memory", "redis"] = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_PASSWORD: SecretStr = SecretStr("")
    REDIS_SOCKET_TIMEOUT: float = Field(default=0.5, gt=0)
    KEY_NAMESPACE: str = "rate-limit"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Default rate limit configuration
    DEFAULT_ALGORITHM: RateLimitAlgorithm = RateLimitAlgorithm.TOKEN_BUCKET
    TOKEN_BUCKET_CAPACITY: float = Field(default=10, gt=0)
    TOKEN_BUCKET_REFILL_RATE: float = Field(default=1, gt=0)
    SLIDING_WINDOW_MAX_REQUESTS: int = Field(default=10, gt=0)
    SLIDING_WINDOW_SECONDS: float = Field(default=60, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RATE_LIMITING_",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("KEY_NAMESPACE")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        """Reject blank namespaces, which would let keys collide across deployments."""
        if not v or not v.strip():
            raise ValueError("KEY_NAMESPACE cannot be empty")
        return v.strip()

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    def default_rate_limit_config(self) -> RateLimitConfig:
        """Build the rate limit configuration selected by DEFAULT_ALGORITHM."""
        if self.DEFAULT_ALGORITHM is RateLimitAlgorithm.SLIDING_WINDOW_LOG:
            return SlidingWindowLogConfig(
                max_requests=self.SLIDING_WINDOW_MAX_REQUESTS,
                window_seconds=self.SLIDING_WINDOW_SECONDS,
            )
        return TokenBucketConfig(
            capacity=self.TOKEN_BUCKET_CAPACITY,
            refill_rate_per_second=self.TOKEN_BUCKET_REFILL_RATE,
        )
