"""Rate Limiting Domain Entities

Entities representing the outcome of an admission check.

Entities:
- AdmissionDecision: Result of evaluating one request against one algorithm

The decision is the explicit result type the algorithms produce. Storage
failures are folded into it as a `FAIL_OPEN` outcome rather than escaping
as exceptions, so the availability policy is visible in the type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .value_objects import RateLimitAlgorithm


class AdmissionOutcome(str, Enum):
    """Why a decision came out the way it did."""

    ADMITTED = "admitted"
    DENIED = "denied"
    FAIL_OPEN = "fail_open"


@dataclass
class AdmissionDecision:
    """Entity representing the result of an admission check.

    Business Rules:
    - Only a DENIED outcome blocks the request
    - A FAIL_OPEN outcome is always allowed and records the storage error
    """

    allowed: bool
    outcome: AdmissionOutcome
    algorithm: RateLimitAlgorithm
    key: str
    error_details: Optional[str] = None
    decided_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.outcome is AdmissionOutcome.DENIED and self.allowed:
            raise ValueError("A denied decision cannot be allowed")
        if self.outcome is not AdmissionOutcome.DENIED and not self.allowed:
            raise ValueError(f"A {self.outcome.value} decision must be allowed")

    def __bool__(self) -> bool:
        return self.allowed

    @property
    def is_fallback(self) -> bool:
        return self.outcome is AdmissionOutcome.FAIL_OPEN

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    @classmethod
    def allowed_result(
        cls,
        key: str,
        algorithm: RateLimitAlgorithm,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AdmissionDecision:
        """Create a decision admitting the request"""
        return cls(
            allowed=True,
            outcome=AdmissionOutcome.ADMITTED,
            algorithm=algorithm,
            key=key,
            metadata=metadata or {},
        )

    @classmethod
    def denied_result(
        cls,
        key: str,
        algorithm: RateLimitAlgorithm,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AdmissionDecision:
        """Create a decision blocking the request"""
        return cls(
            allowed=False,
            outcome=AdmissionOutcome.DENIED,
            algorithm=algorithm,
            key=key,
            metadata=metadata or {},
        )

    @classmethod
    def fallback_result(
        cls,
        key: str,
        algorithm: RateLimitAlgorithm,
        error_details: str,
    ) -> AdmissionDecision:
        """Create a fail-open decision after a storage error.

        The request is admitted: availability of the protected resource wins
        over strict enforcement while the rate limit store is degraded.
        """
        return cls(
            allowed=True,
            outcome=AdmissionOutcome.FAIL_OPEN,
            algorithm=algorithm,
            key=key,
            error_details=error_details,
            metadata={"fallback": True},
        )
