from __future__ import annotations

"""Structured exception hierarchy for the admission-control core.

Every exception carries a machine-readable `code` for programmatic handling
and a human-readable `message` for logging. The hierarchy separates the two
kinds of failure the core knows about:

- Caller errors (invalid identifiers, invalid or unsupported configurations).
  These propagate to the caller and are never turned into a decision.
- Storage errors (backend unreachable, timed out, corrupt data). These are
  absorbed by the rate limiting algorithms, which admit the request instead.
"""

from typing import Final

__all__: Final = [
    "AdmissionControlError",
    "InvalidIdentifierError",
    "InvalidRateLimitConfigurationError",
    "UnsupportedAlgorithmError",
    "StorageUnavailableError",
    "StorageConnectionError",
    "StorageTimeoutError",
    "StorageDataError",
]


class AdmissionControlError(Exception):
    """Base exception class for all errors raised by the admission-control core.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Caller errors (propagate to the caller)
# ---------------------------------------------------------------------------


class InvalidIdentifierError(AdmissionControlError, ValueError):
    """Raised when a client or action identifier is empty or whitespace-only.

    Raised before any algorithm runs. Retrying with the same input cannot
    succeed; the caller must supply a valid identifier.
    """

    def __init__(self, message: str, code: str = "invalid_identifier"):
        super().__init__(message, code)


class InvalidRateLimitConfigurationError(AdmissionControlError, ValueError):
    """Raised when a rate limit configuration holds non-positive limits."""

    def __init__(self, message: str, code: str = "invalid_rate_limit_configuration"):
        super().__init__(message, code)


class UnsupportedAlgorithmError(AdmissionControlError):
    """Raised when a configuration names an algorithm the core does not know.

    Indicates a caller or configuration bug, typically a configuration that
    crossed a serialization boundary with an unknown `algorithm` tag.
    """

    def __init__(self, message: str, code: str = "unsupported_algorithm"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Storage errors (absorbed by the algorithms, converted to "allow")
# ---------------------------------------------------------------------------


class StorageUnavailableError(AdmissionControlError):
    """Base exception for rate limit storage backend faults."""

    def __init__(self, message: str, code: str = "storage_unavailable"):
        super().__init__(message, code)


class StorageConnectionError(StorageUnavailableError):
    """Raised when the storage backend cannot be reached."""

    def __init__(self, message: str, code: str = "storage_connection_error"):
        super().__init__(message, code)


class StorageTimeoutError(StorageUnavailableError):
    """Raised when a storage operation times out."""

    def __init__(self, message: str, code: str = "storage_timeout"):
        super().__init__(message, code)


class StorageDataError(StorageUnavailableError):
    """Raised when persisted rate limit state cannot be decoded."""

    def __init__(self, message: str, code: str = "storage_data_error"):
        super().__init__(message, code)
