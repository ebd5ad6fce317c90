import pytest

from admission_control.core.exceptions import (
    AdmissionControlError,
    InvalidIdentifierError,
    InvalidRateLimitConfigurationError,
    StorageConnectionError,
    StorageDataError,
    StorageTimeoutError,
    StorageUnavailableError,
    UnsupportedAlgorithmError,
)


def test_admission_control_error_default():
    # Arrange
    message = "Something went wrong"

    # Act
    error = AdmissionControlError(message)

    # Assert
    assert error.message == message
    assert error.code == "generic_error"
    assert str(error) == message


def test_admission_control_error_custom_code():
    error = AdmissionControlError("Something went wrong", "custom")
    assert error.code == "custom"


@pytest.mark.parametrize(
    "exc_class, code",
    [
        (InvalidIdentifierError, "invalid_identifier"),
        (InvalidRateLimitConfigurationError, "invalid_rate_limit_configuration"),
        (UnsupportedAlgorithmError, "unsupported_algorithm"),
        (StorageUnavailableError, "storage_unavailable"),
        (StorageConnectionError, "storage_connection_error"),
        (StorageTimeoutError, "storage_timeout"),
        (StorageDataError, "storage_data_error"),
    ],
)
def test_default_codes(exc_class, code):
    # Act
    error = exc_class("boom")

    # Assert
    assert error.code == code
    assert str(error) == "boom"
    assert isinstance(error, AdmissionControlError)


@pytest.mark.parametrize(
    "exc_class", [StorageConnectionError, StorageTimeoutError, StorageDataError]
)
def test_storage_errors_share_a_base(exc_class):
    with pytest.raises(StorageUnavailableError):
        raise exc_class("backend fault")


@pytest.mark.parametrize(
    "exc_class", [InvalidIdentifierError, InvalidRateLimitConfigurationError]
)
def test_caller_errors_are_value_errors(exc_class):
    assert issubclass(exc_class, ValueError)


@pytest.mark.parametrize(
    "exc_class", [InvalidIdentifierError, InvalidRateLimitConfigurationError, UnsupportedAlgorithmError]
)
def test_caller_errors_are_not_storage_errors(exc_class):
    assert not issubclass(exc_class, StorageUnavailableError)
