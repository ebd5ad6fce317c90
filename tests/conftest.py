import pytest

from admission_control.domain.rate_limiting.services import CheckRateLimitService
from admission_control.domain.rate_limiting.value_objects import (
    ActionId,
    ClientId,
    SlidingWindowLogConfig,
    TokenBucketConfig,
)
from admission_control.infrastructure.storage.in_memory import InMemoryRateLimitStorage


class FakeClock:
    """Manually advanced time source, in seconds since the epoch."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def storage(fake_clock):
    """In-memory storage sharing the fake clock, so expiry follows test time."""
    return InMemoryRateLimitStorage(clock=fake_clock)


@pytest.fixture
def rate_limiter(storage, fake_clock):
    return CheckRateLimitService(storage, clock=fake_clock)


@pytest.fixture
def client_id():
    return ClientId.create("user123")


@pytest.fixture
def action_id():
    return ActionId.create("api-call")


@pytest.fixture
def token_bucket_config():
    """5 requests of burst, 1 token per second."""
    return TokenBucketConfig(capacity=5, refill_rate_per_second=1)


@pytest.fixture
def sliding_window_config():
    """3 requests per 1 second window."""
    return SlidingWindowLogConfig(max_requests=3, window_seconds=1)
