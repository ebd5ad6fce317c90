"""Unit tests for the sliding window log algorithm."""

import pytest

from admission_control.core.exceptions import StorageTimeoutError, UnsupportedAlgorithmError
from admission_control.domain.rate_limiting.algorithms import SlidingWindowLogAlgorithm
from admission_control.domain.rate_limiting.entities import AdmissionOutcome
from admission_control.domain.rate_limiting.value_objects import (
    ActionId,
    SlidingWindowLogConfig,
    TokenBucketConfig,
)

KEY = "rate-limit:user123:api-call"


@pytest.fixture
def algorithm(fake_clock):
    return SlidingWindowLogAlgorithm(clock=fake_clock)


class TestSlidingWindowAdmission:
    """Feature: Sliding window log rate limiting."""

    @pytest.mark.asyncio
    async def test_allows_requests_up_to_max(
        self, algorithm, storage, client_id, action_id, sliding_window_config
    ):
        results = [
            await algorithm.decide(client_id, action_id, sliding_window_config, storage)
            for _ in range(3)
        ]
        assert results == [True, True, True]

        assert await algorithm.decide(client_id, action_id, sliding_window_config, storage) is False

    @pytest.mark.asyncio
    async def test_allows_again_after_window_elapses(
        self, algorithm, storage, fake_clock, client_id, action_id, sliding_window_config
    ):
        for _ in range(3):
            await algorithm.decide(client_id, action_id, sliding_window_config, storage)
        assert await algorithm.decide(client_id, action_id, sliding_window_config, storage) is False

        fake_clock.advance(1.1)

        assert await algorithm.decide(client_id, action_id, sliding_window_config, storage) is True

    @pytest.mark.asyncio
    async def test_no_burst_across_adjacent_windows(
        self, algorithm, storage, fake_clock, client_id, action_id
    ):
        config = SlidingWindowLogConfig(max_requests=4, window_seconds=10)

        # A full quota late in the first ten seconds
        fake_clock.advance(9)
        for _ in range(4):
            assert await algorithm.decide(client_id, action_id, config, storage) is True

        # Just past where a fixed window would reset, the late burst still counts
        fake_clock.advance(1.5)
        assert await algorithm.decide(client_id, action_id, config, storage) is False

        fake_clock.advance(9)
        results = [await algorithm.decide(client_id, action_id, config, storage) for _ in range(5)]
        assert results == [True, True, True, True, False]

    @pytest.mark.asyncio
    async def test_entry_exactly_at_window_start_still_counts(
        self, algorithm, storage, fake_clock, client_id, action_id
    ):
        config = SlidingWindowLogConfig(max_requests=1, window_seconds=2)
        assert await algorithm.decide(client_id, action_id, config, storage) is True

        # Window is closed on both ends: at now - 2s the first entry is still inside
        fake_clock.advance(2)
        assert await algorithm.decide(client_id, action_id, config, storage) is False

        fake_clock.advance(0.5)
        assert await algorithm.decide(client_id, action_id, config, storage) is True

    @pytest.mark.asyncio
    async def test_distinct_actions_do_not_share_logs(
        self, algorithm, storage, client_id, sliding_window_config
    ):
        login = ActionId.create("login")
        upload = ActionId.create("upload")
        for _ in range(3):
            await algorithm.decide(client_id, login, sliding_window_config, storage)

        assert await algorithm.decide(client_id, login, sliding_window_config, storage) is False
        assert await algorithm.decide(client_id, upload, sliding_window_config, storage) is True


class TestSlidingWindowLog:
    """Tests for the log entries the algorithm writes."""

    @pytest.mark.asyncio
    async def test_requests_in_same_millisecond_get_unique_members(
        self, algorithm, storage, client_id, action_id, mocker
    ):
        config = SlidingWindowLogConfig(max_requests=10, window_seconds=60)
        add_spy = mocker.spy(storage, "add_to_sorted_set")

        for _ in range(5):
            await algorithm.decide(client_id, action_id, config, storage)

        members = {call.args[2] for call in add_spy.call_args_list}
        scores = {call.args[1] for call in add_spy.call_args_list}
        assert len(members) == 5
        assert len(scores) == 1
        assert await storage.count_in_range(KEY, 0, float("inf")) == 5

    @pytest.mark.asyncio
    async def test_denied_requests_are_not_logged(
        self, algorithm, storage, client_id, action_id, sliding_window_config
    ):
        for _ in range(6):
            await algorithm.decide(client_id, action_id, sliding_window_config, storage)

        assert await storage.count_in_range(KEY, 0, float("inf")) == 3

    @pytest.mark.asyncio
    async def test_old_entries_are_pruned(
        self, algorithm, storage, fake_clock, client_id, action_id
    ):
        config = SlidingWindowLogConfig(max_requests=5, window_seconds=1)
        for _ in range(3):
            await algorithm.decide(client_id, action_id, config, storage)

        fake_clock.advance(0.5)
        await algorithm.decide(client_id, action_id, config, storage)
        fake_clock.advance(0.75)
        await algorithm.decide(client_id, action_id, config, storage)

        assert await storage.count_in_range(KEY, 0, float("inf")) == 2

    def test_member_starts_with_timestamp(self):
        member = SlidingWindowLogAlgorithm.request_member(1_700_000_000_123.0)
        assert member.startswith("1700000000123-")


class TestSlidingWindowFailOpen:
    """Storage errors must admit the request."""

    @pytest.mark.asyncio
    async def test_count_failure_fails_open(
        self, algorithm, storage, client_id, action_id, sliding_window_config, mocker
    ):
        mocker.patch.object(
            storage, "count_in_range", side_effect=StorageTimeoutError("timed out")
        )

        decision = await algorithm.evaluate(client_id, action_id, sliding_window_config, storage)

        assert decision.allowed is True
        assert decision.outcome is AdmissionOutcome.FAIL_OPEN

    @pytest.mark.asyncio
    async def test_insert_failure_fails_open(
        self, algorithm, storage, client_id, action_id, sliding_window_config, mocker
    ):
        mocker.patch.object(
            storage, "add_to_sorted_set", side_effect=StorageTimeoutError("timed out")
        )

        assert await algorithm.decide(client_id, action_id, sliding_window_config, storage) is True

    @pytest.mark.asyncio
    async def test_prune_failure_on_denial_fails_open(
        self, algorithm, storage, client_id, action_id, sliding_window_config, mocker
    ):
        for _ in range(3):
            await algorithm.decide(client_id, action_id, sliding_window_config, storage)
        mocker.patch.object(
            storage, "remove_expired", side_effect=StorageTimeoutError("timed out")
        )

        assert await algorithm.decide(client_id, action_id, sliding_window_config, storage) is True


class TestSlidingWindowConfigMismatch:

    @pytest.mark.asyncio
    async def test_rejects_token_bucket_config(self, algorithm, storage, client_id, action_id):
        config = TokenBucketConfig(capacity=5, refill_rate_per_second=1)
        with pytest.raises(UnsupportedAlgorithmError, match="requires sliding-window-log config"):
            await algorithm.decide(client_id, action_id, config, storage)
