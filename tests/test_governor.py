"""Tests for RequestGovernor: fixed-window quotas and deadlines."""

import asyncio

import pytest

from core.errors import RateLimitExceeded, RequestTimeout
from core.governor import RequestGovernor
from core.models import RateLimit


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class TestCheckLimit:
    """Fixed-window admission."""

    def test_two_per_second_scenario(self, clock):
        """t=0, 100, 200 ms → admit, admit, reject; t=1100 ms → admit."""
        governor = RequestGovernor([RateLimit(2, 1.0)], clock=clock)

        assert governor.check_limit("op") is True
        clock.now = 0.1
        assert governor.check_limit("op") is True
        clock.now = 0.2
        with pytest.raises(RateLimitExceeded):
            governor.check_limit("op")

        clock.now = 1.1
        assert governor.check_limit("op") is True

    def test_rejection_message_names_category_and_limit(self, clock):
        governor = RequestGovernor([RateLimit(1, 1.0, label="1/1s")], clock=clock)
        governor.check_limit("search")

        with pytest.raises(RateLimitExceeded) as excinfo:
            governor.check_limit("search")

        assert excinfo.value.category == "search"
        assert excinfo.value.retryable is True
        assert str(excinfo.value) == (
            "Rate limit exceeded for search (1/1s). Please try again in a moment."
        )

    def test_multiple_granularities_sixth_call_rejected(self, clock):
        governor = RequestGovernor([RateLimit(5, 1.0), RateLimit(80, 60.0)], clock=clock)

        for _ in range(5):
            governor.check_limit("slack")
        with pytest.raises(RateLimitExceeded):
            governor.check_limit("slack")

    def test_longer_window_still_binds_after_short_one_resets(self, clock):
        governor = RequestGovernor(
            [RateLimit(5, 1.0, label="5/1s"), RateLimit(8, 60.0, label="8/60s")],
            clock=clock,
        )
        for _ in range(5):
            governor.check_limit("slack")
        clock.advance(1.5)
        for _ in range(3):
            governor.check_limit("slack")

        with pytest.raises(RateLimitExceeded) as excinfo:
            governor.check_limit("slack")
        assert excinfo.value.limit_label == "8/60s"

    def test_rejected_call_does_not_consume_quota(self, clock):
        governor = RequestGovernor(
            [RateLimit(1, 1.0, label="1/1s"), RateLimit(10, 60.0, label="10/60s")],
            clock=clock,
        )
        governor.check_limit("op")
        for _ in range(3):
            with pytest.raises(RateLimitExceeded):
                governor.check_limit("op")

        assert governor.snapshot() == {"op": {"1/1s": 1, "10/60s": 1}}

    def test_admitted_calls_never_exceed_quota_within_window(self, clock):
        governor = RequestGovernor([RateLimit(3, 10.0)], clock=clock)
        admitted = 0
        for _ in range(20):
            try:
                governor.check_limit("op")
                admitted += 1
            except RateLimitExceeded:
                pass
            clock.advance(0.4)

        assert admitted == 3

    def test_full_quota_after_window_elapses(self, clock):
        governor = RequestGovernor([RateLimit(3, 1.0)], clock=clock)
        for _ in range(3):
            governor.check_limit("op")

        clock.advance(1.01)
        for _ in range(3):
            assert governor.check_limit("op") is True

    def test_window_boundary_is_exclusive(self, clock):
        """Exactly `window` seconds later the old window is still open."""
        governor = RequestGovernor([RateLimit(1, 1.0)], clock=clock)
        governor.check_limit("op")

        clock.now = 1.0
        with pytest.raises(RateLimitExceeded):
            governor.check_limit("op")

    def test_categories_are_independent(self, clock):
        governor = RequestGovernor([RateLimit(1, 1.0)], clock=clock)
        governor.check_limit("list_events")

        assert governor.check_limit("create_event") is True
        with pytest.raises(RateLimitExceeded):
            governor.check_limit("list_events")

    def test_peek_reads_without_touching_windows(self, clock):
        governor = RequestGovernor([RateLimit(2, 1.0, label="2/1s")], clock=clock)
        governor.check_limit("op")

        assert governor.peek("op") == {"2/1s": 1}
        assert governor.peek("other") == {}
        assert "other" not in governor.snapshot()

    def test_snapshot_starts_empty(self, clock):
        assert RequestGovernor([RateLimit(1, 1.0)], clock=clock).snapshot() == {}

    def test_requires_at_least_one_limit(self):
        with pytest.raises(ValueError):
            RequestGovernor([])


class TestWithTimeout:
    """Bounded execution."""

    @pytest.mark.asyncio
    async def test_fast_operation_returns_its_value(self):
        governor = RequestGovernor([RateLimit(1, 1.0)], timeout_ms=15000)

        async def immediate():
            return {"ok": True}

        assert await governor.with_timeout(immediate) == {"ok": True}

    @pytest.mark.asyncio
    async def test_accepts_a_ready_awaitable(self):
        governor = RequestGovernor([RateLimit(1, 1.0)])

        async def immediate():
            return 42

        assert await governor.with_timeout(immediate(), 1000) == 42

    @pytest.mark.asyncio
    async def test_slow_operation_times_out_and_is_cancelled(self):
        governor = RequestGovernor([RateLimit(1, 1.0)])
        state = {"cancelled": False, "finished": False}

        async def slow():
            try:
                await asyncio.sleep(5)
                state["finished"] = True
            except asyncio.CancelledError:
                state["cancelled"] = True
                raise

        with pytest.raises(RequestTimeout) as excinfo:
            await governor.with_timeout(slow, 50)

        assert str(excinfo.value) == "Operation timed out after 50ms"
        assert excinfo.value.retryable is True
        assert state == {"cancelled": True, "finished": False}

    @pytest.mark.asyncio
    async def test_operation_error_propagates_unchanged(self):
        governor = RequestGovernor([RateLimit(1, 1.0)])

        async def broken():
            raise KeyError("boom")

        with pytest.raises(KeyError):
            await governor.with_timeout(broken, 1000)

    @pytest.mark.asyncio
    async def test_no_pending_tasks_left_after_fast_operation(self):
        governor = RequestGovernor([RateLimit(1, 1.0)])

        async def immediate():
            return "done"

        before = len(asyncio.all_tasks())
        await governor.with_timeout(immediate, 15000)
        assert len(asyncio.all_tasks()) == before

    @pytest.mark.asyncio
    async def test_default_timeout_comes_from_constructor(self):
        governor = RequestGovernor([RateLimit(1, 1.0)], timeout_ms=30)

        with pytest.raises(RequestTimeout) as excinfo:
            await governor.with_timeout(lambda: asyncio.sleep(5))
        assert excinfo.value.timeout_ms == 30


class TestGoverned:
    @pytest.mark.asyncio
    async def test_admits_then_runs(self, clock):
        governor = RequestGovernor([RateLimit(1, 1.0)], clock=clock)

        async def op():
            return "value"

        assert await governor.governed("op", op) == "value"

    @pytest.mark.asyncio
    async def test_rejected_call_never_starts_operation(self, clock):
        governor = RequestGovernor([RateLimit(1, 1.0)], clock=clock)
        calls = []

        async def op():
            calls.append(1)
            return "value"

        await governor.governed("op", op)
        with pytest.raises(RateLimitExceeded):
            await governor.governed("op", op)
        assert calls == [1]
