"""Unit tests for bounded polling with a fixed delay."""

import pytest

from docling_ocr.resilience.polling import PollConfig, poll_until


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def make_check(results):
    """Return a check coroutine replaying `results`; exceptions are raised."""
    state = {"calls": 0}

    async def check():
        item = results[state["calls"]]
        state["calls"] += 1
        if isinstance(item, Exception):
            raise item
        return item

    return check, state


class TestPollUntilBasics:
    """Tests for terminal and exhausted polling."""

    @pytest.mark.asyncio
    async def test_returns_first_done_snapshot(self):
        """Test polling stops at the first accepted snapshot."""
        check, state = make_check(["pending", "pending", "done", "unused"])
        sleep = FakeSleep()

        result = await poll_until(
            check, lambda s: s == "done", PollConfig(max_attempts=10, interval_seconds=5.0), sleep=sleep
        )

        assert result == "done"
        assert state["calls"] == 3
        assert sleep.calls == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_immediate_success_does_not_sleep(self):
        """Test a done first snapshot returns without delay."""
        check, state = make_check(["done"])
        sleep = FakeSleep()

        result = await poll_until(check, lambda s: s == "done", PollConfig(), sleep=sleep)

        assert result == "done"
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_returns_none_when_budget_exhausted(self):
        """Test exhausting attempts yields None and no trailing delay."""
        check, state = make_check(["pending"] * 4)
        sleep = FakeSleep()

        result = await poll_until(
            check, lambda s: s == "done", PollConfig(max_attempts=4, interval_seconds=1.0), sleep=sleep
        )

        assert result is None
        assert state["calls"] == 4
        assert len(sleep.calls) == 3


class TestPollUntilErrors:
    """Tests for transient and fatal errors during checks."""

    @pytest.mark.asyncio
    async def test_retries_on_retryable_exception(self):
        """Test listed exceptions are swallowed and the check repeated."""
        check, state = make_check([ConnectionError("flaky"), "done"])
        sleep = FakeSleep()

        result = await poll_until(
            check,
            lambda s: s == "done",
            PollConfig(max_attempts=3, interval_seconds=2.0),
            retryable_exceptions=(ConnectionError,),
            sleep=sleep,
        )

        assert result == "done"
        assert state["calls"] == 2
        assert sleep.calls == [2.0]

    @pytest.mark.asyncio
    async def test_reraises_on_final_attempt(self):
        """Test a retryable error on the last attempt is raised."""
        check, state = make_check([ConnectionError("one"), ConnectionError("two")])

        with pytest.raises(ConnectionError) as exc_info:
            await poll_until(
                check,
                lambda s: s == "done",
                PollConfig(max_attempts=2, interval_seconds=0.0),
                retryable_exceptions=(ConnectionError,),
                sleep=FakeSleep(),
            )

        assert "two" in str(exc_info.value)
        assert state["calls"] == 2

    @pytest.mark.asyncio
    async def test_does_not_retry_other_exceptions(self):
        """Test unlisted exceptions propagate immediately."""
        check, state = make_check([ValueError("fatal"), "done"])

        with pytest.raises(ValueError):
            await poll_until(
                check,
                lambda s: s == "done",
                PollConfig(max_attempts=5),
                retryable_exceptions=(ConnectionError,),
                sleep=FakeSleep(),
            )

        assert state["calls"] == 1

    @pytest.mark.asyncio
    async def test_should_retry_filter_rejects(self):
        """Test should_retry can veto a retry for a listed exception type."""
        check, state = make_check([ConnectionError("permanent"), "done"])

        with pytest.raises(ConnectionError):
            await poll_until(
                check,
                lambda s: s == "done",
                PollConfig(max_attempts=5),
                retryable_exceptions=(ConnectionError,),
                should_retry=lambda e: "permanent" not in str(e),
                sleep=FakeSleep(),
            )

        assert state["calls"] == 1


class TestPollConfig:
    """Tests for polling budget validation."""

    @pytest.mark.parametrize("attempts", [0, -1])
    def test_rejects_non_positive_attempts(self, attempts):
        """Test a budget below one check is refused."""
        with pytest.raises(ValueError):
            PollConfig(max_attempts=attempts)

    def test_rejects_negative_interval(self):
        """Test a negative delay is refused."""
        with pytest.raises(ValueError):
            PollConfig(interval_seconds=-1.0)

    def test_single_attempt_checks_once(self):
        """Test the smallest budget is accepted."""
        assert PollConfig(max_attempts=1, interval_seconds=0.0).max_attempts == 1
