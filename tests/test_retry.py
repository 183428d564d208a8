"""Tests for RetryPolicy."""

import pytest

from blobframe.errors import FrameFormatError, NetworkError, RetryExhaustedError
from blobframe.retry import RetryPolicy


def failing_then(result, failures, error=None):
    """Build an operation that fails ``failures`` times then returns result."""
    calls = {"n": 0}

    def operation():
        calls["n"] += 1
        if calls["n"] <= failures:
            raise error or NetworkError(f"failure {calls['n']}")
        return result

    return operation, calls


class TestRetryPolicy:
    """Bounded retry with fixed delay."""

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 3
        assert policy.delay == 3.0

    def test_first_attempt_succeeds(self, fast_retry, sleeps):
        operation, calls = failing_then("ok", 0)
        assert fast_retry.execute(operation) == "ok"
        assert calls["n"] == 1
        assert sleeps == []

    def test_succeeds_on_last_attempt(self, fast_retry, sleeps):
        """Two failures then success: three calls, two delays."""
        operation, calls = failing_then("ok", 2)
        assert fast_retry.execute(operation) == "ok"
        assert calls["n"] == 3
        assert sleeps == [3.0, 3.0]

    def test_exhausted(self, fast_retry, sleeps):
        """No sleep after the final failure; last error is preserved."""
        operation, calls = failing_then("ok", 5)

        with pytest.raises(RetryExhaustedError) as exc_info:
            fast_retry.execute(operation, description="upload")

        err = exc_info.value
        assert calls["n"] == 3
        assert sleeps == [3.0, 3.0]
        assert err.attempts == 3
        assert isinstance(err.last_error, NetworkError)
        assert str(err.last_error) == "failure 3"
        assert err.__cause__ is err.last_error
        assert "upload failed after 3 attempts" in str(err)

    def test_single_attempt_never_sleeps(self, sleeps):
        policy = RetryPolicy(max_attempts=1, delay=5.0, sleep=sleeps.append)
        operation, calls = failing_then("ok", 1)

        with pytest.raises(RetryExhaustedError) as exc_info:
            policy.execute(operation)

        assert calls["n"] == 1
        assert sleeps == []
        assert exc_info.value.attempts == 1

    def test_non_retryable_propagates_immediately(self, sleeps):
        policy = RetryPolicy(
            max_attempts=3,
            delay=1.0,
            is_retryable=lambda e: isinstance(e, NetworkError),
            sleep=sleeps.append,
        )
        operation, calls = failing_then("ok", 3, error=FrameFormatError("bad frame"))

        with pytest.raises(FrameFormatError):
            policy.execute(operation)

        assert calls["n"] == 1
        assert sleeps == []

    def test_predicate_allows_retry(self, sleeps):
        policy = RetryPolicy(
            max_attempts=3,
            delay=0.5,
            is_retryable=lambda e: isinstance(e, NetworkError),
            sleep=sleeps.append,
        )
        operation, calls = failing_then("ok", 1)

        assert policy.execute(operation) == "ok"
        assert sleeps == [0.5]

    def test_any_exception_retried_by_default(self, fast_retry):
        operation, calls = failing_then("ok", 2, error=ValueError("boom"))
        assert fast_retry.execute(operation) == "ok"
        assert calls["n"] == 3

    @pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"delay": -1.0}])
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)

    def test_logs_attempts(self, fast_retry, caplog):
        operation, _ = failing_then("ok", 1)

        with caplog.at_level("INFO", logger="blobframe.retry"):
            fast_retry.execute(operation, description="store record")

        assert "Attempt 1/3: store record" in caplog.text
        assert "Attempt 2/3: store record" in caplog.text
        assert "retrying in 3.0 seconds" in caplog.text
