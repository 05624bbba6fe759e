"""
Test suite for the tenacity-based retry helper.

Tests retry on listed exception types, immediate propagation of others
and re-raising the last error once attempts are exhausted.

System role: Verification of shared retry policy
"""

import pytest

from edugen.core.exceptions import CallTimeoutError, CircuitOpenError
from edugen.core.retry import call_with_retry


class Flaky:
    """Callable failing a fixed number of times before succeeding."""

    def __init__(self, failures: int, error: Exception) -> None:
        self.failures = failures
        self.error = error
        self.calls = 0

    async def __call__(self, value: str) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return value


class TestCallWithRetry:
    """Test suite for call_with_retry()."""

    @pytest.mark.asyncio
    async def test_should_retry_listed_errors_until_success(self) -> None:
        """Test transient failures are retried."""
        # Arrange
        flaky = Flaky(2, CallTimeoutError("slow"))

        # Act
        result = await call_with_retry(
            flaky, "done", operation="test", retry_on=(CallTimeoutError,),
            max_attempts=3, initial_wait=0, max_wait=0, jitter=0,
        )

        # Assert
        assert result == "done"
        assert flaky.calls == 3

    @pytest.mark.asyncio
    async def test_should_reraise_last_error_when_exhausted(self) -> None:
        """Test the original exception type surfaces after the final attempt."""
        # Arrange
        flaky = Flaky(5, CallTimeoutError("slow"))

        # Act & Assert
        with pytest.raises(CallTimeoutError):
            await call_with_retry(
                flaky, "done", operation="test", retry_on=(CallTimeoutError,),
                max_attempts=2, initial_wait=0, max_wait=0, jitter=0,
            )
        assert flaky.calls == 2

    @pytest.mark.asyncio
    async def test_should_not_retry_unlisted_errors(self) -> None:
        """Test an open circuit is never retried."""
        # Arrange
        flaky = Flaky(1, CircuitOpenError("model"))

        # Act & Assert
        with pytest.raises(CircuitOpenError):
            await call_with_retry(
                flaky, "done", operation="test", retry_on=(CallTimeoutError,),
                max_attempts=3, initial_wait=0, max_wait=0, jitter=0,
            )
        assert flaky.calls == 1
