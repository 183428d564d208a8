"""Bounded retry with a fixed delay between attempts.

Remote writes are assumed to fail transiently under network conditions.
RetryPolicy absorbs those failures: it re-runs the operation up to
``max_attempts`` times, sleeping exactly ``delay`` seconds after each failed
attempt except the last. There is no backoff growth and no jitter, so the
worst-case extra wall-clock time is ``(max_attempts - 1) * delay``.
"""

from dataclasses import dataclass
from typing import Callable, Optional, TypeVar
import logging
import time

from .errors import RetryExhaustedError

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_DELAY = 3.0


@dataclass
class RetryPolicy:
    """Retry configuration and executor.

    max_attempts is the TOTAL number of tries, not the number of retries.
    So max_attempts=3 means: try, retry, retry (3 total).

    Attributes:
        max_attempts: Total attempts before giving up
        delay: Seconds to wait between a failed attempt and the next one
        is_retryable: Optional predicate; failures it rejects propagate at once.
            When None, every Exception is retried.
        sleep: Sleep function (injectable for tests)
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay: float = DEFAULT_DELAY
    is_retryable: Optional[Callable[[Exception], bool]] = None
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")

    def execute(self, operation: Callable[[], T], description: str = "operation") -> T:
        """Run operation, retrying failures up to the attempt budget.

        Args:
            operation: Zero-argument callable to attempt
            description: Label used in log messages and the exhaustion error

        Returns:
            The first successful result of operation

        Raises:
            RetryExhaustedError: All attempts failed; chained from the last failure
            Exception: A failure rejected by is_retryable, unchanged
        """
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            logger.info("Attempt %d/%d: %s", attempt, self.max_attempts, description)
            try:
                return operation()
            except Exception as e:
                if self.is_retryable is not None and not self.is_retryable(e):
                    logger.debug("%s failed with non-retryable error: %s", description, e)
                    raise
                last_error = e

                remaining = self.max_attempts - attempt
                if remaining > 0:
                    logger.warning(
                        "%s failed (%s), retrying in %s seconds... (%d attempts left)",
                        description, e, self.delay, remaining,
                    )
                    self.sleep(self.delay)

        logger.error(
            "%s failed after %d attempts; last error: %s",
            description, self.max_attempts, last_error,
        )
        raise RetryExhaustedError(self.max_attempts, last_error, description) from last_error
