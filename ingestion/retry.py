"""
Retry policy for entity writes.

Errors derived from RetryableError or NonRetryableError are classified by
their type. Other failures are classified by matching the error text against
known transient database conditions. Anything else is re-raised on the first
attempt.
"""

import logging
import time
from typing import Any, Callable, Iterable, Optional

from core.exceptions import NonRetryableError, RetryableError

logger = logging.getLogger(__name__)

# Substrings (case-insensitive) of backend errors worth another attempt
TRANSIENT_ERROR_MARKERS = (
    "Duplicate entry",
    "Deadlock found",
    "Lock wait timeout exceeded",
    "Serialization failure",
    "try restarting transaction",
)


class RetryPolicy:
    """
    Bounded retry with linear backoff for transient persistence failures.

    Attributes:
        max_attempts: Total attempts including the first (default: 3)
        base_delay: Seconds; attempt ``n`` waits ``base_delay * n`` before the next try
        transient_markers: Error substrings that mark a failure as transient
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.2,
        transient_markers: Optional[Iterable[str]] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.transient_markers = tuple(
            transient_markers if transient_markers is not None else TRANSIENT_ERROR_MARKERS
        )
        self._sleep = sleep

    def is_transient(self, error: BaseException) -> bool:
        """Check if an error is marked retryable or its message indicates a retryable condition."""
        if isinstance(error, NonRetryableError):
            return False
        if isinstance(error, RetryableError):
            return True
        message = str(error).lower()
        return any(marker.lower() in message for marker in self.transient_markers)

    def run(self, operation: Callable[..., Any], *args: Any) -> bool:
        """
        Call ``operation(*args)`` until it succeeds or attempts run out.

        Returns:
            True on success, False when every attempt failed transiently

        Raises:
            Exception: The first non-transient error, unchanged
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                operation(*args)
                return True
            except Exception as e:
                if not self.is_transient(e):
                    raise

                if attempt >= self.max_attempts:
                    logger.error(
                        f"Giving up after {attempt} attempts on transient error: {e}"
                    )
                    break

                delay = self.base_delay * attempt
                logger.warning(
                    f"Transient error on attempt {attempt}/{self.max_attempts}, "
                    f"retrying in {delay:.2f}s: {e}"
                )
                self._sleep(delay)

        # TODO: decide whether exhausting retries should raise the last error
        # instead of reporting an unconfirmed write.
        return False
