r"""Retry decision logic for responses and errors.

This module provides the ``RetryPolicy`` class that decides, from a
completed exchange or a failed attempt, whether another attempt is
warranted. A policy built without configuration disables retries.
"""

from __future__ import annotations

__all__ = ["RetryPolicy"]

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rehttp.retry.config import RetryConfig

logger: logging.Logger = logging.getLogger(__name__)


class RetryPolicy:
    """Decides whether a request should be retried.

    The status check and the error check are independent; either one
    authorizes another attempt, subject to ``max_attempts``.

    Args:
        config: The retry configuration, or ``None`` to disable retries.

    Example:
        ```pycon
        >>> from rehttp.retry import RetryConfig, RetryPolicy
        >>> policy = RetryPolicy(RetryConfig())
        >>> policy.should_retry_response(503)
        True
        >>> policy.should_retry_response(404)
        False
        >>> policy.should_retry_error(ConnectionError("Connection refused"))
        True
        >>> RetryPolicy(None).max_attempts
        1

        ```
    """

    def __init__(self, config: RetryConfig | None) -> None:
        self.config = config

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(config={self.config!r})"

    @property
    def enabled(self) -> bool:
        """``True`` if a retry configuration is present."""
        return self.config is not None

    @property
    def max_attempts(self) -> int:
        """Total physical attempts allowed per logical call."""
        if self.config is None:
            return 1
        return self.config.max_attempts

    def should_retry_response(self, status_code: int) -> bool:
        """Determine if a response status should trigger a retry.

        Args:
            status_code: The HTTP status code of the response.

        Returns:
            ``True`` if the status is in the retryable set.
        """
        if self.config is None:
            return False
        return status_code in self.config.retryable_status_codes

    def should_retry_error(self, error: BaseException | None) -> bool:
        """Determine if an attempt error should trigger a retry.

        Args:
            error: The error raised by the attempt, if any.

        Returns:
            ``True`` if the lower-cased error message contains one of the
            configured retryable signatures.
        """
        if self.config is None or error is None:
            return False
        message = str(error).lower()
        for signature in self.config.retryable_errors:
            if signature in message:
                logger.debug(f"Error matches retryable signature {signature!r}: {error}")
                return True
        return False

    def delay(self, attempt: int) -> float:
        """Compute the backoff wait before ``attempt``.

        Args:
            attempt: The attempt about to be made (0-indexed).

        Returns:
            The delay in seconds, ``0.0`` if retries are disabled.
        """
        if self.config is None:
            return 0.0
        return self.config.backoff_strategy.calculate(attempt)
