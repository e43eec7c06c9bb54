r"""Abstract base class for backoff strategies."""

from __future__ import annotations

__all__ = ["BackoffStrategy"]

from abc import ABC, abstractmethod


class BackoffStrategy(ABC):
    """Abstract base class for backoff strategies.

    A backoff strategy determines how long to wait before retrying a
    failed request based on the attempt number. Implementations are
    stateless and can be shared between threads.
    """

    @abstractmethod
    def calculate(self, attempt: int) -> float:
        """Calculate the backoff delay for a given attempt.

        Args:
            attempt: The attempt number about to be made (0-indexed).
                The executor waits ``calculate(attempt)`` seconds before
                attempt ``attempt`` for every ``attempt > 0``.

        Returns:
            The delay in seconds. Never negative.
        """
