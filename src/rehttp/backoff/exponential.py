r"""Exponential backoff strategy."""

from __future__ import annotations

__all__ = [
    "DEFAULT_EXPONENTIAL_BASE_DELAY",
    "DEFAULT_EXPONENTIAL_MAX_DELAY",
    "DEFAULT_EXPONENTIAL_MULTIPLIER",
    "ExponentialBackoff",
]

from rehttp.backoff.base import BackoffStrategy
from rehttp.backoff.jitter import apply_jitter

# Fallbacks for non-positive constructor values
DEFAULT_EXPONENTIAL_BASE_DELAY = 0.1
DEFAULT_EXPONENTIAL_MULTIPLIER = 2.0
DEFAULT_EXPONENTIAL_MAX_DELAY = 10.0


class ExponentialBackoff(BackoffStrategy):
    """Exponential backoff strategy.

    Calculates delay as ``base_delay * multiplier ** attempt``, capped at
    ``max_delay``. With ``attempt=0`` the delay is ``base_delay``.

    Args:
        base_delay: The base delay in seconds (default: 0.1).
        multiplier: The growth factor between consecutive attempts
            (default: 2.0).
        max_delay: The maximum delay in seconds (default: 10.0).
        jitter: If ``True``, each delay is perturbed by up to +/-25%
            after the cap is applied.

    Non-positive ``base_delay``, ``multiplier`` or ``max_delay`` values
    fall back to their defaults.

    Example:
        ```pycon
        >>> from rehttp.backoff import ExponentialBackoff
        >>> backoff = ExponentialBackoff(base_delay=0.5, multiplier=2.0, max_delay=3.0)
        >>> backoff.calculate(0)
        0.5
        >>> backoff.calculate(1)
        1.0
        >>> backoff.calculate(2)
        2.0
        >>> backoff.calculate(3)  # Would be 4.0, but capped
        3.0

        ```
    """

    def __init__(
        self,
        base_delay: float = DEFAULT_EXPONENTIAL_BASE_DELAY,
        multiplier: float = DEFAULT_EXPONENTIAL_MULTIPLIER,
        max_delay: float = DEFAULT_EXPONENTIAL_MAX_DELAY,
        jitter: bool = False,
    ) -> None:
        self.base_delay = base_delay if base_delay > 0 else DEFAULT_EXPONENTIAL_BASE_DELAY
        self.multiplier = multiplier if multiplier > 0 else DEFAULT_EXPONENTIAL_MULTIPLIER
        self.max_delay = max_delay if max_delay > 0 else DEFAULT_EXPONENTIAL_MAX_DELAY
        self.jitter = jitter

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(base_delay={self.base_delay}, "
            f"multiplier={self.multiplier}, max_delay={self.max_delay}, jitter={self.jitter})"
        )

    def calculate(self, attempt: int) -> float:
        """Calculate exponential backoff delay.

        Args:
            attempt: The attempt number (0-indexed).

        Returns:
            ``min(base_delay * multiplier ** attempt, max_delay)``,
            jittered if enabled.
        """
        try:
            delay = min(self.base_delay * self.multiplier**attempt, self.max_delay)
        except OverflowError:
            delay = self.max_delay
        if self.jitter:
            return apply_jitter(delay, fallback=self.base_delay)
        return delay
