r"""Fixed backoff strategy."""

from __future__ import annotations

__all__ = ["DEFAULT_FIXED_DELAY", "FixedBackoff"]

from rehttp.backoff.base import BackoffStrategy
from rehttp.backoff.jitter import apply_jitter

# Delay used when a non-positive delay is given
DEFAULT_FIXED_DELAY = 1.0


class FixedBackoff(BackoffStrategy):
    """Fixed backoff strategy.

    Returns the same delay for every retry attempt, regardless of the
    attempt number.

    Args:
        delay: The delay in seconds between attempts. Values ``<= 0``
            fall back to ``DEFAULT_FIXED_DELAY``.
        jitter: If ``True``, each delay is perturbed by up to +/-25%.

    Example:
        ```pycon
        >>> from rehttp.backoff import FixedBackoff
        >>> backoff = FixedBackoff(delay=2.5)
        >>> backoff.calculate(1)
        2.5
        >>> backoff.calculate(10)
        2.5
        >>> FixedBackoff(delay=0).delay
        1.0

        ```
    """

    def __init__(self, delay: float = DEFAULT_FIXED_DELAY, jitter: bool = False) -> None:
        self.delay = delay if delay > 0 else DEFAULT_FIXED_DELAY
        self.jitter = jitter

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(delay={self.delay}, jitter={self.jitter})"

    def calculate(self, attempt: int) -> float:  # noqa: ARG002
        """Calculate the fixed backoff delay.

        Args:
            attempt: The attempt number (unused).

        Returns:
            The configured delay, jittered if enabled.
        """
        if self.jitter:
            return apply_jitter(self.delay, fallback=self.delay)
        return self.delay
