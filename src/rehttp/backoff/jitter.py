r"""Jitter helper shared by the backoff strategies."""

from __future__ import annotations

__all__ = ["DEFAULT_JITTER_PERCENT", "apply_jitter"]

import random

# Jitter window as a fraction of the delay: offsets are drawn from
# [-25%, +25%] of the pre-jitter value
DEFAULT_JITTER_PERCENT = 0.25


def apply_jitter(delay: float, fallback: float) -> float:
    """Perturb a delay by a uniformly random offset.

    The offset is re-sampled on every call and lies in
    ``[-DEFAULT_JITTER_PERCENT * delay, +DEFAULT_JITTER_PERCENT * delay]``.

    Args:
        delay: The pre-jitter delay in seconds.
        fallback: The value returned if the jittered delay would be
            negative. Strategies pass their un-jittered base delay.

    Returns:
        The jittered delay in seconds.

    Example:
        ```pycon
        >>> from rehttp.backoff.jitter import apply_jitter
        >>> 0.75 <= apply_jitter(1.0, fallback=1.0) <= 1.25
        True

        ```
    """
    window = delay * DEFAULT_JITTER_PERCENT
    jittered = delay + random.uniform(-window, window)  # noqa: S311
    if jittered < 0:
        return fallback
    return jittered
