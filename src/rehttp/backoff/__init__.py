r"""Backoff strategies for retry delays.

This package provides the two backoff strategies supported by rehttp,
fixed and exponential, each with optional jitter.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_EXPONENTIAL_BASE_DELAY",
    "DEFAULT_EXPONENTIAL_MAX_DELAY",
    "DEFAULT_EXPONENTIAL_MULTIPLIER",
    "DEFAULT_FIXED_DELAY",
    "DEFAULT_JITTER_PERCENT",
    "BackoffStrategy",
    "ExponentialBackoff",
    "FixedBackoff",
    "apply_jitter",
]

from rehttp.backoff.base import BackoffStrategy
from rehttp.backoff.exponential import (
    DEFAULT_EXPONENTIAL_BASE_DELAY,
    DEFAULT_EXPONENTIAL_MAX_DELAY,
    DEFAULT_EXPONENTIAL_MULTIPLIER,
    ExponentialBackoff,
)
from rehttp.backoff.fixed import DEFAULT_FIXED_DELAY, FixedBackoff
from rehttp.backoff.jitter import DEFAULT_JITTER_PERCENT, apply_jitter
