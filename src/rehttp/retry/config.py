r"""Immutable retry configuration with default normalization.

``RetryConfig`` fills every missing or degenerate field with a
documented default at construction time, so a built config is always
complete and can be shared between concurrent calls.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "RETRYABLE_ERRORS",
    "RETRY_STATUS_CODES",
    "RetryConfig",
]

from collections.abc import Iterable
from dataclasses import dataclass, field

from rehttp.backoff import BackoffStrategy, ExponentialBackoff

# Total physical attempts per logical call: 1 initial attempt + 3 retries
DEFAULT_MAX_ATTEMPTS = 4

# HTTP status codes that should trigger automatic retry
# 429: Too Many Requests - Rate limiting
# 500: Internal Server Error - Temporary server issue
# 502: Bad Gateway - Upstream server error
# 503: Service Unavailable - Server overloaded or down
# 504: Gateway Timeout - Upstream server timeout
RETRY_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# Lower-case substrings of error messages that indicate a transient
# network failure
RETRYABLE_ERRORS = frozenset(
    {"connection refused", "timeout", "temporary failure", "no such host"}
)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior.

    Args:
        max_attempts: Total number of physical attempts per logical call,
            including the first one. Values ``<= 0`` fall back to
            ``DEFAULT_MAX_ATTEMPTS``.
        retryable_status_codes: HTTP status codes that trigger a retry.
            Empty or ``None`` falls back to ``RETRY_STATUS_CODES``.
        retryable_errors: Substrings matched case-insensitively against
            error messages. Empty or ``None`` falls back to
            ``RETRYABLE_ERRORS``.
        backoff_strategy: Strategy computing the wait before each retry.
            ``None`` falls back to ``ExponentialBackoff()``.

    Example:
        ```pycon
        >>> from rehttp.retry import RetryConfig
        >>> config = RetryConfig()
        >>> config.max_attempts, config.max_retries
        (4, 3)
        >>> sorted(config.retryable_status_codes)
        [429, 500, 502, 503, 504]
        >>> RetryConfig(max_attempts=0).max_attempts
        4
        >>> sorted(RetryConfig(retryable_errors=["Reset By Peer"]).retryable_errors)
        ['reset by peer']

        ```
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retryable_status_codes: frozenset[int] = field(default_factory=lambda: RETRY_STATUS_CODES)
    retryable_errors: frozenset[str] = field(default_factory=lambda: RETRYABLE_ERRORS)
    backoff_strategy: BackoffStrategy = field(default_factory=ExponentialBackoff)

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            object.__setattr__(self, "max_attempts", DEFAULT_MAX_ATTEMPTS)
        object.__setattr__(
            self,
            "retryable_status_codes",
            _normalize_status_codes(self.retryable_status_codes),
        )
        object.__setattr__(
            self, "retryable_errors", _normalize_errors(self.retryable_errors)
        )
        if self.backoff_strategy is None:
            object.__setattr__(self, "backoff_strategy", ExponentialBackoff())

    @property
    def max_retries(self) -> int:
        """The number of retries after the first attempt."""
        return self.max_attempts - 1


def _normalize_status_codes(codes: Iterable[int] | None) -> frozenset[int]:
    if not codes:
        return RETRY_STATUS_CODES
    return frozenset(int(code) for code in codes)


def _normalize_errors(errors: Iterable[str] | None) -> frozenset[str]:
    if not errors:
        return RETRYABLE_ERRORS
    normalized = frozenset(error.lower() for error in errors if error)
    return normalized or RETRYABLE_ERRORS
