r"""Configuration dataclass and defaults for ResilientClient.

``ClientConfig`` replaces a mutable builder: it is a frozen dataclass
whose ``__post_init__`` normalizes the base URL and the middleware
sequence, and whose ``merge``, ``with_retries`` and ``with_middleware``
methods return modified copies.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_TIMEOUT",
    "RETRYABLE_ERRORS",
    "RETRY_STATUS_CODES",
    "ClientConfig",
]

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from rehttp.retry.config import (
    DEFAULT_MAX_ATTEMPTS,
    RETRY_STATUS_CODES,
    RETRYABLE_ERRORS,
    RetryConfig,
)
from rehttp.retry.manager import CallbackConfig
from rehttp.transport import DEFAULT_TIMEOUT
from rehttp.url import normalize_base_url

if TYPE_CHECKING:
    from collections.abc import Callable

    from rehttp.callbacks import FailureInfo, RequestInfo, ResponseInfo, RetryInfo
    from rehttp.middleware import Middleware


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for a ResilientClient.

    Args:
        base_url: Base URL that relative paths are resolved against.
            Trailing slashes are stripped.
        middlewares: Middlewares run on every attempt, in order.
        retry: Retry configuration. ``None`` (the default) disables
            retries: every call makes exactly one attempt.
        timeout: Timeout in seconds of the transport created by the
            client. Must be > 0.
        on_request: Optional callback called before each attempt.
        on_retry: Optional callback called before each backoff wait.
        on_success: Optional callback called when a response is returned.
        on_failure: Optional callback called when a call raises.

    Raises:
        ValueError: If ``timeout`` is not positive.

    Example:
        ```pycon
        >>> from rehttp import ClientConfig
        >>> config = ClientConfig(base_url="https://api.example.com/")
        >>> config.base_url
        'https://api.example.com'
        >>> config.retry is None
        True
        >>> config.with_retries().retry.max_attempts
        4
        >>> config.merge(timeout=30.0).timeout
        30.0

        ```
    """

    base_url: str = ""
    middlewares: tuple[Middleware, ...] = ()
    retry: RetryConfig | None = None
    timeout: float = DEFAULT_TIMEOUT
    on_request: Callable[[RequestInfo], None] | None = None
    on_retry: Callable[[RetryInfo], None] | None = None
    on_success: Callable[[ResponseInfo], None] | None = None
    on_failure: Callable[[FailureInfo], None] | None = None

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            msg = f"timeout must be > 0, got {self.timeout}"
            raise ValueError(msg)
        object.__setattr__(self, "base_url", normalize_base_url(self.base_url))
        object.__setattr__(self, "middlewares", tuple(self.middlewares))

    @property
    def callbacks(self) -> CallbackConfig:
        """The lifecycle callbacks as a ``CallbackConfig``."""
        return CallbackConfig(
            on_request=self.on_request,
            on_retry=self.on_retry,
            on_success=self.on_success,
            on_failure=self.on_failure,
        )

    def merge(self, **overrides: Any) -> ClientConfig:
        """Create a new config with the given parameters overridden.

        Only non-None override values are applied.

        Example:
            ```pycon
            >>> from rehttp import ClientConfig
            >>> config = ClientConfig(timeout=5.0)
            >>> config.merge(timeout=None).timeout
            5.0

            ```
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def with_retries(self, retry: RetryConfig | None = None) -> ClientConfig:
        """Create a new config with retries enabled.

        Args:
            retry: The retry configuration. Defaults to ``RetryConfig()``.
        """
        return replace(self, retry=retry or RetryConfig())

    def with_middleware(self, middleware: Middleware) -> ClientConfig:
        """Create a new config with ``middleware`` appended to the chain."""
        return replace(self, middlewares=(*self.middlewares, middleware))
