r"""rehttp - HTTP client with middleware and automatic retry logic.

This package layers request middleware, base-URL resolution and
automatic retry-with-backoff on top of the blocking ``httpx`` client.

Key Features:
    - Automatic retries on retryable statuses (429, 500, 502, 503, 504)
      and on transport errors matching configurable signatures
    - Fixed and exponential backoff strategies with optional jitter
    - Request bodies buffered once and replayed identically on retry
    - Ordered middleware chain re-run on every attempt
    - Explicit cancellation tokens with deadlines, observed during
      backoff waits and in-flight exchanges
    - Callbacks and structured logging for observability

Example:
    ```pycon
    >>> from rehttp import ClientConfig, ResilientClient, RetryConfig
    >>> from rehttp.backoff import ExponentialBackoff
    >>> from rehttp.cancellation import CancellationToken
    >>> config = ClientConfig(
    ...     base_url="https://api.example.com",
    ...     retry=RetryConfig(max_attempts=5, backoff_strategy=ExponentialBackoff(jitter=True)),
    ... )
    >>> with ResilientClient(config) as client:  # doctest: +SKIP
    ...     with client.post("/items", b'{"name": "x"}', token=CancellationToken(timeout=5.0)) as response:
    ...         print(response.status_code, response.retry_attempts)
    ...

    ```
"""

from __future__ import annotations

__all__ = [
    "CancellationToken",
    "ClientConfig",
    "DeadlineExceededError",
    "ExponentialBackoff",
    "FixedBackoff",
    "HttpRequestError",
    "HttpxTransport",
    "MiddlewareError",
    "RequestCancelledError",
    "RequestExecutor",
    "ResilientClient",
    "Response",
    "RetryConfig",
    "RetryPolicy",
    "TransportError",
    "__version__",
]

from importlib.metadata import PackageNotFoundError, version

from rehttp.backoff import ExponentialBackoff, FixedBackoff
from rehttp.cancellation import CancellationToken
from rehttp.client import ResilientClient
from rehttp.config import ClientConfig
from rehttp.exceptions import (
    DeadlineExceededError,
    HttpRequestError,
    MiddlewareError,
    RequestCancelledError,
    TransportError,
)
from rehttp.response import Response
from rehttp.retry import RequestExecutor, RetryConfig, RetryPolicy
from rehttp.transport import HttpxTransport

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
