r"""Callback types and data structures for observability.

The callback system provides four lifecycle hooks, configured on
``ClientConfig``:

- on_request: Called before each physical attempt
- on_retry: Called before each backoff wait
- on_success: Called when a logical call returns a response
- on_failure: Called when a logical call raises

Example:
    ```pycon
    >>> from rehttp import ClientConfig
    >>> from rehttp.callbacks import RetryInfo
    >>> def log_retry(info: RetryInfo) -> None:
    ...     print(f"Retry {info.attempt}/{info.max_attempts} in {info.wait_time:.2f}s")
    ...
    >>> config = ClientConfig(on_retry=log_retry)

    ```
"""

from __future__ import annotations

__all__ = ["FailureInfo", "RequestInfo", "ResponseInfo", "RetryInfo"]

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rehttp.response import Response


@dataclass
class RequestInfo:
    """Information passed to the on_request callback.

    Attributes:
        url: The URL being requested.
        method: The HTTP method (e.g., "GET", "POST").
        attempt: The attempt about to be made (1-indexed).
        max_attempts: Total attempts allowed for the call.
    """

    url: str
    method: str
    attempt: int
    max_attempts: int


@dataclass
class RetryInfo:
    """Information passed to the on_retry callback.

    Attributes:
        url: The URL being requested.
        method: The HTTP method (e.g., "GET", "POST").
        attempt: The attempt about to be made (1-indexed). The first
            retry is attempt 2.
        max_attempts: Total attempts allowed for the call.
        wait_time: The backoff wait in seconds before this attempt.
        error: The error of the previous attempt, if any.
        status_code: The status code of the previous attempt, if any.
    """

    url: str
    method: str
    attempt: int
    max_attempts: int
    wait_time: float
    error: Exception | None
    status_code: int | None


@dataclass
class ResponseInfo:
    """Information passed to the on_success callback.

    Attributes:
        url: The URL that was requested.
        method: The HTTP method (e.g., "GET", "POST").
        attempt: The attempt that produced the response (1-indexed).
        max_attempts: Total attempts allowed for the call.
        response: The aggregated response returned to the caller.
        total_time: Seconds spent on the call including backoff.
    """

    url: str
    method: str
    attempt: int
    max_attempts: int
    response: Response
    total_time: float


@dataclass
class FailureInfo:
    """Information passed to the on_failure callback.

    Attributes:
        url: The URL that was requested.
        method: The HTTP method (e.g., "GET", "POST").
        attempt: The number of attempts made (1-indexed), ``0`` if the
            call was cancelled before its first attempt.
        max_attempts: Total attempts allowed for the call.
        error: The error raised to the caller.
        total_time: Seconds spent on the call including backoff.
    """

    url: str
    method: str
    attempt: int
    max_attempts: int
    error: Exception
    total_time: float
