r"""Exception types raised by rehttp.

All errors surfaced by a logical call derive from ``HttpRequestError`` so
callers can catch a single type, and the subclasses let them tell a
middleware abort, a transport failure, and a cancellation apart.
"""

from __future__ import annotations

__all__ = [
    "DeadlineExceededError",
    "HttpRequestError",
    "MiddlewareError",
    "RequestCancelledError",
    "TransportError",
]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class HttpRequestError(RuntimeError):
    """Base exception for failed HTTP calls.

    Args:
        method: The HTTP method of the failed call (e.g. ``"GET"``).
        url: The URL of the failed call.
        message: A descriptive error message.
        status_code: The HTTP status code, if a response was received.
        response: The HTTP response, if one was received.
        cause: The underlying exception, if any.

    Attributes:
        attempts: Number of physical attempts made before the error was
            raised. ``0`` until the executor records it.

    Example:
        ```pycon
        >>> from rehttp.exceptions import HttpRequestError
        >>> error = HttpRequestError(
        ...     method="GET", url="https://example.com", message="boom"
        ... )
        >>> error.method, error.url, str(error)
        ('GET', 'https://example.com', 'boom')

        ```
    """

    def __init__(
        self,
        method: str,
        url: str,
        message: str,
        status_code: int | None = None,
        response: httpx.Response | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.message = message
        self.status_code = status_code
        self.response = response
        self.cause = cause
        self.attempts = 0


class MiddlewareError(HttpRequestError):
    """Raised when a middleware rejects a request attempt."""


class TransportError(HttpRequestError):
    """Raised when the transport fails to complete an exchange."""


class RequestCancelledError(HttpRequestError):
    """Raised when the caller's cancellation token was cancelled."""


class DeadlineExceededError(RequestCancelledError):
    """Raised when the caller's cancellation token reached its deadline."""
