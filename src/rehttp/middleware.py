r"""Request middleware chain.

A middleware is a plain callable receiving the in-flight
``httpx.Request``. It may mutate the request (add headers, sign it,
log it) and aborts the attempt by raising. The chain runs once per
physical attempt against a freshly built request, so middlewares must
be idempotent.

Example:
    ```pycon
    >>> import httpx
    >>> from rehttp.middleware import MiddlewareChain, bearer_token, set_header
    >>> chain = MiddlewareChain([set_header("X-Api-Version", "2"), bearer_token("s3cret")])
    >>> request = httpx.Request("GET", "https://api.example.com/users")
    >>> chain.apply(request)
    >>> request.headers["X-Api-Version"], request.headers["Authorization"]
    ('2', 'Bearer s3cret')

    ```
"""

from __future__ import annotations

__all__ = [
    "Middleware",
    "MiddlewareChain",
    "bearer_token",
    "correlation_id_header",
    "set_header",
]

import logging
from collections.abc import Callable, Iterable

import httpx

from rehttp.exceptions import MiddlewareError
from rehttp.utils.structured_logging import get_correlation_id

logger: logging.Logger = logging.getLogger(__name__)

Middleware = Callable[[httpx.Request], None]


class MiddlewareChain:
    """Ordered, immutable sequence of middlewares.

    Args:
        middlewares: The middlewares, in the order they must run.
    """

    def __init__(self, middlewares: Iterable[Middleware] = ()) -> None:
        self.middlewares: tuple[Middleware, ...] = tuple(middlewares)

    def __len__(self) -> int:
        return len(self.middlewares)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(size={len(self.middlewares)})"

    def apply(self, request: httpx.Request) -> None:
        """Run every middleware on ``request`` in registration order.

        Args:
            request: The request of the current attempt.

        Raises:
            MiddlewareError: If a middleware raises. The remaining
                middlewares are skipped and the original exception is
                chained as the cause.
        """
        for middleware in self.middlewares:
            try:
                middleware(request)
            except Exception as exc:
                logger.debug(
                    f"{request.method} request to {request.url} rejected by middleware "
                    f"{_middleware_name(middleware)}: {exc}"
                )
                raise MiddlewareError(
                    method=request.method,
                    url=str(request.url),
                    message=f"middleware error: {exc}",
                    cause=exc,
                ) from exc


def set_header(name: str, value: str) -> Middleware:
    """Create a middleware that sets a header on every attempt."""

    def _set_header(request: httpx.Request) -> None:
        request.headers[name] = value

    return _set_header


def bearer_token(token: str) -> Middleware:
    """Create a middleware that sets an ``Authorization: Bearer`` header."""
    return set_header("Authorization", f"Bearer {token}")


def correlation_id_header(header: str = "X-Correlation-ID") -> Middleware:
    """Create a middleware that forwards the current correlation id.

    The header is only set when a correlation id is active (see
    ``rehttp.utils.structured_logging.correlation_scope``).
    """

    def _correlation_id_header(request: httpx.Request) -> None:
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            request.headers[header] = correlation_id

    return _correlation_id_header


def _middleware_name(middleware: Middleware) -> str:
    return getattr(middleware, "__qualname__", type(middleware).__qualname__)
