r"""Synchronous context manager client for resilient HTTP requests.

This module provides the ResilientClient class: the outer surface that
resolves URLs against a base URL and hands every call to a
RequestExecutor configured from an immutable ClientConfig.
"""

from __future__ import annotations

__all__ = ["ResilientClient"]

from typing import TYPE_CHECKING, Any

from rehttp.config import ClientConfig
from rehttp.retry.executor import RequestExecutor
from rehttp.transport import HttpxTransport
from rehttp.url import resolve_url

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

    from rehttp.cancellation import CancellationToken
    from rehttp.response import Response
    from rehttp.transport import Transport


class ResilientClient:
    r"""HTTP client with middleware, base-URL resolution and retries.

    A built client is immutable and can be shared between threads; every
    call keeps its state (body buffer, attempt counter) local.

    Args:
        config: Optional ClientConfig. If ``None``, a default config
            without retries is used.
        transport: Optional transport. If ``None``, an
            ``HttpxTransport`` with ``config.timeout`` is created and
            closed by ``close()``.

    Example:
        ```pycon
        >>> from rehttp import ClientConfig, ResilientClient
        >>> from rehttp.middleware import bearer_token
        >>> config = ClientConfig(
        ...     base_url="https://api.example.com", middlewares=(bearer_token("s3cret"),)
        ... ).with_retries()
        >>> with ResilientClient(config) as client:  # doctest: +SKIP
        ...     with client.get("/users") as response:
        ...         users = response.json()
        ...

        ```
    """

    def __init__(
        self, config: ClientConfig | None = None, *, transport: Transport | None = None
    ) -> None:
        self._config: ClientConfig = config or ClientConfig()
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport(timeout=self._config.timeout)
        self._executor = RequestExecutor(
            self._transport,
            middlewares=self._config.middlewares,
            retry=self._config.retry,
            callbacks=self._config.callbacks,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(config={self._config!r})"

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def config(self) -> ClientConfig:
        return self._config

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            self._transport.close()

    def resolve_url(self, url: str) -> str:
        """Resolve ``url`` against the configured base URL."""
        return resolve_url(self._config.base_url, url)

    def request(
        self,
        method: str,
        url: str,
        body: Any = None,
        *,
        token: CancellationToken | None = None,
        headers: dict[str, str] | None = None,
    ) -> Response:
        r"""Send an HTTP request with middleware and automatic retries.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, PATCH, HEAD, OPTIONS, etc.).
            url: An absolute URL or a path resolved against the base URL.
            body: Optional request body (``bytes``, ``str`` or binary
                file-like), resent identically on every attempt.
            token: Optional cancellation token for the call.
            headers: Optional headers for every attempt.

        Returns:
            The aggregated response. The caller must close it.

        Raises:
            HttpRequestError: If the call is cancelled, or if its final
                attempt failed in a middleware or the transport.
        """
        return self._executor.execute(
            method, self.resolve_url(url), body, token=token, headers=headers
        )

    def get(self, url: str, *, token: CancellationToken | None = None, **kwargs: Any) -> Response:
        """Send an HTTP GET request (see ``request``)."""
        return self.request("GET", url, token=token, **kwargs)

    def post(
        self, url: str, body: Any = None, *, token: CancellationToken | None = None, **kwargs: Any
    ) -> Response:
        """Send an HTTP POST request (see ``request``)."""
        return self.request("POST", url, body, token=token, **kwargs)

    def put(
        self, url: str, body: Any = None, *, token: CancellationToken | None = None, **kwargs: Any
    ) -> Response:
        """Send an HTTP PUT request (see ``request``)."""
        return self.request("PUT", url, body, token=token, **kwargs)

    def patch(
        self, url: str, body: Any = None, *, token: CancellationToken | None = None, **kwargs: Any
    ) -> Response:
        """Send an HTTP PATCH request (see ``request``)."""
        return self.request("PATCH", url, body, token=token, **kwargs)

    def delete(
        self, url: str, *, token: CancellationToken | None = None, **kwargs: Any
    ) -> Response:
        """Send an HTTP DELETE request (see ``request``)."""
        return self.request("DELETE", url, token=token, **kwargs)

    def head(self, url: str, *, token: CancellationToken | None = None, **kwargs: Any) -> Response:
        """Send an HTTP HEAD request (see ``request``)."""
        return self.request("HEAD", url, token=token, **kwargs)

    def options(
        self, url: str, *, token: CancellationToken | None = None, **kwargs: Any
    ) -> Response:
        """Send an HTTP OPTIONS request (see ``request``)."""
        return self.request("OPTIONS", url, token=token, **kwargs)
