r"""Transport performing a single HTTP exchange.

The execution engine only depends on the ``Transport`` protocol. The
default implementation, ``HttpxTransport``, sends requests through a
blocking ``httpx.Client`` and keeps the exchange interruptible by the
caller's ``CancellationToken``.
"""

from __future__ import annotations

__all__ = ["DEFAULT_TIMEOUT", "HttpxTransport", "Transport"]

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Protocol

import httpx

from rehttp.exceptions import TransportError

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

    from rehttp.cancellation import CancellationToken

logger: logging.Logger = logging.getLogger(__name__)

# Default timeout in seconds for a single exchange
DEFAULT_TIMEOUT = 10.0


class Transport(Protocol):
    """Capability to build and perform one HTTP exchange."""

    def build_request(
        self,
        method: str,
        url: str,
        *,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Request:
        """Build a fresh request for one attempt."""

    def exchange(self, request: httpx.Request, token: CancellationToken) -> httpx.Response:
        """Send ``request`` and return the response with an open body.

        Raises:
            TransportError: If the exchange fails at the network level.
            RequestCancelledError: If ``token`` fires before the
                response arrives.
        """

    def close(self) -> None:
        """Release the resources held by the transport."""


class HttpxTransport:
    r"""``Transport`` backed by ``httpx.Client``.

    Responses are returned with ``stream=True`` so the body handle is
    passed to the caller unread. The per-request timeout is bounded by
    the token's remaining time, and the exchange runs on a worker thread
    so an explicit ``cancel()`` returns control to the caller without
    waiting for the server. A request still queued behind busy workers
    when the token fires is never sent, and a response arriving after
    cancellation is closed.

    Two usage patterns are supported: pass an ``httpx.Client`` you
    manage yourself (``close()`` leaves it open), or let the transport
    create and own one.

    Args:
        client: Optional ``httpx.Client``. If ``None``, a client with
            ``timeout`` is created and owned by the transport.
        timeout: Timeout in seconds for the owned client.
        max_workers: Maximum number of exchanges in flight at once.

    Example:
        ```pycon
        >>> import httpx
        >>> from rehttp.cancellation import CancellationToken
        >>> from rehttp.transport import HttpxTransport
        >>> mock = httpx.MockTransport(lambda request: httpx.Response(204))
        >>> with HttpxTransport(client=httpx.Client(transport=mock)) as transport:
        ...     request = transport.build_request("GET", "https://example.com")
        ...     transport.exchange(request, CancellationToken()).status_code
        ...
        204

        ```
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_workers: int | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client: httpx.Client = client or httpx.Client(timeout=timeout)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="rehttp-transport"
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(owns_client={self._owns_client})"

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
    def client(self) -> httpx.Client:
        return self._client

    def close(self) -> None:
        """Stop the worker threads, drop queued exchanges and close the
        client if owned."""
        self._executor.shutdown(wait=False, cancel_futures=True)
        if self._owns_client:
            self._client.close()

    def build_request(
        self,
        method: str,
        url: str,
        *,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Request:
        """Build a request carrying the client's default headers and
        timeout."""
        return self._client.build_request(method, url, content=content, headers=headers)

    def exchange(self, request: httpx.Request, token: CancellationToken) -> httpx.Response:
        method, url = request.method, str(request.url)
        token.raise_if_cancelled(method=method, url=url)
        remaining = token.remaining()
        if remaining is not None:
            request.extensions["timeout"] = _bounded_timeout(
                request.extensions.get("timeout"), remaining
            )

        future = self._executor.submit(self._client.send, request, stream=True)
        done = threading.Event()
        future.add_done_callback(lambda _: done.set())
        with token.subscribe(done.set):
            while not future.done():
                if token.cancelled:
                    if future.cancel():
                        logger.debug(f"{method} request to {url} dropped before it was sent")
                    else:
                        future.add_done_callback(_close_late_response)
                        logger.debug(f"{method} request to {url} abandoned while in flight")
                    token.raise_if_cancelled(method=method, url=url)
                done.wait(token.remaining())

        try:
            return future.result()
        except CancelledError as exc:
            # Dropped from the queue by close()
            raise TransportError(
                method=method,
                url=url,
                message="failed to do http request: transport closed",
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            # A deadline reached mid-exchange surfaces as an httpx timeout
            token.raise_if_cancelled(method=method, url=url)
            raise TransportError(
                method=method,
                url=url,
                message=f"failed to do http request: {type(exc).__name__}: {exc}",
                cause=exc,
            ) from exc


def _bounded_timeout(
    timeout: dict[str, float | None] | None, remaining: float
) -> dict[str, float | None]:
    """Cap every phase of an httpx timeout at ``remaining`` seconds."""
    bounded: dict[str, float | None] = httpx.Timeout(remaining).as_dict()
    for phase, value in (timeout or {}).items():
        if value is not None:
            bounded[phase] = min(value, remaining)
    return bounded


def _close_late_response(future: Future[httpx.Response]) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()
