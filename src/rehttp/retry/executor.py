r"""Execution engine turning one logical call into physical attempts.

This module provides the RequestExecutor class that runs the attempt
loop: cancellation checks, backoff waits, middleware, the transport
exchange and the retry decision.
"""

from __future__ import annotations

__all__ = ["RequestExecutor"]

import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from rehttp.cancellation import CancellationToken
from rehttp.exceptions import HttpRequestError, MiddlewareError, TransportError
from rehttp.middleware import MiddlewareChain
from rehttp.response import Response
from rehttp.retry.manager import CallbackManager
from rehttp.retry.policy import RetryPolicy
from rehttp.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rehttp.middleware import Middleware
    from rehttp.retry.config import RetryConfig
    from rehttp.retry.manager import CallbackConfig
    from rehttp.transport import Transport

logger: logging.Logger = logging.getLogger(__name__)


class RequestExecutor:
    """Executes HTTP calls with middleware and automatic retry logic.

    A call runs its attempts sequentially on the caller's thread. It
    only suspends during the backoff wait and the transport exchange,
    and both observe the caller's ``CancellationToken``.

    The executor orchestrates the following components:
    - MiddlewareChain: Mutates or rejects the request of each attempt
    - Transport: Performs the exchange
    - RetryPolicy: Decides whether to retry and computes backoff delays
    - CallbackManager: Invokes user-defined callbacks at lifecycle events

    The executor holds no per-call state and can serve concurrent calls.

    Args:
        transport: The transport performing each exchange.
        middlewares: Middlewares run on every attempt, in order.
        retry: The retry configuration, or ``None`` for a single attempt.
        callbacks: Optional callback configuration.

    Example:
        ```pycon
        >>> import httpx
        >>> from rehttp.backoff import FixedBackoff
        >>> from rehttp.retry import RequestExecutor, RetryConfig
        >>> from rehttp.transport import HttpxTransport
        >>> statuses = iter([503, 200])
        >>> mock = httpx.MockTransport(lambda request: httpx.Response(next(statuses)))
        >>> executor = RequestExecutor(
        ...     HttpxTransport(client=httpx.Client(transport=mock)),
        ...     retry=RetryConfig(backoff_strategy=FixedBackoff(delay=0.01)),
        ... )
        >>> with executor.execute("GET", "https://example.com") as response:
        ...     response.status_code, response.retry_attempts
        ...
        (200, 1)

        ```
    """

    def __init__(
        self,
        transport: Transport,
        middlewares: Iterable[Middleware] = (),
        retry: RetryConfig | None = None,
        callbacks: CallbackConfig | None = None,
    ) -> None:
        self.transport = transport
        self.middlewares = MiddlewareChain(middlewares)
        self.policy = RetryPolicy(retry)
        self.callbacks = CallbackManager(callbacks)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(transport={self.transport!r}, "
            f"middlewares={self.middlewares!r}, policy={self.policy!r})"
        )

    def execute(
        self,
        method: str,
        url: str,
        body: Any = None,
        *,
        token: CancellationToken | None = None,
        headers: dict[str, str] | None = None,
    ) -> Response:
        """Execute a logical call.

        Args:
            method: The HTTP method (e.g. ``"GET"``).
            url: The final request URL.
            body: Optional request body: ``bytes``, ``str`` (sent UTF-8
                encoded) or a binary file-like object. It is read once
                and resent byte-for-byte on every attempt.
            token: Cancellation token for the call. Defaults to a token
                that never fires.
            headers: Optional headers added to every attempt before the
                middlewares run.

        Returns:
            The response of the final attempt. Non-2xx statuses are
            returned, not raised. The caller must close it.

        Raises:
            RequestCancelledError: If the token fires before or during
                an attempt or a backoff wait.
            MiddlewareError: If a middleware rejected the final attempt.
            TransportError: If the exchange of the final attempt failed.
            HttpRequestError: If the request body cannot be read or the
                request cannot be built.
        """
        token = token or CancellationToken.background()
        method = method.upper()
        start_time = time.monotonic()
        max_attempts = self.policy.max_attempts
        attempts_made = 0
        try:
            content = _buffer_body(body, method=method, url=url)

            response: httpx.Response | None = None
            error: HttpRequestError | None = None
            for attempt in range(max_attempts):
                token.raise_if_cancelled(method=method, url=url)
                if attempt > 0:
                    self._backoff(
                        method, url, attempt, max_attempts, token, response=response, error=error
                    )

                self.callbacks.on_request(url, method, attempt, max_attempts)
                attempts_made = attempt + 1
                response, error = self._attempt(method, url, content, headers, token)

                if error is None and not self.policy.should_retry_response(response.status_code):
                    if attempt > 0:
                        logger.debug(f"{method} request to {url} succeeded on attempt {attempt + 1}")
                    return self._finish(method, url, response, attempt, max_attempts, start_time)

                if attempt < max_attempts - 1 and self._should_retry(response, error):
                    logger.debug(
                        f"{method} request to {url} failed with "
                        f"{_describe(response, error)} (attempt {attempt + 1}/{max_attempts})"
                    )
                    if response is not None:
                        # Only the status is needed from here on
                        response.close()
                    continue
                break

            if error is not None:
                log_structured(
                    logger,
                    logging.DEBUG,
                    f"{method} request to {url} failed after {attempts_made} attempts: {error}",
                    method=method,
                    url=url,
                    attempts=attempts_made,
                )
                raise error
            log_structured(
                logger,
                logging.DEBUG,
                f"{method} request to {url} exhausted {max_attempts} attempts with status "
                f"{response.status_code}",
                method=method,
                url=url,
                attempts=attempts_made,
                status_code=response.status_code,
            )
            return self._finish(method, url, response, max_attempts - 1, max_attempts, start_time)
        except HttpRequestError as exc:
            exc.attempts = attempts_made
            self.callbacks.on_failure(url, method, attempts_made, max_attempts, exc, start_time)
            raise

    def _should_retry(
        self, response: httpx.Response | None, error: HttpRequestError | None
    ) -> bool:
        if error is not None:
            return self.policy.should_retry_error(error)
        return response is not None and self.policy.should_retry_response(response.status_code)

    def _backoff(
        self,
        method: str,
        url: str,
        attempt: int,
        max_attempts: int,
        token: CancellationToken,
        response: httpx.Response | None,
        error: HttpRequestError | None,
    ) -> None:
        wait_time = self.policy.delay(attempt)
        self.callbacks.on_retry(
            url,
            method,
            attempt,
            max_attempts,
            wait_time=wait_time,
            error=error,
            status_code=None if response is None else response.status_code,
        )
        logger.debug(f"Waiting {wait_time:.2f}s before retry of {method} request to {url}")
        if token.wait(wait_time):
            logger.debug(f"{method} request to {url} cancelled during backoff")
            token.raise_if_cancelled(method=method, url=url)

    def _attempt(
        self,
        method: str,
        url: str,
        content: bytes | None,
        headers: dict[str, str] | None,
        token: CancellationToken,
    ) -> tuple[httpx.Response | None, HttpRequestError | None]:
        """Run one physical attempt.

        Returns:
            ``(response, None)`` if the exchange completed, or
            ``(None, error)`` if a middleware or the transport failed.
        """
        try:
            request = self.transport.build_request(method, url, content=content, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            return None, HttpRequestError(
                method=method,
                url=url,
                message=f"failed to make http request: {exc}",
                cause=exc,
            )
        try:
            self.middlewares.apply(request)
            return self.transport.exchange(request, token), None
        except (MiddlewareError, TransportError) as exc:
            return None, exc

    def _finish(
        self,
        method: str,
        url: str,
        response: httpx.Response,
        retry_attempts: int,
        max_attempts: int,
        start_time: float,
    ) -> Response:
        result = Response(
            response,
            retry_attempts=retry_attempts,
            total_duration=time.monotonic() - start_time,
        )
        try:
            self.callbacks.on_success(url, method, retry_attempts, max_attempts, result, start_time)
        except BaseException:
            result.close()
            raise
        return result


def _buffer_body(body: Any, method: str, url: str) -> bytes | None:
    """Read the request body once so every attempt resends the same
    bytes."""
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    if hasattr(body, "read"):
        try:
            data = body.read()
        except OSError as exc:
            raise HttpRequestError(
                method=method,
                url=url,
                message=f"failed to read request body: {exc}",
                cause=exc,
            ) from exc
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    msg = f"Unsupported request body type: {type(body).__qualname__}"
    raise TypeError(msg)


def _describe(response: httpx.Response | None, error: HttpRequestError | None) -> str:
    if error is not None:
        return f"error: {error}"
    return f"status {response.status_code}"
