r"""Cancellation tokens observed by the execution engine.

A ``CancellationToken`` is passed explicitly into every logical call.
The engine checks it before each attempt, waits on it during backoff
and races it against the transport exchange, so cancelling the token
(or reaching its deadline) ends the call promptly.

Example:
    ```pycon
    >>> from rehttp.cancellation import CancellationToken
    >>> token = CancellationToken()
    >>> token.cancelled
    False
    >>> token.cancel()
    >>> token.cancelled
    True
    >>> token.error()
    RequestCancelledError('request cancelled')

    ```
"""

from __future__ import annotations

__all__ = ["CancellationToken"]

import logging
import threading
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rehttp.exceptions import DeadlineExceededError, RequestCancelledError

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

logger: logging.Logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe cancellation signal with an optional deadline.

    Args:
        timeout: Optional time budget in seconds, measured from token
            creation. Once it elapses the token reports
            ``DeadlineExceededError``. Must be > 0 if provided.

    Raises:
        ValueError: If ``timeout`` is not positive.

    Example:
        ```pycon
        >>> from rehttp.cancellation import CancellationToken
        >>> token = CancellationToken(timeout=30.0)
        >>> 0 < token.remaining() <= 30.0
        True
        >>> token.wait(0.01)  # Waited the full duration
        False

        ```
    """

    def __init__(self, timeout: float | None = None) -> None:
        if timeout is not None and timeout <= 0:
            msg = f"timeout must be > 0, got {timeout}"
            raise ValueError(msg)
        self._deadline = None if timeout is None else time.monotonic() + timeout
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @classmethod
    def background(cls) -> CancellationToken:
        """Create a token without deadline that is never cancelled
        unless ``cancel()`` is called."""
        return cls()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(cancelled={self.cancelled}, "
            f"remaining={self.remaining()})"
        )

    @property
    def cancelled(self) -> bool:
        """``True`` once the token was cancelled or its deadline passed."""
        return self._event.is_set() or self._deadline_passed()

    def cancel(self) -> None:
        """Cancel the token and notify subscribers.

        Calling ``cancel()`` more than once has no further effect.
        """
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        logger.debug("Cancellation token cancelled")
        for callback in callbacks:
            callback()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or ``None`` without one."""
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def error(self, method: str = "", url: str = "") -> RequestCancelledError | None:
        """Return the error describing why the token fired.

        An explicit ``cancel()`` takes precedence over the deadline.

        Args:
            method: The HTTP method of the call being cancelled.
            url: The URL of the call being cancelled.

        Returns:
            ``RequestCancelledError`` after ``cancel()``,
            ``DeadlineExceededError`` after the deadline, else ``None``.
        """
        if self._event.is_set():
            return RequestCancelledError(method=method, url=url, message="request cancelled")
        if self._deadline_passed():
            return DeadlineExceededError(method=method, url=url, message="deadline exceeded")
        return None

    def raise_if_cancelled(self, method: str = "", url: str = "") -> None:
        """Raise the token's error if it has fired.

        Raises:
            RequestCancelledError: If the token was cancelled or its
                deadline passed.
        """
        error = self.error(method=method, url=url)
        if error is not None:
            raise error

    def wait(self, seconds: float) -> bool:
        """Sleep for ``seconds`` unless the token fires first.

        Args:
            seconds: The duration to wait.

        Returns:
            ``True`` if the token fired before the duration elapsed,
            ``False`` if the full duration was waited.
        """
        remaining = self.remaining()
        if remaining is None or remaining >= seconds:
            return self._event.wait(max(seconds, 0.0))
        # The deadline falls inside the wait
        while not self._deadline_passed():
            if self._event.wait(self.remaining()):
                break
        return True

    @contextmanager
    def subscribe(self, callback: Callable[[], None]) -> Generator[None, None, None]:
        """Register ``callback`` to run on ``cancel()`` while the context
        is active.

        The callback runs immediately if the token is already cancelled.
        Deadlines do not trigger callbacks; use ``remaining()`` to bound
        waits instead.
        """
        with self._lock:
            already_cancelled = self._event.is_set()
            if not already_cancelled:
                self._callbacks.append(callback)
        if already_cancelled:
            callback()
        try:
            yield
        finally:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

    def _deadline_passed(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline
