r"""Callback manager for the retry lifecycle.

This module provides the CallbackManager class that builds the
callback info objects and invokes the user-defined hooks.
"""

from __future__ import annotations

__all__ = ["CallbackConfig", "CallbackManager"]

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rehttp.callbacks import FailureInfo, RequestInfo, ResponseInfo, RetryInfo

if TYPE_CHECKING:
    from collections.abc import Callable

    from rehttp.response import Response


@dataclass(frozen=True)
class CallbackConfig:
    """Configuration for callbacks.

    Attributes:
        on_request: Optional callback invoked before each attempt.
        on_retry: Optional callback invoked before each backoff wait.
        on_success: Optional callback invoked when a response is returned.
        on_failure: Optional callback invoked when the call raises.
    """

    on_request: Callable[[RequestInfo], None] | None = None
    on_retry: Callable[[RetryInfo], None] | None = None
    on_success: Callable[[ResponseInfo], None] | None = None
    on_failure: Callable[[FailureInfo], None] | None = None


class CallbackManager:
    """Manages callback invocations during the retry lifecycle.

    Attempt numbers are passed 0-indexed and reported 1-indexed.

    Args:
        callbacks: Callback configuration. ``None`` disables callbacks.
    """

    def __init__(self, callbacks: CallbackConfig | None = None) -> None:
        self.callbacks = callbacks or CallbackConfig()

    def on_request(self, url: str, method: str, attempt: int, max_attempts: int) -> None:
        if self.callbacks.on_request is not None:
            self.callbacks.on_request(
                RequestInfo(url=url, method=method, attempt=attempt + 1, max_attempts=max_attempts)
            )

    def on_retry(
        self,
        url: str,
        method: str,
        attempt: int,
        max_attempts: int,
        wait_time: float,
        error: Exception | None,
        status_code: int | None,
    ) -> None:
        if self.callbacks.on_retry is not None:
            self.callbacks.on_retry(
                RetryInfo(
                    url=url,
                    method=method,
                    attempt=attempt + 1,
                    max_attempts=max_attempts,
                    wait_time=wait_time,
                    error=error,
                    status_code=status_code,
                )
            )

    def on_success(
        self,
        url: str,
        method: str,
        attempt: int,
        max_attempts: int,
        response: Response,
        start_time: float,
    ) -> None:
        if self.callbacks.on_success is not None:
            self.callbacks.on_success(
                ResponseInfo(
                    url=url,
                    method=method,
                    attempt=attempt + 1,
                    max_attempts=max_attempts,
                    response=response,
                    total_time=time.monotonic() - start_time,
                )
            )

    def on_failure(
        self,
        url: str,
        method: str,
        attempts: int,
        max_attempts: int,
        error: Exception,
        start_time: float,
    ) -> None:
        """Invoke on_failure.

        Args:
            attempts: Number of physical attempts made.
        """
        if self.callbacks.on_failure is not None:
            self.callbacks.on_failure(
                FailureInfo(
                    url=url,
                    method=method,
                    attempt=attempts,
                    max_attempts=max_attempts,
                    error=error,
                    total_time=time.monotonic() - start_time,
                )
            )
