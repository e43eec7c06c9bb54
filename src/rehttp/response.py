r"""Aggregated response returned by a logical call."""

from __future__ import annotations

__all__ = ["Response"]

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType
    from typing import Self

    import httpx


class Response:
    """Result of a logical call, possibly spanning several attempts.

    The body is the still-open ``httpx.Response`` of the final attempt.
    Ownership transfers to the caller, who must release it with
    ``close()`` or by using the response as a context manager.

    Args:
        response: The ``httpx.Response`` of the final attempt.
        retry_attempts: Number of retries performed after the first
            attempt.
        total_duration: Seconds elapsed from the start of the call.
    """

    def __init__(
        self, response: httpx.Response, retry_attempts: int = 0, total_duration: float = 0.0
    ) -> None:
        self._response = response
        self._retry_attempts = retry_attempts
        self._total_duration = total_duration

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(status_code={self.status_code}, "
            f"retry_attempts={self.retry_attempts}, total_duration={self.total_duration:.3f})"
        )

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
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def body(self) -> httpx.Response:
        """The underlying streaming ``httpx.Response``."""
        return self._response

    @property
    def retry_attempts(self) -> int:
        return self._retry_attempts

    @property
    def total_duration(self) -> float:
        return self._total_duration

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def is_closed(self) -> bool:
        return self._response.is_closed

    def read(self) -> bytes:
        """Read and return the whole body, then release the connection."""
        try:
            return self._response.read()
        finally:
            self._response.close()

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        """Iterate over the body in chunks."""
        return self._response.iter_bytes(chunk_size=chunk_size)

    @property
    def text(self) -> str:
        self.read()
        return self._response.text

    def json(self, **kwargs: Any) -> Any:
        self.read()
        return self._response.json(**kwargs)

    def close(self) -> None:
        """Release the body and its connection."""
        self._response.close()
