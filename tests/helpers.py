r"""Shared test helpers.

``ScriptedServer`` is an ``httpx.MockTransport`` handler that replays a
script of statuses or exceptions and records every request it sees,
so tests can count physical attempts and inspect what was sent.
"""

from __future__ import annotations

__all__ = ["TEST_URL", "RecordedRequest", "ScriptedServer", "create_transport"]

import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from rehttp.transport import HttpxTransport

if TYPE_CHECKING:
    from collections.abc import Iterable

TEST_URL = "https://api.example.com/data"


@dataclass
class RecordedRequest:
    method: str
    url: str
    content: bytes
    headers: httpx.Headers


class ScriptedServer:
    """Offline HTTP server for ``httpx.MockTransport``.

    Args:
        script: Statuses (``int``) or exceptions to produce, one per
            request. Once exhausted, ``default`` is produced.
        default: Status or exception produced after the script.
        delay: Seconds to sleep before answering each request.
        body: Response body.
    """

    def __init__(
        self,
        script: Iterable[int | Exception] = (),
        default: int | Exception = 200,
        delay: float = 0.0,
        body: bytes = b"ok",
    ) -> None:
        self.script = list(script)
        self.default = default
        self.delay = delay
        self.body = body
        self.requests: list[RecordedRequest] = []
        self._lock = threading.Lock()

    @property
    def calls(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(
                RecordedRequest(
                    method=request.method,
                    url=str(request.url),
                    content=request.content,
                    headers=request.headers,
                )
            )
            outcome = self.script.pop(0) if self.script else self.default
        if self.delay:
            time.sleep(self.delay)
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, content=iter([self.body]))


def create_transport(server: ScriptedServer, **kwargs: object) -> HttpxTransport:
    """Create an ``HttpxTransport`` routing every request to ``server``."""
    return HttpxTransport(client=httpx.Client(transport=httpx.MockTransport(server)), **kwargs)
