from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING
from unittest.mock import Mock

import httpx
import pytest

from rehttp.cancellation import CancellationToken
from rehttp.exceptions import DeadlineExceededError, RequestCancelledError, TransportError
from rehttp.transport import DEFAULT_TIMEOUT, HttpxTransport, _bounded_timeout
from tests.helpers import TEST_URL, ScriptedServer, create_transport

if TYPE_CHECKING:
    from collections.abc import Callable

####################################
#     Tests for HttpxTransport     #
####################################


def test_httpx_transport_owned_client() -> None:
    transport = HttpxTransport(timeout=3.0)
    assert transport.client.timeout == httpx.Timeout(3.0)
    assert repr(transport) == "HttpxTransport(owns_client=True)"
    transport.close()
    assert transport.client.is_closed


def test_httpx_transport_default_timeout() -> None:
    with HttpxTransport() as transport:
        assert transport.client.timeout == httpx.Timeout(DEFAULT_TIMEOUT)


def test_httpx_transport_external_client_left_open() -> None:
    client = httpx.Client()
    with HttpxTransport(client=client) as transport:
        assert transport.client is client
    assert not client.is_closed
    client.close()


def test_httpx_transport_build_request(server: ScriptedServer) -> None:
    transport = create_transport(server)
    request = transport.build_request(
        "POST", TEST_URL, content=b"payload", headers={"X-Request": "1"}
    )
    assert request.method == "POST"
    assert str(request.url) == TEST_URL
    assert request.content == b"payload"
    assert request.headers["X-Request"] == "1"
    assert "timeout" in request.extensions


def test_httpx_transport_exchange(server: ScriptedServer) -> None:
    transport = create_transport(server)
    response = transport.exchange(
        transport.build_request("GET", TEST_URL), CancellationToken.background()
    )
    assert response.status_code == 200
    assert not response.is_closed
    assert response.read() == b"ok"
    assert server.calls == 1


def test_httpx_transport_exchange_error() -> None:
    transport = create_transport(
        ScriptedServer(default=httpx.ConnectError("[Errno 111] Connection refused"))
    )
    with pytest.raises(
        TransportError, match=r"failed to do http request: ConnectError: .*Connection refused"
    ) as exc_info:
        transport.exchange(transport.build_request("GET", TEST_URL), CancellationToken())

    assert isinstance(exc_info.value.cause, httpx.ConnectError)
    assert exc_info.value.method == "GET"
    assert exc_info.value.url == TEST_URL


def test_httpx_transport_exchange_already_cancelled(server: ScriptedServer) -> None:
    transport = create_transport(server)
    token = CancellationToken()
    token.cancel()
    with pytest.raises(RequestCancelledError):
        transport.exchange(transport.build_request("GET", TEST_URL), token)


def test_httpx_transport_exchange_cancelled_in_flight() -> None:
    transport = create_transport(ScriptedServer(delay=2.0))
    token = CancellationToken()
    timer = threading.Timer(0.05, token.cancel)

    start = time.monotonic()
    timer.start()
    try:
        with pytest.raises(RequestCancelledError, match=r"request cancelled"):
            transport.exchange(transport.build_request("GET", TEST_URL), token)
    finally:
        timer.cancel()

    assert time.monotonic() - start < 1.5


def test_httpx_transport_exchange_deadline_in_flight() -> None:
    transport = create_transport(ScriptedServer(delay=2.0))
    start = time.monotonic()
    with pytest.raises(DeadlineExceededError):
        transport.exchange(
            transport.build_request("GET", TEST_URL), CancellationToken(timeout=0.1)
        )
    assert time.monotonic() - start < 1.5


def wait_until(condition: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not condition():
        assert time.monotonic() < deadline, "condition not met in time"
        time.sleep(0.01)


def test_httpx_transport_cancelled_while_queued_is_never_sent() -> None:
    server = ScriptedServer(delay=0.5)
    transport = create_transport(server, max_workers=1)
    busy = threading.Thread(
        target=transport.exchange,
        args=(transport.build_request("GET", f"{TEST_URL}/busy"), CancellationToken()),
    )
    busy.start()
    wait_until(lambda: server.calls == 1)

    token = CancellationToken()
    timer = threading.Timer(0.1, token.cancel)
    timer.start()
    try:
        with pytest.raises(RequestCancelledError):
            transport.exchange(
                transport.build_request("POST", f"{TEST_URL}/charge", content=b"100"), token
            )
    finally:
        timer.cancel()
    busy.join()
    time.sleep(0.1)

    assert [request.url for request in server.requests] == [f"{TEST_URL}/busy"]


def test_httpx_transport_deadline_while_queued_is_never_sent() -> None:
    server = ScriptedServer(delay=0.5)
    transport = create_transport(server, max_workers=1)
    busy = threading.Thread(
        target=transport.exchange,
        args=(transport.build_request("GET", f"{TEST_URL}/busy"), CancellationToken()),
    )
    busy.start()
    wait_until(lambda: server.calls == 1)

    with pytest.raises(DeadlineExceededError):
        transport.exchange(
            transport.build_request("POST", f"{TEST_URL}/charge"), CancellationToken(timeout=0.1)
        )
    busy.join()
    time.sleep(0.1)

    assert server.calls == 1


def test_httpx_transport_close_drops_queued_exchanges() -> None:
    server = ScriptedServer(delay=0.5)
    transport = create_transport(server, max_workers=1)
    errors: list[Exception] = []

    def queued() -> None:
        try:
            transport.exchange(
                transport.build_request("POST", f"{TEST_URL}/charge"), CancellationToken()
            )
        except TransportError as exc:
            errors.append(exc)

    busy = threading.Thread(
        target=transport.exchange,
        args=(transport.build_request("GET", f"{TEST_URL}/busy"), CancellationToken()),
    )
    busy.start()
    wait_until(lambda: server.calls == 1)
    waiting = threading.Thread(target=queued)
    waiting.start()
    time.sleep(0.1)
    transport.close()
    waiting.join(timeout=2.0)
    busy.join()

    assert len(errors) == 1
    assert str(errors[0]) == "failed to do http request: transport closed"
    assert server.calls == 1


def test_httpx_transport_exchange_bounds_timeout(server: ScriptedServer) -> None:
    transport = create_transport(server)
    request = transport.build_request("GET", TEST_URL)
    transport.exchange(request, CancellationToken(timeout=2.0))
    assert all(0.0 < value <= 2.0 for value in request.extensions["timeout"].values())


def test_httpx_transport_exchange_keeps_timeout_without_deadline(server: ScriptedServer) -> None:
    transport = create_transport(server)
    request = transport.build_request("GET", TEST_URL)
    timeout = dict(request.extensions["timeout"])
    transport.exchange(request, CancellationToken())
    assert request.extensions["timeout"] == timeout


#######################################
#     Tests for _bounded_timeout      #
#######################################


def test_bounded_timeout_caps_every_phase() -> None:
    assert _bounded_timeout(httpx.Timeout(10.0).as_dict(), 2.0) == {
        "connect": 2.0,
        "read": 2.0,
        "write": 2.0,
        "pool": 2.0,
    }


def test_bounded_timeout_keeps_shorter_phases() -> None:
    timeout = httpx.Timeout(10.0, connect=0.5).as_dict()
    assert _bounded_timeout(timeout, 2.0) == {
        "connect": 0.5,
        "read": 2.0,
        "write": 2.0,
        "pool": 2.0,
    }


def test_bounded_timeout_without_timeout() -> None:
    assert _bounded_timeout(None, 1.5) == httpx.Timeout(1.5).as_dict()


def test_bounded_timeout_disabled_phase() -> None:
    timeout = httpx.Timeout(None).as_dict()
    assert _bounded_timeout(timeout, 1.0) == httpx.Timeout(1.0).as_dict()


def test_httpx_transport_close_shuts_down_workers() -> None:
    client = Mock(spec=httpx.Client)
    transport = HttpxTransport(client=client)
    transport.close()
    client.close.assert_not_called()
    with pytest.raises(RuntimeError):
        transport.exchange(httpx.Request("GET", TEST_URL), CancellationToken())
