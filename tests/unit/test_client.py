r"""Unit tests for ResilientClient."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import httpx
import pytest

from rehttp import ClientConfig, ResilientClient, RetryConfig
from rehttp.backoff import FixedBackoff
from rehttp.cancellation import CancellationToken
from rehttp.exceptions import MiddlewareError, RequestCancelledError
from rehttp.middleware import bearer_token, set_header
from rehttp.transport import HttpxTransport
from tests.helpers import ScriptedServer, create_transport

BASE_URL = "https://api.example.com"


def create_client(server: ScriptedServer, config: ClientConfig | None = None) -> ResilientClient:
    return ResilientClient(config, transport=create_transport(server))


######################################
#     Tests for ResilientClient      #
######################################


def test_resilient_client_default_config() -> None:
    with ResilientClient() as client:
        assert client.config == ClientConfig()
        assert isinstance(client._transport, HttpxTransport)


def test_resilient_client_repr(server: ScriptedServer) -> None:
    assert repr(create_client(server)).startswith("ResilientClient(config=ClientConfig(")


def test_resilient_client_owned_transport_closed() -> None:
    client = ResilientClient(ClientConfig(timeout=2.5))
    assert client._transport.client.timeout.read == 2.5
    client.close()
    assert client._transport.client.is_closed


def test_resilient_client_external_transport_left_open() -> None:
    transport = Mock()
    with ResilientClient(transport=transport):
        pass
    transport.close.assert_not_called()


def test_resilient_client_resolve_url(server: ScriptedServer) -> None:
    client = create_client(server, ClientConfig(base_url=f"{BASE_URL}/"))
    assert client.resolve_url("/users") == f"{BASE_URL}/users"
    assert client.resolve_url("users") == f"{BASE_URL}/users"
    assert client.resolve_url("http://other.example.com") == "http://other.example.com"


def test_resilient_client_request_uses_base_url(server: ScriptedServer) -> None:
    client = create_client(server, ClientConfig(base_url=BASE_URL))
    with client.request("get", "/users") as response:
        assert response.status_code == 200
    assert server.requests[0].url == f"{BASE_URL}/users"
    assert server.requests[0].method == "GET"


def test_resilient_client_absolute_url_bypasses_base_url(server: ScriptedServer) -> None:
    client = create_client(server, ClientConfig(base_url=BASE_URL))
    client.get("https://other.example.com/health").close()
    assert server.requests[0].url == "https://other.example.com/health"


@pytest.mark.parametrize("method", ["get", "head", "delete", "options"])
def test_resilient_client_methods_without_body(server: ScriptedServer, method: str) -> None:
    client = create_client(server, ClientConfig(base_url=BASE_URL))
    response = getattr(client, method)("/items/1", headers={"X-Request": "1"})
    assert response.status_code == 200
    assert server.requests[0].method == method.upper()
    assert server.requests[0].headers["X-Request"] == "1"
    assert server.requests[0].content == b""


@pytest.mark.parametrize("method", ["post", "put", "patch"])
def test_resilient_client_methods_with_body(server: ScriptedServer, method: str) -> None:
    client = create_client(server, ClientConfig(base_url=BASE_URL))
    response = getattr(client, method)("/items", b'{"name": "widget"}')
    assert response.status_code == 200
    assert server.requests[0].method == method.upper()
    assert server.requests[0].content == b'{"name": "widget"}'


def test_resilient_client_middlewares(server: ScriptedServer) -> None:
    config = ClientConfig(
        base_url=BASE_URL, middlewares=(bearer_token("s3cret"), set_header("X-Api-Version", "2"))
    )
    create_client(server, config).get("/users")
    headers = server.requests[0].headers
    assert headers["Authorization"] == "Bearer s3cret"
    assert headers["X-Api-Version"] == "2"


def test_resilient_client_middleware_abort(server: ScriptedServer) -> None:
    config = ClientConfig(base_url=BASE_URL, middlewares=(Mock(side_effect=KeyError("scope")),))
    with pytest.raises(MiddlewareError, match=r"middleware error"):
        create_client(server, config).get("/users")
    assert server.calls == 0


def test_resilient_client_without_retries(server: ScriptedServer) -> None:
    server.default = 503
    response = create_client(server, ClientConfig(base_url=BASE_URL)).get("/users")
    assert response.status_code == 503
    assert server.calls == 1


def test_resilient_client_with_retries(mock_wait: Mock) -> None:
    server = ScriptedServer(script=[503, 502], default=200)
    config = ClientConfig(base_url=BASE_URL).with_retries(
        RetryConfig(backoff_strategy=FixedBackoff(delay=0.3))
    )
    response = create_client(server, config).post("/jobs", "payload")
    assert response.status_code == 200
    assert response.retry_attempts == 2
    assert [request.content for request in server.requests] == [b"payload"] * 3
    assert mock_wait.call_count == 2


def test_resilient_client_callbacks(mock_wait: Mock) -> None:  # noqa: ARG001
    on_request, on_success = Mock(), Mock()
    server = ScriptedServer(script=[500], default=200)
    config = ClientConfig(
        base_url=BASE_URL, retry=RetryConfig(), on_request=on_request, on_success=on_success
    )
    create_client(server, config).get("/users")
    assert on_request.call_count == 2
    assert on_success.call_args.args[0].url == f"{BASE_URL}/users"


def test_resilient_client_cancelled_token(server: ScriptedServer) -> None:
    token = CancellationToken()
    token.cancel()
    client = create_client(server, ClientConfig(base_url=BASE_URL))
    with pytest.raises(RequestCancelledError):
        client.get("/users", token=token)
    assert server.calls == 0


class FlakyPerCallServer:
    """Answers 503 to the first ``failures`` attempts of every call.

    Calls are told apart by their ``X-Call`` header, and every attempt
    records the body it carried under that call.
    """

    def __init__(self, failures: int, delay: float = 0.02) -> None:
        self.failures = failures
        self.delay = delay
        self.bodies: dict[str, list[bytes]] = {}
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        call_id = request.headers["X-Call"]
        with self._lock:
            bodies = self.bodies.setdefault(call_id, [])
            bodies.append(request.content)
            attempt = len(bodies)
        time.sleep(self.delay)
        return httpx.Response(503 if attempt <= self.failures else 200, content=request.content)


def test_resilient_client_concurrent_calls_keep_their_own_state() -> None:
    server = FlakyPerCallServer(failures=2)
    config = ClientConfig(
        base_url=BASE_URL, retry=RetryConfig(backoff_strategy=FixedBackoff(delay=0.01))
    )
    transport = HttpxTransport(
        client=httpx.Client(transport=httpx.MockTransport(server)), max_workers=2
    )

    def post(index: int) -> tuple[int, int, bytes]:
        with client.post(
            "/jobs", f"payload-{index}".encode(), headers={"X-Call": str(index)}
        ) as response:
            return response.status_code, response.retry_attempts, response.read()

    with ResilientClient(config, transport=transport) as client, ThreadPoolExecutor(8) as pool:
        results = list(pool.map(post, range(8)))

    assert results == [(200, 2, f"payload-{index}".encode()) for index in range(8)]
    assert server.bodies == {str(index): [f"payload-{index}".encode()] * 3 for index in range(8)}
