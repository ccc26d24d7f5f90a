from __future__ import annotations

import json
import threading
from typing import Any, AsyncIterator, Callable, Dict, Iterator, List, Optional

import httpx
import pytest
import respx
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from btcrpc import REGTEST, BitcoinClient
from btcrpc_proxy.app import create_app
from btcrpc_proxy.config import Settings

RPC_URL = "http://127.0.0.1:18443/"
RPC_USER = "alice"
RPC_PASSWORD = "s3cret"


# ----------------------------
# Deterministic clock for pollers
# ----------------------------
class FakeClock:
    """Clock whose sleep only advances a counter."""

    def __init__(self, start: float = 1000.0) -> None:
        self.t = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.t

    def sleep(self, seconds: float, cancel: Optional[threading.Event] = None) -> bool:
        self.sleeps.append(seconds)
        self.t += seconds
        return cancel is not None and cancel.is_set()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ----------------------------
# Scripted node behind respx
# ----------------------------
def rpc_reply(request: httpx.Request, result: Any = None, error: Optional[Dict[str, Any]] = None, status: int = 200) -> httpx.Response:
    """Build a node-style JSON-RPC response echoing the request id."""
    req_id = json.loads(request.content).get("id")
    return httpx.Response(status, json={"result": result, "error": error, "id": req_id})


class ScriptedNode:
    """
    Answers JSON-RPC calls from a method -> handler table and records every call.

    A handler is either a plain value (returned as `result`) or a callable
    taking the params list and returning an httpx.Response or a value.
    """

    def __init__(self) -> None:
        self.calls: List[tuple[str, list]] = []
        self.handlers: Dict[str, Any] = {}

    def on(self, method: str, handler: Any) -> "ScriptedNode":
        self.handlers[method] = handler
        return self

    def methods(self) -> List[str]:
        return [m for m, _ in self.calls]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method, params = body["method"], body["params"]
        self.calls.append((method, params))
        if method not in self.handlers:
            return rpc_reply(request, error={"code": -32601, "message": "Method not found"}, status=404)
        handler = self.handlers[method]
        out = handler(params) if callable(handler) else handler
        if isinstance(out, httpx.Response):
            return out
        return rpc_reply(request, out)


@pytest.fixture
def node() -> Iterator[ScriptedNode]:
    scripted = ScriptedNode()
    with respx.mock(assert_all_called=False) as router:
        router.post(RPC_URL).mock(side_effect=scripted)
        yield scripted


@pytest.fixture
def client(node: ScriptedNode) -> Iterator[BitcoinClient]:
    with BitcoinClient(RPC_URL, RPC_USER, RPC_PASSWORD, params=REGTEST) as c:
        yield c


# ----------------------------
# Proxy app over an in-process upstream
# ----------------------------
class Upstream:
    """Mutable stand-in for the node the proxy talks to."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda req: httpx.Response(
            200,
            content=b'{"result":{"chain":"regtest","blocks":0},"error":null,"id":1}',
            headers={"content-type": "application/json"},
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        rpc_url=RPC_URL,
        rpc_user=RPC_USER,
        rpc_password=RPC_PASSWORD,
        network="regtest",
    )


@pytest.fixture
async def app(settings: Settings, upstream: Upstream) -> AsyncIterator[FastAPI]:
    application = create_app(settings, upstream_transport=httpx.MockTransport(upstream))
    yield application
    await application.state.upstream.aclose()


@pytest.fixture
async def aclient(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Async HTTP client bound to the ASGI app, no server started."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
