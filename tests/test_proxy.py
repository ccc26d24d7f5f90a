from __future__ import annotations

import asyncio
import base64
import json

import httpx
import pytest

from .conftest import RPC_PASSWORD, RPC_URL, RPC_USER

# GET /chain/status forwards one fixed getblockchaininfo call and relays the
# node's answer byte for byte. Failures reaching the node become problem+json.


@pytest.mark.asyncio
async def test_one_upstream_call_per_request(aclient, upstream):
    resp = await aclient.get("/chain/status")
    assert resp.status_code == 200

    (req,) = upstream.requests
    assert req.method == "POST"
    assert str(req.url) == RPC_URL
    body = json.loads(req.content)
    assert body["method"] == "getblockchaininfo"
    assert body["params"] == []
    assert body["jsonrpc"] == "1.0"
    expected = base64.b64encode(f"{RPC_USER}:{RPC_PASSWORD}".encode()).decode()
    assert req.headers["authorization"] == f"Basic {expected}"


@pytest.mark.asyncio
async def test_body_and_content_type_are_unaltered(aclient, upstream):
    # odd spacing and key order must survive: the proxy never re-encodes
    payload = b'{"result":{"blocks": 101,"chain":"regtest"},  "error":null,"id":"x"}\n'
    upstream.respond = lambda req: httpx.Response(
        200, content=payload, headers={"content-type": "application/json", "cache-control": "no-store"}
    )

    resp = await aclient.get("/chain/status")
    assert resp.status_code == 200
    assert resp.content == payload
    assert resp.headers["content-type"] == "application/json"
    assert resp.headers["cache-control"] == "no-store"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, payload, content_type",
    [
        (500, b'{"result":null,"error":{"code":-28,"message":"Loading block index..."},"id":1}', "application/json"),
        (401, b"", None),
        (503, b"<html>busy</html>", "text/html"),
    ],
    ids=["rpc-error", "unauthorized", "html"],
)
async def test_error_statuses_are_relayed(aclient, upstream, status, payload, content_type):
    headers = {"content-type": content_type} if content_type else {}
    upstream.respond = lambda req: httpx.Response(status, content=payload, headers=headers)

    resp = await aclient.get("/chain/status")
    assert resp.status_code == status
    assert resp.content == payload
    if content_type:
        assert resp.headers["content-type"].startswith(content_type)


@pytest.mark.asyncio
async def test_redirect_is_relayed_not_followed(aclient, upstream):
    upstream.respond = lambda req: httpx.Response(302, headers={"location": "http://elsewhere.invalid/"})

    resp = await aclient.get("/chain/status")
    assert resp.status_code == 302
    assert resp.headers["location"] == "http://elsewhere.invalid/"
    assert len(upstream.requests) == 1


async def _asgi_get(app, path: str) -> list:
    """Drive the ASGI app directly and return every message it sends."""
    messages = []
    finished = asyncio.Event()
    request_sent = False

    async def receive():
        nonlocal request_sent
        if not request_sent:
            request_sent = True
            return {"type": "http.request", "body": b"", "more_body": False}
        await finished.wait()
        return {"type": "http.disconnect"}

    async def send(message):
        messages.append(message)
        if message["type"] == "http.response.body" and not message.get("more_body", False):
            finished.set()

    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "root_path": "",
        "headers": [(b"host", b"testserver")],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }
    await app(scope, receive, send)
    return messages


@pytest.mark.asyncio
async def test_body_is_relayed_chunk_by_chunk(app, upstream):
    chunks = [b'{"result":', b'{"chain":"regtest",', b'"blocks":101}', b',"error":null,"id":1}']

    async def body():
        for chunk in chunks:
            yield chunk

    upstream.respond = lambda req: httpx.Response(200, content=body(), headers={"content-type": "application/json"})

    messages = await _asgi_get(app, "/chain/status")
    start = messages[0]
    assert start["type"] == "http.response.start"
    assert start["status"] == 200
    relayed = [m["body"] for m in messages if m["type"] == "http.response.body" and m.get("body")]
    assert relayed == chunks


@pytest.mark.asyncio
async def test_overlapping_requests_each_get_their_own_upstream_call(aclient, upstream):
    inflight = 3
    arrived = []
    all_in = asyncio.Event()

    async def respond(req: httpx.Request) -> httpx.Response:
        arrived.append(json.loads(req.content)["id"])
        n = len(arrived)
        if n == inflight:
            all_in.set()
        # every call is held until all of them reached the node
        await all_in.wait()
        return httpx.Response(200, content=b'{"n":%d}' % n, headers={"content-type": "application/json"})

    upstream.respond = respond
    responses = await asyncio.wait_for(
        asyncio.gather(*(aclient.get("/chain/status") for _ in range(inflight))), timeout=5
    )

    assert [r.status_code for r in responses] == [200] * inflight
    assert sorted(r.json()["n"] for r in responses) == [1, 2, 3]
    assert len(upstream.requests) == inflight


@pytest.mark.asyncio
async def test_unreachable_node_is_bad_gateway(aclient, upstream):
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    upstream.respond = refuse
    resp = await aclient.get("/chain/status", headers={"X-Request-Id": "req-42"})

    assert resp.status_code == 502
    assert resp.headers["content-type"].startswith("application/problem+json")
    problem = resp.json()
    assert problem["status"] == 502
    assert problem["code"] == "upstream_unavailable"
    assert problem["details"]["method"] == "getblockchaininfo"
    assert problem["details"]["failure"] == "connection_refused"
    assert problem["request_id"] == "req-42"
    assert problem["instance"] == "/chain/status"


@pytest.mark.asyncio
async def test_node_timeout_is_gateway_timeout(aclient, upstream):
    def stall(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    upstream.respond = stall
    resp = await aclient.get("/chain/status")
    assert resp.status_code == 504
    assert resp.json()["code"] == "upstream_timeout"


@pytest.mark.asyncio
async def test_request_id_is_echoed_or_generated(aclient):
    resp = await aclient.get("/chain/status", headers={"X-Request-Id": "abc.123"})
    assert resp.headers["x-request-id"] == "abc.123"

    resp = await aclient.get("/chain/status", headers={"X-Request-Id": "bad id with spaces"})
    generated = resp.headers["x-request-id"]
    assert generated != "bad id with spaces"
    assert len(generated) == 32


@pytest.mark.asyncio
async def test_unknown_route_is_problem_json(aclient, upstream):
    resp = await aclient.get("/chain/nope")
    assert resp.status_code == 404
    assert resp.headers["content-type"].startswith("application/problem+json")
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_only_get_is_allowed(aclient, upstream):
    resp = await aclient.post("/chain/status", content=b"{}")
    assert resp.status_code == 405
    assert upstream.requests == []
