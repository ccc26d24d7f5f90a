from __future__ import annotations

import base64
import json
from typing import Callable, List

import httpx
import pytest

from btcrpc.errors import MarshallingError, RpcErrorCode, RpcStatusError, TransientFailure, TransportError
from btcrpc.params import REGTEST
from btcrpc.rpc.http import RpcClient
from btcrpc.types.core import Sha256Hash

URL = "http://127.0.0.1:18443/"
BLOCK_HASH = "0f9188f13cb7b2c71f2a335e3a4fc328bf5beb436012afca590b1a11466e2206"


def _client(handler: Callable[[httpx.Request], httpx.Response], seen: List[httpx.Request]) -> RpcClient:
    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    return RpcClient(URL, "alice", "s3cret", params=REGTEST, transport=httpx.MockTransport(record))


def test_envelope_and_auth():
    seen: List[httpx.Request] = []
    rpc = _client(lambda req: httpx.Response(200, json={"result": BLOCK_HASH, "error": None, "id": 1}), seen)

    assert rpc.request("getblockhash", [0], result_type=Sha256Hash) == Sha256Hash.from_hex(BLOCK_HASH)

    (req,) = seen
    assert req.method == "POST"
    assert json.loads(req.content) == {"jsonrpc": "1.0", "id": 1, "method": "getblockhash", "params": [0]}
    assert req.headers["content-type"] == "application/json"
    expected = base64.b64encode(b"alice:s3cret").decode()
    assert req.headers["authorization"] == f"Basic {expected}"


def test_request_ids_increase_per_client():
    seen: List[httpx.Request] = []
    rpc = _client(lambda req: httpx.Response(200, json={"result": 1, "error": None, "id": None}), seen)
    rpc.request("getblockcount")
    rpc.request("getblockcount")
    assert [json.loads(r.content)["id"] for r in seen] == [1, 2]


def test_error_member_wins_over_http_status():
    seen: List[httpx.Request] = []
    body = {"result": None, "error": {"code": -8, "message": "Block height out of range"}, "id": 1}
    rpc = _client(lambda req: httpx.Response(500, json=body), seen)

    with pytest.raises(RpcStatusError) as excinfo:
        rpc.request("getblockhash", [10_000])
    err = excinfo.value
    assert err.code == -8
    assert err.code_enum is RpcErrorCode.INVALID_PARAMETER
    assert err.message == "Block height out of range"
    assert err.method == "getblockhash"
    assert err.http_status == 500


def test_unauthorized_without_body_is_transport_error():
    seen: List[httpx.Request] = []
    rpc = _client(lambda req: httpx.Response(401, content=b""), seen)
    with pytest.raises(TransportError) as excinfo:
        rpc.request("getblockcount")
    assert excinfo.value.http_status == 401
    assert excinfo.value.failure is None
    assert not excinfo.value.transient


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"error": None, "id": 1}),
        httpx.Response(200, content=b"<html>not json</html>"),
        httpx.Response(200, json=[1, 2, 3]),
        httpx.Response(200, json={"result": "xyz", "error": None, "id": 1}),
    ],
    ids=["no-result", "not-json", "not-object", "wrong-type"],
)
def test_malformed_success_is_marshalling_error(response):
    seen: List[httpx.Request] = []
    rpc = _client(lambda req: response, seen)
    with pytest.raises(MarshallingError):
        rpc.request("getblockhash", [0], result_type=Sha256Hash)


def test_connection_refused_is_transient_and_not_retried():
    seen: List[httpx.Request] = []

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    rpc = _client(refuse, seen)
    with pytest.raises(TransportError) as excinfo:
        rpc.request("getblockcount")
    assert excinfo.value.failure is TransientFailure.CONNECTION_REFUSED
    assert excinfo.value.transient
    assert excinfo.value.method == "getblockcount"
    assert len(seen) == 1


def test_dropped_connection_is_end_of_stream():
    seen: List[httpx.Request] = []

    def drop(request: httpx.Request) -> httpx.Response:
        raise httpx.RemoteProtocolError("Server disconnected without sending a response.", request=request)

    rpc = _client(drop, seen)
    with pytest.raises(TransportError) as excinfo:
        rpc.request("getblockcount")
    assert excinfo.value.failure is TransientFailure.END_OF_STREAM


def test_redirect_is_not_followed():
    seen: List[httpx.Request] = []
    rpc = _client(lambda req: httpx.Response(302, headers={"location": "http://elsewhere/"}), seen)
    with pytest.raises(TransportError) as excinfo:
        rpc.request("getblockcount")
    assert excinfo.value.http_status == 302
    assert len(seen) == 1


def test_client_without_credentials_sends_no_auth():
    seen: List[httpx.Request] = []

    def ok(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"result": 0, "error": None, "id": 1})

    with RpcClient(URL, transport=httpx.MockTransport(ok)) as rpc:
        assert rpc.request("getblockcount", result_type=int) == 0
    assert "authorization" not in seen[0].headers
