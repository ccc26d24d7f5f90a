from __future__ import annotations

"""
HTTP JSON-RPC client (sync) for a Bitcoin-Core-style node.

- One blocking POST per call through a pooled httpx.Client.
- Basic auth when credentials are configured; redirects are never followed.
- No retries here: callers that want to wait for a node use btcrpc.wait.

Example:
    from btcrpc.rpc.http import RpcClient
    rpc = RpcClient("http://127.0.0.1:18443", "user", "pass", params=REGTEST)
    height = rpc.request("getblockcount", result_type=int)
"""

from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence

import httpx
import structlog

from ..errors import MarshallingError, TransportError, from_jsonrpc_error
from ..params import MAINNET, NetworkParams
from ..version import __version__
from .marshal import classify_transport_failure, from_wire, loads
from .request import JsonRpcRequest

log = structlog.get_logger(__name__)


@dataclass
class RpcClient:
    """Synchronous JSON-RPC 1.0 client over HTTP."""

    uri: str
    username: Optional[str] = None
    password: Optional[str] = None
    params: NetworkParams = MAINNET
    timeout: float = 30.0
    headers: Optional[Mapping[str, str]] = None
    transport: Optional[httpx.BaseTransport] = field(default=None, repr=False)
    _id_counter: Iterator[int] = field(default_factory=lambda: count(1), repr=False)
    _client: Any = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        merged_headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"btcrpc-python/{__version__}",
        }
        if self.headers:
            merged_headers.update(dict(self.headers))
        auth = httpx.BasicAuth(self.username, self.password or "") if self.username is not None else None
        self._client = httpx.Client(
            timeout=self.timeout,
            headers=merged_headers,
            auth=auth,
            follow_redirects=False,
            transport=self.transport,
        )

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    # --- public API ------------------------------------------------------

    def request(self, method: str, params: Sequence[Any] = (), *, result_type: Any = None) -> Any:
        """
        Perform a single JSON-RPC call and return the typed `result`.

        Raises TransportError, RpcStatusError or MarshallingError.
        """
        req = JsonRpcRequest(method, tuple(params), id=next(self._id_counter))
        body = req.to_json(self.params)
        log.debug("rpc_request", method=method, id=req.id)
        try:
            resp = self._client.post(self.uri, content=body)
        except (httpx.TransportError, OSError) as e:
            failure = classify_transport_failure(e)
            log.debug("rpc_transport_error", method=method, failure=failure, error=str(e))
            raise TransportError(
                message=str(e) or type(e).__name__,
                failure=failure,
                method=method,
            ) from e
        return self._handle_response(method, resp, result_type)

    # --- internals -------------------------------------------------------

    def _handle_response(self, method: str, resp: httpx.Response, result_type: Any) -> Any:
        status = resp.status_code
        try:
            payload = loads(resp.content)
        except ValueError as e:
            if status != 200:
                raise TransportError(
                    message=f"HTTP {status} {resp.reason_phrase}".strip(),
                    method=method,
                    http_status=status,
                ) from e
            raise MarshallingError(f"non-JSON response to {method}: {resp.text[:256]!r}") from e

        if not isinstance(payload, dict):
            if status != 200:
                raise TransportError(message=f"HTTP {status}", method=method, http_status=status)
            raise MarshallingError(f"response to {method} is not a JSON object")

        # the node answers errors with HTTP 500 and a JSON body; the body wins
        err = payload.get("error")
        if err is not None:
            raise from_jsonrpc_error(err, method=method, request_id=payload.get("id"), http_status=status)
        if status != 200:
            raise TransportError(message=f"HTTP {status} {resp.reason_phrase}".strip(), method=method, http_status=status)
        if "result" not in payload:
            raise MarshallingError(f"response to {method} has no result member")
        return from_wire(payload["result"], result_type, self.params, method=method)


__all__ = ["RpcClient"]
