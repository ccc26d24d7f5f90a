from __future__ import annotations

"""
Chain status relay.

GET /chain/status sends one fixed `getblockchaininfo` call to the node and
pipes the node's response body back unchanged: same status code, same content
type, bytes forwarded chunk by chunk as they arrive. The JSON-RPC envelope is
never decoded here.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import httpx
import structlog
from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from btcrpc.rpc.marshal import classify_transport_failure
from btcrpc.rpc.request import JsonRpcRequest

from ..errors import UpstreamTimeout, UpstreamUnavailable

log = structlog.get_logger(__name__)
router = APIRouter(tags=["chain"])

STATUS_METHOD = "getblockchaininfo"

# hop-by-hop and length headers are recomputed by the server
_FORWARD_HEADERS = ("content-encoding", "cache-control", "location")


@dataclass
class Upstream:
    """Shared outbound connection pool to the node, held on app.state."""

    client: httpx.AsyncClient
    url: str

    async def aclose(self) -> None:
        await self.client.aclose()


def build_upstream(
    url: str,
    *,
    auth: Optional[tuple[str, str]] = None,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Upstream:
    client = httpx.AsyncClient(
        auth=httpx.BasicAuth(*auth) if auth else None,
        timeout=timeout,
        follow_redirects=False,
        transport=transport,
        headers={"Content-Type": "application/json", "Accept": "application/json"},
    )
    return Upstream(client=client, url=url)


@router.get("/chain/status", summary="Relay getblockchaininfo from the node", response_class=StreamingResponse)
async def chain_status(request: Request) -> StreamingResponse:
    upstream: Upstream = request.app.state.upstream
    call = JsonRpcRequest(STATUS_METHOD)
    outbound = upstream.client.build_request("POST", upstream.url, content=call.to_json())
    try:
        resp = await upstream.client.send(outbound, stream=True, follow_redirects=False)
    except httpx.TimeoutException as e:
        raise UpstreamTimeout(details={"method": STATUS_METHOD}) from e
    except httpx.TransportError as e:
        failure = classify_transport_failure(e)
        log.warning("upstream_unavailable", error=str(e), failure=failure)
        raise UpstreamUnavailable(
            details={"method": STATUS_METHOD, "failure": failure.value if failure else None}
        ) from e

    headers: Dict[str, str] = {k: resp.headers[k] for k in _FORWARD_HEADERS if k in resp.headers}
    log.debug("relay_status", status=resp.status_code, id=call.id)
    return StreamingResponse(
        resp.aiter_raw(),
        status_code=resp.status_code,
        media_type=resp.headers.get("content-type"),
        headers=headers,
        background=BackgroundTask(resp.aclose),
    )
