"""
btcrpc.rpc
----------

Command dispatch over HTTP.

- JsonRpcRequest / NULL : request envelope and explicit-null sentinel (see .request)
- RpcClient             : blocking JSON-RPC client (see .http)
- to_wire / from_wire   : parameter and result marshalling (see .marshal)

    from btcrpc.rpc import RpcClient
    rpc = RpcClient("http://127.0.0.1:8332", "user", "pass")
"""

from __future__ import annotations

from .http import RpcClient
from .marshal import NULL, classify_transport_failure, from_wire, to_wire
from .request import JsonRpcRequest

__all__ = ["RpcClient", "JsonRpcRequest", "NULL", "to_wire", "from_wire", "classify_transport_failure"]
