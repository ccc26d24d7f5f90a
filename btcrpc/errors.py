"""
Typed error classes for the btcrpc client.

These are raised by rpc/http, rpc/marshal and the value types so callers can
catch specific failure modes while still being able to catch the base
`BtcRpcError`.

- TransportError     : the request never produced a JSON-RPC response
                       (connection refused/reset, end of stream, timeout,
                       non-JSON HTTP error such as 401)
- RpcStatusError     : the node answered with an `error` member
- MarshallingError   : a value could not be converted to or from its wire form
- AddressError       : an address string is malformed
- NetworkMismatchError: an address/transaction belongs to another network
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Optional

__all__ = [
    "BtcRpcError",
    "TransientFailure",
    "TransportError",
    "RpcErrorCode",
    "RpcStatusError",
    "MarshallingError",
    "AddressError",
    "NetworkMismatchError",
    "from_jsonrpc_error",
]


class BtcRpcError(Exception):
    """Base class for all client errors."""


class TransientFailure(str, Enum):
    """Transport failures that a node which is still starting up produces."""

    CONNECTION_REFUSED = "connection_refused"
    CONNECTION_RESET = "connection_reset"
    END_OF_STREAM = "end_of_stream"


@dataclass(eq=False)
class TransportError(BtcRpcError):
    """Raised when no JSON-RPC response could be obtained from the endpoint."""

    message: str
    failure: Optional[TransientFailure] = None
    method: Optional[str] = None
    http_status: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"transport[{self.method or '-'}]: {self.message}"]
        if self.failure is not None:
            parts.append(f"failure={self.failure.value}")
        if self.http_status is not None:
            parts.append(f"http={self.http_status}")
        return " ".join(parts)

    @property
    def transient(self) -> bool:
        return self.failure is not None


class RpcErrorCode(IntEnum):
    # JSON-RPC 2.0 codes as used by the node
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # General application errors
    MISC_ERROR = -1
    TYPE_ERROR = -3
    INVALID_ADDRESS_OR_KEY = -5
    OUT_OF_MEMORY = -7
    INVALID_PARAMETER = -8
    DATABASE_ERROR = -20
    DESERIALIZATION_ERROR = -22
    VERIFY_ERROR = -25
    VERIFY_REJECTED = -26
    VERIFY_ALREADY_IN_CHAIN = -27
    IN_WARMUP = -28
    METHOD_DEPRECATED = -32

    # P2P client errors
    CLIENT_NOT_CONNECTED = -9
    CLIENT_IN_INITIAL_DOWNLOAD = -10
    CLIENT_NODE_ALREADY_ADDED = -23
    CLIENT_NODE_NOT_ADDED = -24

    # Wallet errors
    WALLET_ERROR = -4
    WALLET_INSUFFICIENT_FUNDS = -6
    WALLET_INVALID_ACCOUNT_NAME = -11
    WALLET_KEYPOOL_RAN_OUT = -12
    WALLET_UNLOCK_NEEDED = -13
    WALLET_PASSPHRASE_INCORRECT = -14
    WALLET_NOT_FOUND = -18


@dataclass(eq=False)
class RpcStatusError(BtcRpcError):
    """Raised when a JSON-RPC call returns an error object."""

    method: Optional[str]
    code: int
    message: str
    data: Optional[Any] = None
    request_id: Optional[Any] = None
    http_status: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"RPC[{self.method or '-'}] code={self.code} msg={self.message!r}"]
        if self.request_id is not None:
            parts.append(f"id={self.request_id}")
        if self.http_status is not None:
            parts.append(f"http={self.http_status}")
        if self.data is not None:
            parts.append(f"data={self.data!r}")
        return " ".join(parts)

    @property
    def code_enum(self) -> Optional[RpcErrorCode]:
        try:
            return RpcErrorCode(self.code)
        except ValueError:
            return None


class MarshallingError(BtcRpcError):
    """A value could not be converted between its typed and its wire form."""


class AddressError(MarshallingError, ValueError):
    """Malformed address string."""


class NetworkMismatchError(AddressError):
    def __init__(self, message: str, *, expected: Any = None, actual: Any = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


def from_jsonrpc_error(
    err_obj: Any,
    *,
    method: Optional[str] = None,
    request_id: Optional[Any] = None,
    http_status: Optional[int] = None,
) -> RpcStatusError:
    """
    Convert a JSON-RPC error member into RpcStatusError.

    `err_obj` should resemble: {"code": int, "message": str, "data": any?}.
    Non-object error members are kept verbatim in `data`.
    """
    if not isinstance(err_obj, dict):
        return RpcStatusError(
            method=method,
            code=int(RpcErrorCode.MISC_ERROR),
            message=str(err_obj),
            data=err_obj,
            request_id=request_id,
            http_status=http_status,
        )
    obj: Dict[str, Any] = err_obj
    try:
        code = int(obj.get("code", RpcErrorCode.MISC_ERROR))
    except (TypeError, ValueError):
        code = int(RpcErrorCode.MISC_ERROR)
    return RpcStatusError(
        method=method,
        code=code,
        message=str(obj.get("message", "Unknown JSON-RPC error")),
        data=obj.get("data"),
        request_id=request_id,
        http_status=http_status,
    )
