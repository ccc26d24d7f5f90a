"""
Wire <-> typed value conversion for the dispatcher.

to_wire(value, params)          -> JSON-ready parameter
from_wire(result, tp, params)   -> typed result (pydantic TypeAdapter)
loads(body)                     -> JSON with numbers-with-fractions as Decimal
classify_transport_failure(exc) -> TransientFailure | None
"""

from __future__ import annotations

import json
import socket
import ssl
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Any, Iterator, List, Mapping, Optional

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from ..errors import MarshallingError, NetworkMismatchError, TransientFailure
from ..params import NetworkParams
from ..types.core import Address, Coin, PrivateKey, RawJson, Sha256Hash
from ..types.tx import Block, Transaction
from ..utils.bytes import to_hex

__all__ = ["NULL", "to_wire", "from_wire", "loads", "classify_transport_failure"]


class _Null:
    """Explicit JSON null parameter that is never trimmed."""

    _instance: Optional["_Null"] = None

    def __new__(cls) -> "_Null":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NULL"


NULL = _Null()


# --- parameters ---------------------------------------------------------------


def to_wire(value: Any, params: Optional[NetworkParams] = None) -> Any:
    """
    Convert one request parameter to its JSON form.

    Addresses and transactions are checked against `params` when given.
    """
    if value is None or value is NULL:
        return None
    if isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Coin):
        return value.to_wire()
    if isinstance(value, Sha256Hash):
        return value.to_hex()
    if isinstance(value, Address):
        if params is not None:
            value.check_network(params)
        return str(value)
    if isinstance(value, Transaction):
        if params is not None:
            value.check_network(params)
        return value.to_hex()
    if isinstance(value, Block):
        return value.to_hex()
    if isinstance(value, PrivateKey):
        return value.to_wif()
    if isinstance(value, RawJson):
        return value.value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return to_hex(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, float):
        return value
    if isinstance(value, Enum):
        return to_wire(value.value, params)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, Mapping):
        return {_wire_key(k, params): to_wire(v, params) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_wire(v, params) for v in value]
    raise MarshallingError(f"cannot serialize parameter of type {type(value).__name__}")


def _wire_key(key: Any, params: Optional[NetworkParams]) -> str:
    out = to_wire(key, params)
    if not isinstance(out, str):
        raise MarshallingError(f"mapping key {key!r} does not serialize to a string")
    return out


# --- results ------------------------------------------------------------------


def loads(body: bytes | str) -> Any:
    """Parse a JSON body keeping fractional numbers exact."""
    return json.loads(body, parse_float=Decimal)


@lru_cache(maxsize=256)
def _adapter(result_type: Any) -> TypeAdapter:
    return TypeAdapter(result_type)


def _network_mismatch(err: ValidationError) -> Optional[NetworkMismatchError]:
    for item in err.errors():
        cause = (item.get("ctx") or {}).get("error")
        if isinstance(cause, NetworkMismatchError):
            return cause
    return None


def from_wire(
    result: Any,
    result_type: Any,
    params: Optional[NetworkParams] = None,
    *,
    method: Optional[str] = None,
) -> Any:
    """
    Validate a decoded JSON result against `result_type`.

    `result_type=None` returns the value unchanged.
    """
    if result_type is None:
        return result
    try:
        return _adapter(result_type).validate_python(result, context={"params": params})
    except ValidationError as e:
        mismatch = _network_mismatch(e)
        if mismatch is not None:
            raise mismatch from e
        name = getattr(result_type, "__name__", repr(result_type))
        raise MarshallingError(f"cannot decode {method or 'result'} as {name}: {e}") from e


# --- transport classification -------------------------------------------------


def _chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    cur: Optional[BaseException] = exc
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        yield cur
        cur = cur.__cause__ or cur.__context__


def classify_transport_failure(exc: BaseException) -> Optional[TransientFailure]:
    """
    Map a transport exception to the transient categories a starting node
    produces. Returns None for failures that waiting will not fix (DNS,
    TLS, timeouts, malformed URLs).
    """
    chain: List[BaseException] = list(_chain(exc))
    for e in chain:
        if isinstance(e, (socket.gaierror, ssl.SSLError, httpx.TimeoutException, httpx.UnsupportedProtocol)):
            return None
    for e in chain:
        if isinstance(e, ConnectionRefusedError):
            return TransientFailure.CONNECTION_REFUSED
        if isinstance(e, (ConnectionResetError, ConnectionAbortedError, BrokenPipeError)):
            return TransientFailure.CONNECTION_RESET
        if isinstance(e, (httpx.RemoteProtocolError, EOFError)):
            return TransientFailure.END_OF_STREAM
    for e in chain:
        if isinstance(e, httpx.ConnectError):
            return TransientFailure.CONNECTION_REFUSED
        if isinstance(e, (httpx.ReadError, httpx.WriteError)):
            return TransientFailure.CONNECTION_RESET
    return None
