from __future__ import annotations

import json
import socket
from decimal import Decimal
from typing import List, Optional

import httpx
import pytest

from btcrpc.errors import MarshallingError, NetworkMismatchError, TransientFailure
from btcrpc.params import MAINNET, REGTEST
from btcrpc.rpc.marshal import NULL, classify_transport_failure, from_wire, loads, to_wire
from btcrpc.rpc.request import JsonRpcRequest, trim_params
from btcrpc.types.core import Address, Coin, Sha256Hash
from btcrpc.types.models import AddressGroupingItem, Outpoint, TxOutInfo

TXID = "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b"


# --- parameters ---------------------------------------------------------------


def test_scalar_parameters():
    assert to_wire(Coin.parse("1.5")) == "1.50000000"
    assert to_wire(Sha256Hash.from_hex(TXID)) == TXID
    assert to_wire(b"\x01\xff") == "01ff"
    assert to_wire(Decimal("0.1")) == "0.1"
    assert to_wire(True) is True
    assert to_wire(NULL) is None


def test_address_parameters_are_network_checked():
    addr = Address.from_witness_program(REGTEST, 0, b"\x01" * 20)
    assert to_wire(addr, REGTEST) == str(addr)
    with pytest.raises(NetworkMismatchError):
        to_wire(addr, MAINNET)


def test_mapping_and_model_parameters():
    addr = Address.from_witness_program(REGTEST, 0, b"\x01" * 20)
    assert to_wire({addr: Coin.parse("0.25")}, REGTEST) == {str(addr): "0.25000000"}
    assert to_wire([Outpoint(txid=Sha256Hash.from_hex(TXID), vout=0)]) == [{"txid": TXID, "vout": 0}]
    with pytest.raises(MarshallingError):
        to_wire({1: "x"})
    with pytest.raises(MarshallingError):
        to_wire(object())


def test_trailing_nulls_are_trimmed():
    assert trim_params([1, None, None]) == [1]
    assert JsonRpcRequest("getbalance", (None, 6)).wire_params() == [None, 6]
    assert JsonRpcRequest("getbalance", (None, None)).wire_params() == []
    assert JsonRpcRequest("m", (1, None, NULL)).wire_params() == [1, None, None]


def test_request_envelope():
    req = JsonRpcRequest("getblockhash", (100,), id=7)
    assert json.loads(req.to_json()) == {"jsonrpc": "1.0", "id": 7, "method": "getblockhash", "params": [100]}
    with pytest.raises(ValueError):
        JsonRpcRequest("")


# --- results ------------------------------------------------------------------


def test_loads_keeps_amounts_exact():
    body = loads(b'{"result": 0.1, "error": null, "id": 1}')
    assert body["result"] == Decimal("0.1")
    assert from_wire(body["result"], Coin).satoshis == 10_000_000


def test_from_wire_typed_results():
    assert from_wire(TXID, Sha256Hash) == Sha256Hash.from_hex(TXID)
    assert from_wire(None, Optional[TxOutInfo], REGTEST) is None
    assert from_wire({"x": 1}, None) == {"x": 1}
    assert from_wire([TXID], List[Sha256Hash]) == [Sha256Hash.from_hex(TXID)]


def test_from_wire_rejects_bad_results():
    with pytest.raises(MarshallingError):
        from_wire("nope", Sha256Hash, method="getbestblockhash")
    with pytest.raises(MarshallingError):
        from_wire(Decimal("0.123456789"), Coin)
    with pytest.raises(MarshallingError):
        from_wire(1.5, Coin)


@pytest.mark.parametrize(
    "raw",
    [
        # more significant digits than the default decimal context keeps
        b"0.00000001000000000000000000000000000000001",
        b"20999999.999999990000000000000000000000001",
        b"1e999999",
        b"-1e999999",
        b"1e-999999",
        b"21000000.00000001",
    ],
)
def test_wire_amounts_are_never_rounded(raw):
    body = loads(b'{"result": ' + raw + b', "error": null, "id": 1}')
    with pytest.raises(MarshallingError):
        from_wire(body["result"], Coin)


def test_wire_amounts_with_redundant_digits():
    body = loads(b'{"result": [0.000000010000000000000000000000000000, 2.1E+7, 0E+999999, -0.5], "id": 1}')
    coins = from_wire(body["result"], List[Coin])
    assert [c.satoshis for c in coins] == [1, Coin.MAX_SATOSHIS, 0, -50_000_000]


def test_from_wire_surfaces_network_mismatch():
    mainnet = str(Address.from_witness_program(MAINNET, 0, b"\x02" * 20))
    with pytest.raises(NetworkMismatchError):
        from_wire(mainnet, Address, REGTEST)
    with pytest.raises(NetworkMismatchError):
        from_wire([[mainnet, Decimal("1")]], List[AddressGroupingItem], REGTEST)


def test_address_needs_network_context():
    with pytest.raises(MarshallingError):
        from_wire("bcrt1qqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqq", Address, None)


# --- transport classification -------------------------------------------------


def _wrapped(outer: BaseException, cause: BaseException) -> BaseException:
    outer.__cause__ = cause
    return outer


@pytest.mark.parametrize(
    "exc, expected",
    [
        (_wrapped(httpx.ConnectError("boom"), ConnectionRefusedError()), TransientFailure.CONNECTION_REFUSED),
        (_wrapped(httpx.ReadError("boom"), ConnectionResetError()), TransientFailure.CONNECTION_RESET),
        (httpx.RemoteProtocolError("Server disconnected without sending a response."), TransientFailure.END_OF_STREAM),
        (httpx.ConnectError("All connection attempts failed"), TransientFailure.CONNECTION_REFUSED),
        (httpx.ReadError("boom"), TransientFailure.CONNECTION_RESET),
        (_wrapped(httpx.ConnectError("boom"), socket.gaierror(-2, "Name or service not known")), None),
        (httpx.ConnectTimeout("timed out"), None),
        (httpx.UnsupportedProtocol("ftp"), None),
    ],
    ids=["refused", "reset", "eof", "connect", "read", "dns", "timeout", "scheme"],
)
def test_classify_transport_failure(exc, expected):
    assert classify_transport_failure(exc) is expected
