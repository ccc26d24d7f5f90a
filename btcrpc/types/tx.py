"""
Raw transaction and block decoding.

Transactions and blocks cross the wire as hex of their serialized bytes. The
decoder understands both the legacy layout and the segwit layout (marker 0x00,
flag 0x01, per-input witness stacks after the outputs).

    tx = Transaction.from_hex(MAINNET, "0100000001...")
    tx.txid            # Sha256Hash of the witness-stripped serialization
    tx.outputs[0].value
    tx.outputs[0].address(MAINNET)
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from ..errors import MarshallingError, NetworkMismatchError
from ..params import NetworkParams
from ..utils.bytes import BytesLike, ByteReader, compact_size_encode, from_hex, to_hex
from ..utils.hash import double_sha256
from .core import Address, Coin, Sha256Hash, params_from_context

__all__ = ["TxIn", "TxOut", "Transaction", "BlockHeader", "Block", "merkle_root"]

_SEGWIT_MARKER = b"\x00\x01"
_HEADER_SIZE = 80


@dataclass(frozen=True)
class TxIn:
    prev_hash: Sha256Hash
    prev_index: int
    script_sig: bytes = b""
    sequence: int = 0xFFFFFFFF
    witness: Tuple[bytes, ...] = ()

    @property
    def is_coinbase(self) -> bool:
        return self.prev_hash == Sha256Hash.ZERO and self.prev_index == 0xFFFFFFFF  # type: ignore[attr-defined]


@dataclass(frozen=True)
class TxOut:
    value: Coin
    script_pubkey: bytes

    def address(self, params: NetworkParams) -> Optional[Address]:
        """Address paid by this output, or None for non-standard scripts."""
        return Address.from_script_pubkey(params, self.script_pubkey)


@dataclass(frozen=True)
class Transaction:
    params: NetworkParams
    version: int
    inputs: Tuple[TxIn, ...]
    outputs: Tuple[TxOut, ...]
    lock_time: int = 0
    _txid: Optional[Sha256Hash] = field(default=None, repr=False, compare=False)

    # decoding

    @classmethod
    def parse(cls, params: NetworkParams, data: BytesLike) -> "Transaction":
        reader = ByteReader(data)
        tx = cls.read(params, reader)
        if reader.remaining():
            raise MarshallingError(f"{reader.remaining()} trailing bytes after transaction")
        return tx

    @classmethod
    def from_hex(cls, params: NetworkParams, s: str) -> "Transaction":
        try:
            raw = from_hex(s)
        except ValueError as e:
            raise MarshallingError(f"invalid transaction hex: {e}") from e
        return cls.parse(params, raw)

    @classmethod
    def read(cls, params: NetworkParams, reader: ByteReader) -> "Transaction":
        try:
            version = reader.i32()
            segwit = reader.peek(2) == _SEGWIT_MARKER
            if segwit:
                reader.read(2)
            ins = []
            for _ in range(reader.compact_size()):
                prev = Sha256Hash(reader.read(32))
                index = reader.u32()
                script = reader.var_bytes()
                sequence = reader.u32()
                ins.append((prev, index, script, sequence))
            outs = []
            for _ in range(reader.compact_size()):
                value = Coin(reader.i64())
                outs.append(TxOut(value=value, script_pubkey=reader.var_bytes()))
            witnesses: List[Tuple[bytes, ...]] = [()] * len(ins)
            if segwit:
                witnesses = [
                    tuple(reader.var_bytes() for _ in range(reader.compact_size())) for _ in ins
                ]
            lock_time = reader.u32()
        except ValueError as e:
            raise MarshallingError(f"malformed transaction: {e}") from e
        inputs = tuple(
            TxIn(prev_hash=p, prev_index=i, script_sig=s, sequence=q, witness=w)
            for (p, i, s, q), w in zip(ins, witnesses)
        )
        return cls(params=params, version=version, inputs=inputs, outputs=tuple(outs), lock_time=lock_time)

    # encoding

    @property
    def has_witness(self) -> bool:
        return any(txin.witness for txin in self.inputs)

    def serialize(self, *, include_witness: bool = True) -> bytes:
        witness = include_witness and self.has_witness
        out = bytearray(struct.pack("<i", self.version))
        if witness:
            out += _SEGWIT_MARKER
        out += compact_size_encode(len(self.inputs))
        for txin in self.inputs:
            out += txin.prev_hash.raw
            out += struct.pack("<I", txin.prev_index)
            out += compact_size_encode(len(txin.script_sig)) + txin.script_sig
            out += struct.pack("<I", txin.sequence)
        out += compact_size_encode(len(self.outputs))
        for txout in self.outputs:
            out += struct.pack("<q", txout.value.satoshis)
            out += compact_size_encode(len(txout.script_pubkey)) + txout.script_pubkey
        if witness:
            for txin in self.inputs:
                out += compact_size_encode(len(txin.witness))
                for item in txin.witness:
                    out += compact_size_encode(len(item)) + item
        out += struct.pack("<I", self.lock_time)
        return bytes(out)

    def to_hex(self) -> str:
        return to_hex(self.serialize())

    @property
    def txid(self) -> Sha256Hash:
        if self._txid is None:
            object.__setattr__(self, "_txid", Sha256Hash.of(self.serialize(include_witness=False)))
        return self._txid  # type: ignore[return-value]

    @property
    def wtxid(self) -> Sha256Hash:
        return Sha256Hash.of(self.serialize())

    @property
    def is_coinbase(self) -> bool:
        return len(self.inputs) == 1 and self.inputs[0].is_coinbase

    def total_output(self) -> Coin:
        total = Coin(0)
        for txout in self.outputs:
            total = total + txout.value
        return total

    def output_addresses(self) -> List[Optional[Address]]:
        return [txout.address(self.params) for txout in self.outputs]

    def check_network(self, params: NetworkParams) -> "Transaction":
        if self.params != params:
            raise NetworkMismatchError(
                f"transaction {self.txid} was decoded for network {self.params.name}, not {params.name}",
                expected=params,
                actual=self.params,
            )
        return self

    @classmethod
    def _validate(cls, value: Any, info: core_schema.ValidationInfo) -> "Transaction":
        params = params_from_context(info)
        if isinstance(value, cls):
            if params is not None:
                value.check_network(params)
            return value
        if not isinstance(value, str):
            raise ValueError(f"expected transaction hex, got {type(value).__name__}")
        if params is None:
            raise ValueError("network parameters are required to decode a transaction")
        try:
            return cls.from_hex(params, value)
        except MarshallingError as e:
            raise ValueError(str(e)) from e

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.with_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(lambda t: t.to_hex()),
        )


def merkle_root(hashes: Sequence[Sha256Hash]) -> Sha256Hash:
    """Merkle root over txids; an odd level duplicates its last entry."""
    if not hashes:
        raise MarshallingError("merkle root of an empty list")
    level = [h.raw for h in hashes]
    while len(level) > 1:
        if len(level) % 2:
            level.append(level[-1])
        level = [double_sha256(level[i] + level[i + 1]) for i in range(0, len(level), 2)]
    return Sha256Hash(level[0])


@dataclass(frozen=True)
class BlockHeader:
    version: int
    prev_block: Sha256Hash
    merkle_root: Sha256Hash
    time: int
    bits: int
    nonce: int

    @classmethod
    def read(cls, reader: ByteReader) -> "BlockHeader":
        return cls(
            version=reader.i32(),
            prev_block=Sha256Hash(reader.read(32)),
            merkle_root=Sha256Hash(reader.read(32)),
            time=reader.u32(),
            bits=reader.u32(),
            nonce=reader.u32(),
        )

    def serialize(self) -> bytes:
        return (
            struct.pack("<i", self.version)
            + self.prev_block.raw
            + self.merkle_root.raw
            + struct.pack("<III", self.time, self.bits, self.nonce)
        )

    @property
    def hash(self) -> Sha256Hash:
        return Sha256Hash.of(self.serialize())


@dataclass(frozen=True)
class Block:
    params: NetworkParams
    header: BlockHeader
    transactions: Tuple[Transaction, ...]

    @classmethod
    def parse(cls, params: NetworkParams, data: BytesLike) -> "Block":
        reader = ByteReader(data)
        try:
            header = BlockHeader.read(reader)
            count = reader.compact_size()
        except ValueError as e:
            raise MarshallingError(f"malformed block header: {e}") from e
        txs = tuple(Transaction.read(params, reader) for _ in range(count))
        if reader.remaining():
            raise MarshallingError(f"{reader.remaining()} trailing bytes after block")
        return cls(params=params, header=header, transactions=txs)

    @classmethod
    def from_hex(cls, params: NetworkParams, s: str) -> "Block":
        try:
            raw = from_hex(s)
        except ValueError as e:
            raise MarshallingError(f"invalid block hex: {e}") from e
        return cls.parse(params, raw)

    @property
    def hash(self) -> Sha256Hash:
        return self.header.hash

    def serialize(self) -> bytes:
        body = b"".join(tx.serialize() for tx in self.transactions)
        return self.header.serialize() + compact_size_encode(len(self.transactions)) + body

    def to_hex(self) -> str:
        return to_hex(self.serialize())

    def check_merkle_root(self) -> bool:
        if not self.transactions:
            return False
        return merkle_root([tx.txid for tx in self.transactions]) == self.header.merkle_root

    @classmethod
    def _validate(cls, value: Any, info: core_schema.ValidationInfo) -> "Block":
        params = params_from_context(info)
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"expected block hex, got {type(value).__name__}")
        if params is None:
            raise ValueError("network parameters are required to decode a block")
        try:
            return cls.from_hex(params, value)
        except MarshallingError as e:
            raise ValueError(str(e)) from e

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.with_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(lambda b: b.to_hex()),
        )
