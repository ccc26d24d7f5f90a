from __future__ import annotations

import struct
from typing import Tuple, Union

BytesLike = Union[bytes, bytearray, memoryview]


def ensure_bytes(data: Union[BytesLike, str]) -> bytes:
    """
    Ensure input is bytes.

    Accepts:
      - bytes / bytearray / memoryview  -> bytes(data)
      - str: treated as hex; even-length enforced

    Raises:
      ValueError on invalid hex strings.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return from_hex(data)
    raise TypeError(f"Unsupported type for ensure_bytes: {type(data)!r}")


def to_hex(b: BytesLike) -> str:
    """
    Bytes -> lowercase hex string. The node speaks unprefixed hex.
    """
    return bytes(b).hex()


def from_hex(s: str) -> bytes:
    """
    Hex string -> bytes.

    Enforces even-length and rejects a '0x' prefix, which the node never emits.
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects a string")
    if s.startswith(("0x", "0X")):
        raise ValueError("hex string must not carry a 0x prefix")
    if len(s) % 2 != 0:
        raise ValueError("hex string must have even length")
    try:
        return bytes.fromhex(s)
    except ValueError as e:
        raise ValueError(f"invalid hex string: {e}") from e


# --- CompactSize (Bitcoin varint) ---------------------------------------------


def compact_size_encode(n: int) -> bytes:
    """
    Encode an unsigned integer as a CompactSize.

    Example:
        0xfc       -> b'\\xfc'
        0xfd       -> b'\\xfd\\xfd\\x00'
        0x10000    -> b'\\xfe\\x00\\x00\\x01\\x00'
    """
    if n < 0:
        raise ValueError("compact_size_encode expects a non-negative integer")
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", n)
    if n <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", n)
    if n <= 0xFFFFFFFFFFFFFFFF:
        return b"\xff" + struct.pack("<Q", n)
    raise ValueError("compact size exceeds 64 bits")


class ByteReader:
    """
    Cursor over an immutable buffer with little-endian readers.

    Every read raises ValueError when the buffer ends early, so callers can
    treat truncated input as malformed data.
    """

    __slots__ = ("_buf", "_pos")

    def __init__(self, data: BytesLike) -> None:
        self._buf = bytes(data)
        self._pos = 0

    @property
    def pos(self) -> int:
        return self._pos

    def remaining(self) -> int:
        return len(self._buf) - self._pos

    def read(self, n: int) -> bytes:
        if n < 0 or self._pos + n > len(self._buf):
            raise ValueError(f"unexpected end of data (wanted {n} bytes at offset {self._pos})")
        out = self._buf[self._pos : self._pos + n]
        self._pos += n
        return out

    def peek(self, n: int = 1) -> bytes:
        return self._buf[self._pos : self._pos + n]

    def u8(self) -> int:
        return self.read(1)[0]

    def u32(self) -> int:
        return struct.unpack("<I", self.read(4))[0]

    def i32(self) -> int:
        return struct.unpack("<i", self.read(4))[0]

    def i64(self) -> int:
        return struct.unpack("<q", self.read(8))[0]

    def compact_size(self) -> int:
        first = self.u8()
        if first < 0xFD:
            return first
        if first == 0xFD:
            return struct.unpack("<H", self.read(2))[0]
        if first == 0xFE:
            return struct.unpack("<I", self.read(4))[0]
        return struct.unpack("<Q", self.read(8))[0]

    def var_bytes(self) -> bytes:
        return self.read(self.compact_size())


def compact_size_decode(b: BytesLike, *, offset: int = 0) -> Tuple[int, int]:
    """
    Decode a CompactSize starting at `offset`.

    Returns:
        (value, length_consumed)
    """
    reader = ByteReader(memoryview(b)[offset:])
    value = reader.compact_size()
    return value, reader.pos


__all__ = [
    "BytesLike",
    "ByteReader",
    "ensure_bytes",
    "to_hex",
    "from_hex",
    "compact_size_encode",
    "compact_size_decode",
]
