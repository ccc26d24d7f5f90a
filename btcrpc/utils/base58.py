"""
Base58 / Base58Check codec for legacy (P2PKH / P2SH) addresses.

A tiny self-contained implementation in the same spirit as `utils.bech32`:

- encode(payload) -> str
- decode(s) -> bytes
- encode_check(version, payload) -> str     (version byte + 4-byte checksum)
- decode_check(s) -> (version, payload)
"""

from __future__ import annotations

from typing import Tuple

from .hash import checksum4

__all__ = ["ALPHABET", "Base58Error", "encode", "decode", "encode_check", "decode_check"]

ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_ALPHABET_REV = {c: i for i, c in enumerate(ALPHABET)}


class Base58Error(ValueError):
    pass


def encode(payload: bytes) -> str:
    n = int.from_bytes(payload, "big")
    out = []
    while n:
        n, rem = divmod(n, 58)
        out.append(ALPHABET[rem])
    # Leading zero bytes map to leading '1's
    pad = len(payload) - len(payload.lstrip(b"\x00"))
    return "1" * pad + "".join(reversed(out))


def decode(s: str) -> bytes:
    if not s:
        raise Base58Error("empty base58 string")
    n = 0
    for c in s:
        try:
            n = n * 58 + _ALPHABET_REV[c]
        except KeyError:
            raise Base58Error(f"invalid base58 character {c!r}") from None
    body = n.to_bytes((n.bit_length() + 7) // 8, "big") if n else b""
    pad = len(s) - len(s.lstrip("1"))
    return b"\x00" * pad + body


def encode_check(version: int, payload: bytes) -> str:
    if not 0 <= version <= 0xFF:
        raise Base58Error("version must fit in one byte")
    data = bytes([version]) + bytes(payload)
    return encode(data + checksum4(data))


def decode_check(s: str) -> Tuple[int, bytes]:
    raw = decode(s)
    if len(raw) < 5:
        raise Base58Error("base58check string too short")
    data, check = raw[:-4], raw[-4:]
    if checksum4(data) != check:
        raise Base58Error("invalid base58check checksum")
    return data[0], data[1:]
