"""
Bech32 / Bech32m codec (BIP-0173 / BIP-0350) and segwit address helpers.

Self-contained so the client does not depend on external bech32 libraries.
Witness version 0 programs use classic Bech32 (constant 1); versions 1..16
use Bech32m (constant 0x2bc830a3), as required by BIP-0350.

Helpers
-------
- encode(hrp, data5, spec) -> string (data must be 5-bit ints 0..31)
- decode(addr) -> (hrp, data5, spec)
- encode_segwit(hrp, witver, program) -> string
- decode_segwit(addr) -> (hrp, witver, program)
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

__all__ = [
    "encode",
    "decode",
    "convertbits",
    "encode_segwit",
    "decode_segwit",
    "Bech32Error",
]

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
CHARSET_REV = {c: i for i, c in enumerate(CHARSET)}

_BECH32_CONST = 1
_BECH32M_CONST = 0x2BC830A3
_MAX_LENGTH = 90


class Bech32Error(ValueError):
    pass


def _polymod(values: Sequence[int]) -> int:
    generators = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
    chk = 1
    for v in values:
        top = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ v
        for i, g in enumerate(generators):
            if (top >> i) & 1:
                chk ^= g
    return chk


def _hrp_expand(hrp: str) -> List[int]:
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def _create_checksum(hrp: str, data: Sequence[int], const: int) -> List[int]:
    pm = _polymod(_hrp_expand(hrp) + list(data) + [0] * 6) ^ const
    return [(pm >> 5 * (5 - i)) & 31 for i in range(6)]


def _spec_of(hrp: str, data: Sequence[int]) -> str:
    check = _polymod(_hrp_expand(hrp) + list(data))
    if check == _BECH32_CONST:
        return "bech32"
    if check == _BECH32M_CONST:
        return "bech32m"
    raise Bech32Error("invalid checksum")


def encode(hrp: str, data5: Iterable[int], *, spec: str = "bech32") -> str:
    data5 = list(data5)
    if any(v < 0 or v > 31 for v in data5):
        raise Bech32Error("data5 values must be in 0..31")
    const = _BECH32M_CONST if spec == "bech32m" else _BECH32_CONST
    return hrp + "1" + "".join(CHARSET[d] for d in data5 + _create_checksum(hrp, data5, const))


def decode(addr: str) -> Tuple[str, List[int], str]:
    """
    Decode a bech32/bech32m string. Returns (hrp, data5, spec).
    """
    if any(ord(x) < 33 or ord(x) > 126 for x in addr):
        raise Bech32Error("invalid characters")
    if addr.lower() != addr and addr.upper() != addr:
        raise Bech32Error("mixed case not allowed")
    if len(addr) > _MAX_LENGTH:
        raise Bech32Error("string too long")
    addr = addr.lower()
    pos = addr.rfind("1")
    if pos < 1:
        raise Bech32Error("missing separator '1'")
    hrp, rest = addr[:pos], addr[pos + 1 :]
    if len(rest) < 6:
        raise Bech32Error("too short data/checksum")
    try:
        data = [CHARSET_REV[c] for c in rest]
    except KeyError:
        raise Bech32Error("invalid charset") from None
    return hrp, data[:-6], _spec_of(hrp, data)


def convertbits(data: Iterable[int], from_bits: int, to_bits: int, *, pad: bool = True) -> List[int]:
    """
    General power-of-two base conversion (8→5 or 5→8).
    """
    acc = 0
    bits = 0
    ret: List[int] = []
    maxv = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise Bech32Error("invalid value for convertbits")
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            ret.append((acc >> bits) & maxv)
    if pad:
        if bits:
            ret.append((acc << (to_bits - bits)) & maxv)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & maxv):
        raise Bech32Error("non-zero padding")
    return ret


def encode_segwit(hrp: str, witver: int, program: bytes) -> str:
    if not 0 <= witver <= 16:
        raise Bech32Error("witness version must be in 0..16")
    spec = "bech32" if witver == 0 else "bech32m"
    out = encode(hrp, [witver] + convertbits(program, 8, 5), spec=spec)
    # Round-trip guards against programs of illegal length
    decode_segwit(out)
    return out


def decode_segwit(addr: str) -> Tuple[str, int, bytes]:
    """
    Decode a segwit address. Returns (hrp, witness_version, program).
    """
    hrp, data, spec = decode(addr)
    if not data:
        raise Bech32Error("empty data section")
    witver = data[0]
    if witver > 16:
        raise Bech32Error("invalid witness version")
    program = bytes(convertbits(data[1:], 5, 8, pad=False))
    if not 2 <= len(program) <= 40:
        raise Bech32Error("invalid witness program length")
    if witver == 0 and len(program) not in (20, 32):
        raise Bech32Error("invalid v0 witness program length")
    expected = "bech32" if witver == 0 else "bech32m"
    if spec != expected:
        raise Bech32Error(f"witness v{witver} requires {expected} checksum")
    return hrp, witver, program
