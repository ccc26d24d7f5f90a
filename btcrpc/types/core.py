"""
Domain value types exchanged with the node.

- Sha256Hash : 32-byte block/transaction id, hex on the wire in reversed order
- Coin       : exact amount in satoshis, fixed 8-decimal string on the wire
- Address    : base58check or bech32/bech32m address bound to its network
- PrivateKey : WIF-encoded wallet key as returned by dumpprivkey
- RawJson    : untyped JSON for results whose shape is undocumented

Each type plugs into pydantic through `__get_pydantic_core_schema__` so the
result models in `types.models` validate straight from decoded JSON. Address
(and Transaction/Block in `types.tx`) read the session's `NetworkParams` from
the validation context under the key "params".
"""

from __future__ import annotations

import re
from decimal import Decimal
from enum import Enum
from functools import total_ordering
from typing import Any, Optional, Union

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from ..errors import AddressError, MarshallingError, NetworkMismatchError
from ..params import MAINNET, REGTEST, TESTNET, NetworkParams
from ..utils import base58, bech32
from ..utils.bytes import BytesLike, from_hex, to_hex
from ..utils.hash import double_sha256

__all__ = [
    "Sha256Hash",
    "Coin",
    "AddressType",
    "Address",
    "PrivateKey",
    "RawJson",
    "params_from_context",
]

_KNOWN_NETWORKS = (MAINNET, TESTNET, REGTEST)


def params_from_context(info: Any) -> Optional[NetworkParams]:
    """Extract NetworkParams from a pydantic ValidationInfo, if present."""
    ctx = getattr(info, "context", None)
    if isinstance(ctx, dict):
        params = ctx.get("params")
        if isinstance(params, NetworkParams):
            return params
    return None


# --- Sha256Hash ---------------------------------------------------------------


class Sha256Hash:
    """
    A 32-byte double-SHA-256 digest.

    Bytes are held in internal (serialization) order. The node renders hashes
    byte-reversed, so `from_hex`/`to_hex` each reverse exactly once.
    """

    __slots__ = ("_raw",)

    LENGTH = 32

    def __init__(self, raw: BytesLike) -> None:
        raw = bytes(raw)
        if len(raw) != self.LENGTH:
            raise MarshallingError(f"hash must be {self.LENGTH} bytes, got {len(raw)}")
        self._raw = raw

    @classmethod
    def from_hex(cls, s: str) -> "Sha256Hash":
        if not isinstance(s, str) or len(s) != 2 * cls.LENGTH:
            raise MarshallingError(f"hash hex must be {2 * cls.LENGTH} characters: {s!r}")
        try:
            return cls(from_hex(s)[::-1])
        except ValueError as e:
            raise MarshallingError(f"invalid hash hex {s!r}: {e}") from e

    @classmethod
    def of(cls, data: BytesLike) -> "Sha256Hash":
        """Double SHA-256 of `data`."""
        return cls(double_sha256(data))

    @property
    def raw(self) -> bytes:
        return self._raw

    def to_hex(self) -> str:
        return to_hex(self._raw[::-1])

    def __bytes__(self) -> bytes:
        return self._raw

    def __str__(self) -> str:
        return self.to_hex()

    def __repr__(self) -> str:
        return f"Sha256Hash('{self.to_hex()}')"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Sha256Hash):
            return self._raw == other._raw
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._raw)

    @classmethod
    def _validate(cls, value: Any) -> "Sha256Hash":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls.from_hex(value)
            except MarshallingError as e:
                raise ValueError(str(e)) from e
        raise ValueError(f"expected hash hex string, got {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(lambda h: h.to_hex()),
        )


Sha256Hash.ZERO = Sha256Hash(b"\x00" * 32)  # type: ignore[attr-defined]


# --- Coin ---------------------------------------------------------------------


_COIN_RE = re.compile(r"^[+-]?(\d+)(?:\.(\d+))?$")


@total_ordering
class Coin:
    """
    Exact monetary amount stored as integer satoshis.

    Parsing accepts Decimal, int (whole coins) and decimal strings. Floats are
    refused because they cannot represent most amounts exactly. Negative
    values are allowed (fees and balance deltas can be negative).
    """

    __slots__ = ("_sat",)

    COIN = 100_000_000
    MAX_SATOSHIS = 21_000_000 * COIN

    def __init__(self, satoshis: int) -> None:
        if isinstance(satoshis, bool) or not isinstance(satoshis, int):
            raise MarshallingError(f"satoshis must be an int, got {type(satoshis).__name__}")
        if abs(satoshis) > self.MAX_SATOSHIS:
            raise MarshallingError(f"amount out of range: {satoshis} satoshis")
        self._sat = satoshis

    @classmethod
    def from_satoshis(cls, satoshis: int) -> "Coin":
        return cls(satoshis)

    @classmethod
    def parse(cls, value: Union["Coin", Decimal, int, str]) -> "Coin":
        if isinstance(value, Coin):
            return value
        if isinstance(value, float):
            raise MarshallingError("floats are not accepted as amounts; use Decimal or str")
        if isinstance(value, bool):
            raise MarshallingError("bool is not an amount")
        if isinstance(value, int):
            return cls(value * cls.COIN)
        if isinstance(value, str):
            m = _COIN_RE.match(value.strip())
            if not m:
                raise MarshallingError(f"malformed amount {value!r}")
            if m.group(2) and len(m.group(2)) > 8:
                raise MarshallingError(f"amount {value!r} has more than 8 decimal places")
            value = Decimal(value.strip())
        if isinstance(value, Decimal):
            if not value.is_finite():
                raise MarshallingError(f"amount must be finite, got {value}")
            return cls(cls._scale_exact(value))
        raise MarshallingError(f"cannot parse amount from {type(value).__name__}")

    @classmethod
    def _scale_exact(cls, value: Decimal) -> int:
        # integer arithmetic on the digits: no decimal context, no rounding
        sign, digits, exponent = value.as_tuple()
        while digits and digits[0] == 0:
            digits = digits[1:]
        if not digits:
            return 0
        shift = exponent + 8
        if shift < 0:
            if -shift > len(digits) or any(digits[shift:]):
                raise MarshallingError(f"amount {value} has more than 8 decimal places")
            digits, shift = digits[:shift], 0
        if len(digits) + shift > len(str(cls.MAX_SATOSHIS)):
            raise MarshallingError(f"amount out of range: {value}")
        sat = int("".join(map(str, digits))) * 10**shift
        return -sat if sign else sat

    @property
    def satoshis(self) -> int:
        return self._sat

    def to_decimal(self) -> Decimal:
        return Decimal(self._sat).scaleb(-8)

    def to_wire(self) -> str:
        whole, frac = divmod(abs(self._sat), self.COIN)
        sign = "-" if self._sat < 0 else ""
        return f"{sign}{whole}.{frac:08d}"

    def is_zero(self) -> bool:
        return self._sat == 0

    def is_negative(self) -> bool:
        return self._sat < 0

    # arithmetic

    def __add__(self, other: "Coin") -> "Coin":
        if not isinstance(other, Coin):
            return NotImplemented
        return Coin(self._sat + other._sat)

    def __sub__(self, other: "Coin") -> "Coin":
        if not isinstance(other, Coin):
            return NotImplemented
        return Coin(self._sat - other._sat)

    def __mul__(self, factor: int) -> "Coin":
        if isinstance(factor, bool) or not isinstance(factor, int):
            return NotImplemented
        return Coin(self._sat * factor)

    __rmul__ = __mul__

    def __neg__(self) -> "Coin":
        return Coin(-self._sat)

    def __abs__(self) -> "Coin":
        return Coin(abs(self._sat))

    def __bool__(self) -> bool:
        return self._sat != 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Coin):
            return self._sat == other._sat
        return NotImplemented

    def __lt__(self, other: "Coin") -> bool:
        if not isinstance(other, Coin):
            return NotImplemented
        return self._sat < other._sat

    def __hash__(self) -> int:
        return hash(self._sat)

    def __str__(self) -> str:
        return self.to_wire()

    def __repr__(self) -> str:
        return f"Coin('{self.to_wire()}')"

    @classmethod
    def _validate(cls, value: Any) -> "Coin":
        try:
            return cls.parse(value)
        except MarshallingError as e:
            raise ValueError(str(e)) from e

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(lambda c: c.to_wire()),
        )


Coin.ZERO = Coin(0)  # type: ignore[attr-defined]


# --- Address ------------------------------------------------------------------


class AddressType(str, Enum):
    P2PKH = "p2pkh"
    P2SH = "p2sh"
    P2WPKH = "p2wpkh"
    P2WSH = "p2wsh"
    P2TR = "p2tr"
    WITNESS_UNKNOWN = "witness_unknown"


def _witness_kind(version: int, program: bytes) -> AddressType:
    if version == 0:
        return AddressType.P2WPKH if len(program) == 20 else AddressType.P2WSH
    if version == 1 and len(program) == 32:
        return AddressType.P2TR
    return AddressType.WITNESS_UNKNOWN


class Address:
    """
    A payment address valid on exactly one network.

    `program` is the hash160 for P2PKH/P2SH and the witness program for
    segwit kinds.
    """

    __slots__ = ("_params", "_kind", "_program", "_witness_version", "_text")

    def __init__(
        self,
        params: NetworkParams,
        kind: AddressType,
        program: BytesLike,
        witness_version: Optional[int] = None,
    ) -> None:
        program = bytes(program)
        if kind in (AddressType.P2PKH, AddressType.P2SH):
            if len(program) != 20:
                raise AddressError(f"{kind.value} hash must be 20 bytes, got {len(program)}")
            text = base58.encode_check(
                params.p2pkh_prefix if kind is AddressType.P2PKH else params.p2sh_prefix, program
            )
        else:
            if witness_version is None:
                raise AddressError("segwit address needs a witness version")
            try:
                text = bech32.encode_segwit(params.bech32_hrp, witness_version, program)
            except bech32.Bech32Error as e:
                raise AddressError(f"invalid witness program: {e}") from e
        self._params = params
        self._kind = kind
        self._program = program
        self._witness_version = witness_version
        self._text = text

    # constructors

    @classmethod
    def from_string(cls, params: NetworkParams, text: str) -> "Address":
        """
        Decode `text` under `params`.

        Raises NetworkMismatchError when the string is a valid address of
        another known network, AddressError when it is not an address at all.
        """
        if not isinstance(text, str) or not text.strip():
            raise AddressError(f"address must be a non-empty string, got {text!r}")
        text = text.strip()
        segwit = cls._try_segwit(params, text)
        if segwit is not None:
            return segwit
        try:
            version, payload = base58.decode_check(text)
        except base58.Base58Error as e:
            raise AddressError(f"invalid address {text!r}: {e}") from e
        if len(payload) != 20:
            raise AddressError(f"invalid address {text!r}: payload must be 20 bytes")
        if version == params.p2pkh_prefix:
            return cls(params, AddressType.P2PKH, payload)
        if version == params.p2sh_prefix:
            return cls(params, AddressType.P2SH, payload)
        for other in _KNOWN_NETWORKS:
            if version in (other.p2pkh_prefix, other.p2sh_prefix):
                raise NetworkMismatchError(
                    f"address {text!r} belongs to network {other.name}, not {params.name}",
                    expected=params,
                    actual=other,
                )
        raise AddressError(f"invalid address {text!r}: unknown version byte {version}")

    @classmethod
    def _try_segwit(cls, params: NetworkParams, text: str) -> Optional["Address"]:
        lower = text.lower()
        hrp = lower[: lower.rfind("1")] if "1" in lower else ""
        hrps = {p.bech32_hrp: p for p in _KNOWN_NETWORKS}
        if hrp not in hrps:
            return None
        try:
            hrp, version, program = bech32.decode_segwit(text)
        except bech32.Bech32Error as e:
            raise AddressError(f"invalid segwit address {text!r}: {e}") from e
        if hrp != params.bech32_hrp:
            raise NetworkMismatchError(
                f"address {text!r} belongs to network {hrps[hrp].name}, not {params.name}",
                expected=params,
                actual=hrps[hrp],
            )
        return cls(params, _witness_kind(version, program), program, version)

    @classmethod
    def from_pubkey_hash(cls, params: NetworkParams, h160: BytesLike) -> "Address":
        return cls(params, AddressType.P2PKH, h160)

    @classmethod
    def from_script_hash(cls, params: NetworkParams, h160: BytesLike) -> "Address":
        return cls(params, AddressType.P2SH, h160)

    @classmethod
    def from_witness_program(cls, params: NetworkParams, version: int, program: BytesLike) -> "Address":
        program = bytes(program)
        return cls(params, _witness_kind(version, program), program, version)

    @classmethod
    def from_script_pubkey(cls, params: NetworkParams, script: BytesLike) -> Optional["Address"]:
        """Recognise standard output scripts; returns None for anything else."""
        s = bytes(script)
        # OP_DUP OP_HASH160 <20> OP_EQUALVERIFY OP_CHECKSIG
        if len(s) == 25 and s[:3] == b"\x76\xa9\x14" and s[23:] == b"\x88\xac":
            return cls(params, AddressType.P2PKH, s[3:23])
        # OP_HASH160 <20> OP_EQUAL
        if len(s) == 23 and s[:2] == b"\xa9\x14" and s[22] == 0x87:
            return cls(params, AddressType.P2SH, s[2:22])
        # OP_n <program>
        if 4 <= len(s) <= 42 and (s[0] == 0 or 0x51 <= s[0] <= 0x60) and s[1] == len(s) - 2:
            version = 0 if s[0] == 0 else s[0] - 0x50
            try:
                return cls.from_witness_program(params, version, s[2:])
            except AddressError:
                return None
        return None

    # accessors

    @property
    def params(self) -> NetworkParams:
        return self._params

    @property
    def kind(self) -> AddressType:
        return self._kind

    @property
    def program(self) -> bytes:
        return self._program

    @property
    def witness_version(self) -> Optional[int]:
        return self._witness_version

    def to_script_pubkey(self) -> bytes:
        if self._kind is AddressType.P2PKH:
            return b"\x76\xa9\x14" + self._program + b"\x88\xac"
        if self._kind is AddressType.P2SH:
            return b"\xa9\x14" + self._program + b"\x87"
        op = 0 if self._witness_version == 0 else 0x50 + int(self._witness_version or 0)
        return bytes([op, len(self._program)]) + self._program

    def check_network(self, params: NetworkParams) -> "Address":
        if self._params != params:
            raise NetworkMismatchError(
                f"address {self._text} belongs to network {self._params.name}, not {params.name}",
                expected=params,
                actual=self._params,
            )
        return self

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Address('{self._text}', network={self._params.name})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Address):
            return self._params == other._params and self._text == other._text
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._params.name, self._text))

    @classmethod
    def _validate(cls, value: Any, info: core_schema.ValidationInfo) -> "Address":
        params = params_from_context(info)
        if isinstance(value, cls):
            if params is not None:
                value.check_network(params)
            return value
        if not isinstance(value, str):
            raise ValueError(f"expected address string, got {type(value).__name__}")
        if params is None:
            raise ValueError("network parameters are required to decode an address")
        return cls.from_string(params, value)

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.with_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


# --- PrivateKey ---------------------------------------------------------------


class PrivateKey:
    """
    A wallet private key as exported by `dumpprivkey` (WIF encoding).

    Only the encoding is handled here; no elliptic-curve operations.
    """

    __slots__ = ("_params", "_secret", "_compressed")

    def __init__(self, params: NetworkParams, secret: BytesLike, compressed: bool = True) -> None:
        secret = bytes(secret)
        if len(secret) != 32:
            raise MarshallingError(f"private key must be 32 bytes, got {len(secret)}")
        self._params = params
        self._secret = secret
        self._compressed = compressed

    @classmethod
    def from_wif(cls, params: NetworkParams, wif: str) -> "PrivateKey":
        try:
            version, payload = base58.decode_check(wif.strip())
        except (base58.Base58Error, AttributeError) as e:
            raise MarshallingError(f"invalid WIF key: {e}") from e
        if version != params.wif_prefix:
            raise NetworkMismatchError(
                f"WIF key version {version} does not match network {params.name}",
                expected=params,
            )
        if len(payload) == 33 and payload[32] == 0x01:
            return cls(params, payload[:32], compressed=True)
        if len(payload) == 32:
            return cls(params, payload, compressed=False)
        raise MarshallingError("invalid WIF key payload length")

    @property
    def params(self) -> NetworkParams:
        return self._params

    @property
    def secret(self) -> bytes:
        return self._secret

    @property
    def compressed(self) -> bool:
        return self._compressed

    def to_wif(self) -> str:
        payload = self._secret + (b"\x01" if self._compressed else b"")
        return base58.encode_check(self._params.wif_prefix, payload)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PrivateKey):
            return (self._params, self._secret, self._compressed) == (
                other._params,
                other._secret,
                other._compressed,
            )
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._params.name, self._secret, self._compressed))

    def __repr__(self) -> str:
        # never render the secret
        return f"PrivateKey(network={self._params.name}, compressed={self._compressed})"

    @classmethod
    def _validate(cls, value: Any, info: core_schema.ValidationInfo) -> "PrivateKey":
        if isinstance(value, cls):
            return value
        params = params_from_context(info)
        if not isinstance(value, str) or params is None:
            raise ValueError("expected WIF string with network parameters in context")
        try:
            return cls.from_wif(params, value)
        except NetworkMismatchError:
            raise
        except MarshallingError as e:
            raise ValueError(str(e)) from e

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.with_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(lambda k: k.to_wif()),
        )


# --- RawJson ------------------------------------------------------------------


class RawJson:
    """Untyped JSON value for results whose shape the node does not document."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RawJson):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:  # pragma: no cover - unhashable payloads are common
        return hash(repr(self.value))

    def __repr__(self) -> str:
        return f"RawJson({self.value!r})"

    @classmethod
    def _validate(cls, value: Any) -> "RawJson":
        return value if isinstance(value, cls) else cls(value)

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(lambda r: r.value),
        )
