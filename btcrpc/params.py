"""
Network parameters: the address encodings a session accepts and produces.

Every `Address` and decoded `Transaction` carries the `NetworkParams` it was
created under, and a client refuses values minted for a different network.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True, slots=True)
class NetworkParams:
    name: str
    p2pkh_prefix: int
    p2sh_prefix: int
    bech32_hrp: str
    wif_prefix: int
    default_rpc_port: int
    aliases: Tuple[str, ...] = ()

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name

    @classmethod
    def from_name(cls, name: str) -> "NetworkParams":
        """Look up a known network by name or alias (case-insensitive)."""
        key = (name or "").strip().lower()
        try:
            return _BY_NAME[key]
        except KeyError:
            known = ", ".join(sorted(_BY_NAME))
            raise ValueError(f"unknown network {name!r} (expected one of: {known})") from None


MAINNET = NetworkParams(
    name="main",
    p2pkh_prefix=0,
    p2sh_prefix=5,
    bech32_hrp="bc",
    wif_prefix=128,
    default_rpc_port=8332,
    aliases=("mainnet", "bitcoin"),
)
TESTNET = NetworkParams(
    name="test",
    p2pkh_prefix=111,
    p2sh_prefix=196,
    bech32_hrp="tb",
    wif_prefix=239,
    default_rpc_port=18332,
    aliases=("testnet", "testnet3"),
)
REGTEST = NetworkParams(
    name="regtest",
    p2pkh_prefix=111,
    p2sh_prefix=196,
    bech32_hrp="bcrt",
    wif_prefix=239,
    default_rpc_port=18443,
)

_BY_NAME: Dict[str, NetworkParams] = {}
for _p in (MAINNET, TESTNET, REGTEST):
    _BY_NAME[_p.name] = _p
    for _alias in _p.aliases:
        _BY_NAME[_alias] = _p

__all__ = ["NetworkParams", "MAINNET", "TESTNET", "REGTEST"]
