"""
btcrpc.types
------------

Typed values exchanged with the node:

- core   : Sha256Hash, Coin, Address, PrivateKey, RawJson
- tx     : Transaction / Block decoding from raw bytes
- models : pydantic result models for structured responses
"""

from __future__ import annotations

from .core import Address, AddressType, Coin, PrivateKey, RawJson, Sha256Hash  # noqa: F401
from .models import (  # noqa: F401
    AddressGroupingItem,
    BlockChainInfo,
    BlockInfo,
    ChainTip,
    NetworkInfo,
    Outpoint,
    RawTransactionInfo,
    ReceivedByAddressInfo,
    ServerInfo,
    SignedRawTransaction,
    TxOutInfo,
    UnspentOutput,
    WalletInfo,
    WalletTransactionInfo,
)
from .tx import Block, BlockHeader, Transaction, TxIn, TxOut  # noqa: F401

__all__ = [
    "Address",
    "AddressType",
    "Coin",
    "PrivateKey",
    "RawJson",
    "Sha256Hash",
    "Transaction",
    "TxIn",
    "TxOut",
    "Block",
    "BlockHeader",
    "AddressGroupingItem",
    "BlockChainInfo",
    "BlockInfo",
    "ChainTip",
    "NetworkInfo",
    "Outpoint",
    "RawTransactionInfo",
    "ReceivedByAddressInfo",
    "ServerInfo",
    "SignedRawTransaction",
    "TxOutInfo",
    "UnspentOutput",
    "WalletInfo",
    "WalletTransactionInfo",
]
