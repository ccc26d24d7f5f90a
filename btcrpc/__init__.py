"""
btcrpc: typed JSON-RPC client for Bitcoin-Core-style nodes.

Quick start:

    from btcrpc import BitcoinClient, RPCConfig

    node = BitcoinClient.from_config(RPCConfig.from_env())
    node.wait_for_server(timeout=60)
    print(node.get_block_count(), node.get_blockchain_info().best_block_hash)
"""

from __future__ import annotations

from .client import BitcoinClient
from .config import RPCConfig
from .errors import (
    AddressError,
    BtcRpcError,
    MarshallingError,
    NetworkMismatchError,
    RpcErrorCode,
    RpcStatusError,
    TransientFailure,
    TransportError,
)
from .params import MAINNET, REGTEST, TESTNET, NetworkParams
from .rpc import NULL, JsonRpcRequest, RpcClient
from .types import Address, Block, Coin, PrivateKey, RawJson, Sha256Hash, Transaction
from .version import __version__
from .wait import PollResult, PollState

__all__ = [
    "__version__",
    "BitcoinClient",
    "RpcClient",
    "RPCConfig",
    "JsonRpcRequest",
    "NULL",
    "NetworkParams",
    "MAINNET",
    "TESTNET",
    "REGTEST",
    "Address",
    "Block",
    "Coin",
    "PrivateKey",
    "RawJson",
    "Sha256Hash",
    "Transaction",
    "PollResult",
    "PollState",
    "BtcRpcError",
    "TransportError",
    "TransientFailure",
    "RpcStatusError",
    "RpcErrorCode",
    "MarshallingError",
    "AddressError",
    "NetworkMismatchError",
]
