"""
Result models for structured node responses.

Field names follow the node's JSON keys where they are already snake_case and
use aliases otherwise. Unknown keys are ignored so newer node releases that add
fields keep validating. Amounts are `Coin`, ids are `Sha256Hash`, and
addresses are decoded under the session's network (validation context).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .core import Address, Coin, Sha256Hash
from .tx import Transaction


class NodeModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


# ----------------------------- parameters -----------------------------


class Outpoint(NodeModel):
    """Reference to a transaction output; the input shape of createrawtransaction."""

    txid: Sha256Hash
    vout: int = Field(..., ge=0)


# ------------------------------- chain --------------------------------


class BlockChainInfo(NodeModel):
    chain: str
    blocks: int
    headers: int
    best_block_hash: Sha256Hash = Field(..., alias="bestblockhash")
    difficulty: Decimal
    median_time: Optional[int] = Field(default=None, alias="mediantime")
    verification_progress: Decimal = Field(..., alias="verificationprogress")
    initial_block_download: Optional[bool] = Field(default=None, alias="initialblockdownload")
    chainwork: str
    size_on_disk: Optional[int] = None
    pruned: bool = False
    warnings: Any = None


class BlockInfo(NodeModel):
    hash: Sha256Hash
    confirmations: int
    size: int
    stripped_size: Optional[int] = Field(default=None, alias="strippedsize")
    weight: Optional[int] = None
    height: int
    version: int
    merkle_root: Sha256Hash = Field(..., alias="merkleroot")
    tx: List[Sha256Hash]
    time: int
    median_time: Optional[int] = Field(default=None, alias="mediantime")
    nonce: int
    bits: str
    difficulty: Decimal
    chainwork: Optional[str] = None
    n_tx: Optional[int] = Field(default=None, alias="nTx")
    previous_block_hash: Optional[Sha256Hash] = Field(default=None, alias="previousblockhash")
    next_block_hash: Optional[Sha256Hash] = Field(default=None, alias="nextblockhash")


class ChainTip(NodeModel):
    height: int
    hash: Sha256Hash
    branch_len: int = Field(..., alias="branchlen")
    status: str


class NetworkInfo(NodeModel):
    version: int
    subversion: str
    protocol_version: int = Field(..., alias="protocolversion")
    local_services: Optional[str] = Field(default=None, alias="localservices")
    time_offset: Optional[int] = Field(default=None, alias="timeoffset")
    connections: int
    relay_fee: Optional[Coin] = Field(default=None, alias="relayfee")
    networks: List[Dict[str, Any]] = Field(default_factory=list)
    local_addresses: List[Dict[str, Any]] = Field(default_factory=list, alias="localaddresses")
    warnings: Any = None


class ServerInfo(NodeModel):
    """Shape of the legacy `getinfo` call (removed in newer nodes)."""

    version: int
    protocol_version: int = Field(..., alias="protocolversion")
    wallet_version: Optional[int] = Field(default=None, alias="walletversion")
    balance: Optional[Coin] = None
    blocks: int
    time_offset: Optional[int] = Field(default=None, alias="timeoffset")
    connections: int
    proxy: Optional[str] = None
    difficulty: Decimal
    testnet: bool = False
    keypool_oldest: Optional[int] = Field(default=None, alias="keypoololdest")
    keypool_size: Optional[int] = Field(default=None, alias="keypoolsize")
    pay_tx_fee: Optional[Coin] = Field(default=None, alias="paytxfee")
    relay_fee: Optional[Coin] = Field(default=None, alias="relayfee")
    errors: Optional[str] = None


# ------------------------------- wallet -------------------------------


class WalletInfo(NodeModel):
    wallet_name: Optional[str] = Field(default=None, alias="walletname")
    wallet_version: Optional[int] = Field(default=None, alias="walletversion")
    balance: Optional[Coin] = None
    unconfirmed_balance: Optional[Coin] = None
    immature_balance: Optional[Coin] = None
    tx_count: Optional[int] = Field(default=None, alias="txcount")
    keypool_oldest: Optional[int] = Field(default=None, alias="keypoololdest")
    keypool_size: Optional[int] = Field(default=None, alias="keypoolsize")
    keypool_size_hd_internal: Optional[int] = None
    pay_tx_fee: Optional[Coin] = Field(default=None, alias="paytxfee")
    hd_master_key_id: Optional[str] = Field(default=None, alias="hdmasterkeyid")


class UnspentOutput(NodeModel):
    txid: Sha256Hash
    vout: int
    address: Optional[Address] = None
    account: Optional[str] = None
    label: Optional[str] = None
    script_pub_key: str = Field(..., alias="scriptPubKey")
    amount: Coin
    confirmations: int
    spendable: Optional[bool] = None
    solvable: Optional[bool] = None
    safe: Optional[bool] = None

    def outpoint(self) -> Outpoint:
        return Outpoint(txid=self.txid, vout=self.vout)


class ScriptPubKeyInfo(NodeModel):
    asm: str = ""
    hex: str
    req_sigs: Optional[int] = Field(default=None, alias="reqSigs")
    type: str
    address: Optional[Address] = None
    addresses: List[Address] = Field(default_factory=list)


class TxOutInfo(NodeModel):
    best_block: Sha256Hash = Field(..., alias="bestblock")
    confirmations: int
    value: Coin
    script_pub_key: ScriptPubKeyInfo = Field(..., alias="scriptPubKey")
    coinbase: bool = False


class RawTxInput(NodeModel):
    txid: Optional[Sha256Hash] = None
    vout: Optional[int] = None
    coinbase: Optional[str] = None
    script_sig: Optional[Dict[str, Any]] = Field(default=None, alias="scriptSig")
    tx_in_witness: List[str] = Field(default_factory=list, alias="txinwitness")
    sequence: int


class RawTxOutput(NodeModel):
    value: Coin
    n: int
    script_pub_key: ScriptPubKeyInfo = Field(..., alias="scriptPubKey")


class RawTransactionInfo(NodeModel):
    hex: Optional[Transaction] = None
    txid: Sha256Hash
    hash: Optional[Sha256Hash] = None
    size: Optional[int] = None
    vsize: Optional[int] = None
    weight: Optional[int] = None
    version: int
    lock_time: int = Field(..., alias="locktime")
    vin: List[RawTxInput]
    vout: List[RawTxOutput]
    block_hash: Optional[Sha256Hash] = Field(default=None, alias="blockhash")
    confirmations: Optional[int] = None
    time: Optional[int] = None
    block_time: Optional[int] = Field(default=None, alias="blocktime")


class WalletTransactionDetail(NodeModel):
    account: Optional[str] = None
    address: Optional[Address] = None
    category: str
    amount: Coin
    label: Optional[str] = None
    vout: Optional[int] = None
    fee: Optional[Coin] = None
    abandoned: Optional[bool] = None


class WalletTransactionInfo(NodeModel):
    amount: Coin
    fee: Optional[Coin] = None
    confirmations: int
    block_hash: Optional[Sha256Hash] = Field(default=None, alias="blockhash")
    block_index: Optional[int] = Field(default=None, alias="blockindex")
    block_time: Optional[int] = Field(default=None, alias="blocktime")
    txid: Sha256Hash
    wallet_conflicts: List[Sha256Hash] = Field(default_factory=list, alias="walletconflicts")
    time: int
    time_received: Optional[int] = Field(default=None, alias="timereceived")
    bip125_replaceable: Optional[str] = Field(default=None, alias="bip125-replaceable")
    details: List[WalletTransactionDetail] = Field(default_factory=list)
    hex: Optional[Transaction] = None


class ReceivedByAddressInfo(NodeModel):
    address: Address
    account: Optional[str] = None
    label: Optional[str] = None
    amount: Coin
    confirmations: int
    txids: List[Sha256Hash] = Field(default_factory=list)


class SignedRawTransaction(NodeModel):
    hex: str
    complete: bool
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class AddressGroupingItem(NodeModel):
    """
    One entry of `listaddressgroupings`.

    The node sends these positionally: [address, amount] or
    [address, amount, account].
    """

    address: Address
    amount: Coin
    account: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _from_positional(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) not in (2, 3):
                raise ValueError(f"address grouping item must have 2 or 3 elements, got {len(data)}")
            out = {"address": data[0], "amount": data[1]}
            if len(data) == 3:
                out["account"] = data[2]
            return out
        return data


__all__ = [
    "NodeModel",
    "Outpoint",
    "BlockChainInfo",
    "BlockInfo",
    "ChainTip",
    "NetworkInfo",
    "ServerInfo",
    "WalletInfo",
    "UnspentOutput",
    "ScriptPubKeyInfo",
    "TxOutInfo",
    "RawTxInput",
    "RawTxOutput",
    "RawTransactionInfo",
    "WalletTransactionDetail",
    "WalletTransactionInfo",
    "ReceivedByAddressInfo",
    "SignedRawTransaction",
    "AddressGroupingItem",
]
