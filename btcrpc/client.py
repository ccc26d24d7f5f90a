"""
Typed client for a Bitcoin-Core-style node.

Every operation is a thin call site over RpcClient.request with a declared
result type. Where the node's command vocabulary changed between releases
(block generation, wallet signing) the client consults the node version,
resolved once per session, and picks the command the node understands.

    from btcrpc import BitcoinClient, REGTEST

    with BitcoinClient("http://127.0.0.1:18443", "user", "pass", params=REGTEST) as node:
        if node.wait_for_server(timeout=60):
            node.generate(101)
            print(node.get_balance())
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

import structlog

from .config import RPCConfig
from .rpc.http import RpcClient
from .types.core import Address, Coin, PrivateKey, RawJson, Sha256Hash
from .types.models import (
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
from .types.tx import Block, Transaction
from .wait import RETRY_SECONDS, Clock, HeightPoller, PollResult, ReadinessPoller

log = structlog.get_logger(__name__)

# First node releases supporting each command variant
GENERATE_MIN_VERSION = 110000  # `generate` exists for versions strictly above this
GENERATE_TO_ADDRESS_MIN_VERSION = 180000
SIGN_WITH_WALLET_MIN_VERSION = 170000

_HELP_SECTION_RE = re.compile(r"^== (.+) ==$")
_UNKNOWN_COMMAND = "help: unknown command"


@dataclass
class BitcoinClient(RpcClient):
    _server_version: int = field(default=0, init=False, repr=False)

    @classmethod
    def from_config(cls, config: RPCConfig, **kwargs: Any) -> "BitcoinClient":
        return cls(
            config.uri,
            config.username,
            config.password,
            params=config.params,
            timeout=config.timeout,
            **kwargs,
        )

    def _call(self, method: str, *params: Any, result_type: Any = None) -> Any:
        return self.request(method, params, result_type=result_type)

    # --- version gating ---------------------------------------------------

    @property
    def server_version(self) -> int:
        """Node version from getnetworkinfo, resolved on first use (0 = unknown)."""
        if self._server_version == 0:
            self._server_version = self.get_network_info().version
            log.debug("server_version", version=self._server_version)
        return self._server_version

    # --- waiting ----------------------------------------------------------

    def wait_for_server(
        self,
        timeout: float,
        *,
        interval: float = RETRY_SECONDS,
        cancel: Optional[threading.Event] = None,
        clock: Optional[Clock] = None,
    ) -> PollResult:
        """Poll getblockcount until the node answers; see ReadinessPoller."""
        probe = lambda: self._call("getblockcount", result_type=Optional[int])  # noqa: E731
        return ReadinessPoller(probe, timeout=timeout, interval=interval, cancel=cancel, clock=clock).run()

    def wait_for_block(
        self,
        height: int,
        timeout: float,
        *,
        interval: float = RETRY_SECONDS,
        cancel: Optional[threading.Event] = None,
        clock: Optional[Clock] = None,
    ) -> PollResult:
        """Poll the block count until it reaches `height`; failures propagate."""
        return HeightPoller(
            self.get_block_count, height, timeout=timeout, interval=interval, cancel=cancel, clock=clock
        ).run()

    # --- chain ------------------------------------------------------------

    def get_block_count(self) -> int:
        return self._call("getblockcount", result_type=int)

    def get_block_hash(self, height: int) -> Sha256Hash:
        return self._call("getblockhash", height, result_type=Sha256Hash)

    def get_block_info(self, block_hash: Sha256Hash) -> BlockInfo:
        return self._call("getblock", block_hash, True, result_type=BlockInfo)

    def get_block(self, block: Union[Sha256Hash, int]) -> Block:
        """Raw block by hash, or by height via getblockhash."""
        if isinstance(block, int) and not isinstance(block, bool):
            block = self.get_block_hash(block)
        return self._call("getblock", block, False, result_type=Block)

    def get_blockchain_info(self) -> BlockChainInfo:
        return self._call("getblockchaininfo", result_type=BlockChainInfo)

    def get_chain_tips(self) -> List[ChainTip]:
        return self._call("getchaintips", result_type=List[ChainTip])

    def invalidate_block(self, block_hash: Sha256Hash) -> None:
        self._call("invalidateblock", block_hash)

    def reconsider_block(self, block_hash: Sha256Hash) -> None:
        self._call("reconsiderblock", block_hash)

    def clear_mem_pool(self) -> List[Sha256Hash]:
        return self._call("clearmempool", result_type=List[Sha256Hash])

    # --- mining -----------------------------------------------------------

    def set_generate(self, generate: bool, gen_proc_limit: Optional[int] = None) -> List[Sha256Hash]:
        return self._call("setgenerate", generate, gen_proc_limit, result_type=Optional[List[Sha256Hash]]) or []

    def generate_to_address(self, num_blocks: int, address: Address) -> List[Sha256Hash]:
        return self._call("generatetoaddress", num_blocks, address, result_type=List[Sha256Hash])

    def generate(self, num_blocks: int = 1) -> List[Sha256Hash]:
        """Mine `num_blocks` blocks (regtest) using the command the node supports."""
        version = self.server_version
        if version >= GENERATE_TO_ADDRESS_MIN_VERSION:
            return self.generate_to_address(num_blocks, self.get_new_address())
        if version > GENERATE_MIN_VERSION:
            return self._call("generate", num_blocks, result_type=List[Sha256Hash])
        return self.set_generate(True, num_blocks)

    # --- wallet: addresses and keys ---------------------------------------

    def get_new_address(self, account: Optional[str] = None) -> Address:
        return self._call("getnewaddress", account, result_type=Address)

    def get_account_address(self, account: str) -> Address:
        return self._call("getaccountaddress", account, result_type=Address)

    def dump_priv_key(self, address: Address) -> PrivateKey:
        return self._call("dumpprivkey", address, result_type=PrivateKey)

    def list_address_groupings(self) -> List[List[AddressGroupingItem]]:
        return self._call("listaddressgroupings", result_type=List[List[AddressGroupingItem]])

    def list_accounts(self) -> RawJson:
        return self._call("listaccounts", result_type=RawJson)

    # --- wallet: balances and payments ------------------------------------

    def get_balance(self, account: Optional[str] = None, min_conf: Optional[int] = None) -> Coin:
        return self._call("getbalance", account, min_conf, result_type=Coin)

    def get_unconfirmed_balance(self) -> Coin:
        return self._call("getunconfirmedbalance", result_type=Coin)

    def get_received_by_address(self, address: Address, min_conf: int = 1) -> Coin:
        return self._call("getreceivedbyaddress", address, min_conf, result_type=Coin)

    def list_received_by_address(
        self, min_conf: Optional[int] = None, include_empty: Optional[bool] = None
    ) -> List[ReceivedByAddressInfo]:
        return self._call("listreceivedbyaddress", min_conf, include_empty, result_type=List[ReceivedByAddressInfo])

    def list_unspent(
        self,
        min_conf: Optional[int] = None,
        max_conf: Optional[int] = None,
        addresses: Optional[Iterable[Address]] = None,
    ) -> List[UnspentOutput]:
        filt = list(addresses) if addresses is not None else None
        return self._call("listunspent", min_conf, max_conf, filt, result_type=List[UnspentOutput])

    def move_funds(
        self,
        from_account: str,
        to_account: str,
        amount: Coin,
        min_conf: Optional[int] = None,
        comment: Optional[str] = None,
    ) -> bool:
        return self._call("move", from_account, to_account, amount, min_conf, comment, result_type=bool)

    def send_to_address(
        self,
        address: Address,
        amount: Coin,
        comment: Optional[str] = None,
        comment_to: Optional[str] = None,
    ) -> Sha256Hash:
        return self._call("sendtoaddress", address, amount, comment, comment_to, result_type=Sha256Hash)

    def send_from(self, account: str, address: Address, amount: Coin) -> Sha256Hash:
        return self._call("sendfrom", account, address, amount, result_type=Sha256Hash)

    def send_many(self, account: str, amounts: Mapping[Address, Coin]) -> Sha256Hash:
        return self._call("sendmany", account, dict(amounts), result_type=Sha256Hash)

    def set_tx_fee(self, amount: Coin) -> bool:
        return self._call("settxfee", amount, result_type=bool)

    def get_transaction(self, txid: Sha256Hash) -> WalletTransactionInfo:
        return self._call("gettransaction", txid, result_type=WalletTransactionInfo)

    def get_wallet_info(self) -> WalletInfo:
        return self._call("getwalletinfo", result_type=WalletInfo)

    # --- raw transactions -------------------------------------------------

    def create_raw_transaction(self, inputs: Sequence[Outpoint], outputs: Mapping[Address, Coin]) -> str:
        """Unsigned transaction hex spending `inputs` to `outputs`."""
        return self._call("createrawtransaction", list(inputs), dict(outputs), result_type=str)

    def sign_raw_transaction(self, unsigned: Union[str, Transaction]) -> SignedRawTransaction:
        method = (
            "signrawtransactionwithwallet"
            if self.server_version >= SIGN_WITH_WALLET_MIN_VERSION
            else "signrawtransaction"
        )
        return self._call(method, unsigned, result_type=SignedRawTransaction)

    def get_raw_transaction(self, txid: Sha256Hash) -> Transaction:
        return self._call("getrawtransaction", txid, result_type=Transaction)

    def get_raw_transaction_info(self, txid: Sha256Hash) -> RawTransactionInfo:
        return self._call("getrawtransaction", txid, 1, result_type=RawTransactionInfo)

    def send_raw_transaction(
        self, tx: Union[Transaction, str], allow_high_fees: Optional[bool] = None
    ) -> Sha256Hash:
        return self._call("sendrawtransaction", tx, allow_high_fees, result_type=Sha256Hash)

    def get_tx_out(
        self, txid: Sha256Hash, vout: int, include_mempool: Optional[bool] = None
    ) -> Optional[TxOutInfo]:
        """Unspent output details, or None when the output is spent or unknown."""
        return self._call("gettxout", txid, vout, include_mempool, result_type=Optional[TxOutInfo])

    # --- node -------------------------------------------------------------

    def get_info(self) -> ServerInfo:
        return self._call("getinfo", result_type=ServerInfo)

    def get_network_info(self) -> NetworkInfo:
        return self._call("getnetworkinfo", result_type=NetworkInfo)

    def add_node(self, node: str, command: str) -> None:
        self._call("addnode", node, command)

    def get_added_node_info(self, details: bool, node: Optional[str] = None) -> RawJson:
        return self._call("getaddednodeinfo", details, node, result_type=RawJson)

    def help(self, command: Optional[str] = None) -> str:
        return self._call("help", command, result_type=str)

    def get_commands(self) -> List[str]:
        commands = []
        for entry in self.help().split("\n"):
            if entry and not _HELP_SECTION_RE.match(entry):
                commands.append(entry.split(" ")[0])
        return commands

    def command_exists(self, command: str) -> bool:
        return _UNKNOWN_COMMAND not in self.help(command)


__all__ = [
    "BitcoinClient",
    "GENERATE_MIN_VERSION",
    "GENERATE_TO_ADDRESS_MIN_VERSION",
    "SIGN_WITH_WALLET_MIN_VERSION",
]
