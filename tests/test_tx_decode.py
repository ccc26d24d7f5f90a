from __future__ import annotations

import pytest

from btcrpc.errors import MarshallingError, NetworkMismatchError
from btcrpc.params import MAINNET, REGTEST
from btcrpc.types.core import Address, Coin, Sha256Hash
from btcrpc.types.tx import Block, Transaction, TxIn, TxOut, merkle_root

from .vectors import GENESIS_BLOCK, GENESIS_HASH, GENESIS_TX, GENESIS_TXID


def test_legacy_coinbase_transaction():
    tx = Transaction.from_hex(MAINNET, GENESIS_TX)
    assert tx.version == 1
    assert tx.is_coinbase
    assert not tx.has_witness
    assert len(tx.outputs) == 1
    assert tx.outputs[0].value == Coin.parse(50)
    assert tx.total_output() == Coin.parse(50)
    # pay-to-pubkey has no address form
    assert tx.output_addresses() == [None]
    assert tx.txid == Sha256Hash.from_hex(GENESIS_TXID)
    assert tx.wtxid == tx.txid
    assert tx.to_hex() == GENESIS_TX


def test_segwit_transaction_round_trip():
    pay_to = Address.from_witness_program(REGTEST, 0, b"\x11" * 20)
    tx = Transaction(
        params=REGTEST,
        version=2,
        inputs=(
            TxIn(
                prev_hash=Sha256Hash.of(b"previous"),
                prev_index=1,
                sequence=0xFFFFFFFD,
                witness=(b"\x30" * 71, b"\x02" * 33),
            ),
        ),
        outputs=(TxOut(value=Coin.parse("0.5"), script_pubkey=pay_to.to_script_pubkey()),),
        lock_time=101,
    )
    raw = tx.serialize()
    assert raw[4:6] == b"\x00\x01"

    decoded = Transaction.parse(REGTEST, raw)
    assert decoded == tx
    assert decoded.has_witness
    assert decoded.inputs[0].witness == (b"\x30" * 71, b"\x02" * 33)
    assert decoded.txid == Sha256Hash.of(tx.serialize(include_witness=False))
    assert decoded.wtxid == Sha256Hash.of(raw)
    assert decoded.txid != decoded.wtxid
    assert decoded.output_addresses() == [pay_to]
    assert decoded.lock_time == 101


@pytest.mark.parametrize("bad", [GENESIS_TX[:-8], GENESIS_TX + "00", GENESIS_TX[:-1], ""])
def test_malformed_transaction_hex(bad):
    with pytest.raises(MarshallingError):
        Transaction.from_hex(MAINNET, bad)


def test_transaction_network_check():
    tx = Transaction.from_hex(REGTEST, GENESIS_TX)
    assert tx.check_network(REGTEST) is tx
    with pytest.raises(NetworkMismatchError):
        tx.check_network(MAINNET)


def test_genesis_block():
    block = Block.from_hex(MAINNET, GENESIS_BLOCK)
    assert block.hash == Sha256Hash.from_hex(GENESIS_HASH)
    assert block.header.prev_block == Sha256Hash.ZERO
    assert block.header.merkle_root == Sha256Hash.from_hex(GENESIS_TXID)
    assert block.header.time == 1231006505
    assert len(block.transactions) == 1
    assert block.check_merkle_root()
    assert block.to_hex() == GENESIS_BLOCK


def test_merkle_root_duplicates_odd_entry():
    a, b, c = (Sha256Hash.of(bytes([i])) for i in range(3))
    assert merkle_root([a]) == a
    assert merkle_root([a, b, c]) == merkle_root([a, b, c, c])
    with pytest.raises(MarshallingError):
        merkle_root([])


def test_truncated_block_is_rejected():
    with pytest.raises(MarshallingError):
        Block.from_hex(MAINNET, GENESIS_BLOCK[:-10])
