from decimal import Decimal

import pytest

from conftest import WALLET
from earn.core.errors import HooksApiError
from earn.core.execution import SwapQuote, TransactionBuilder, TransactionType
from earn.core.execution.tx_builder import ERC20_APPROVE_SELECTOR, parse_quantity


def _quote(**overrides):
    fields = dict(
        network_id="arbitrum-sepolia",
        wallet_address=WALLET,
        sell_token_id="arbitrum-sepolia:arb",
        sell_token_address="0x912ce59144191c1204e64559fe8253a0e49e6548",
        sell_amount=5 * 10**18,
        buy_token_id="arbitrum-sepolia:usdc",
        buy_token_address="0x75faf114eafb1bdbe2f0316df893fd58ce46aa4d",
        buy_amount=4_990_000,
        price=Decimal("0.998"),
        guaranteed_price=None,
        allowance_target="0x0000000000001ff3684f28c67538d4d072c22734",
        swap_provider="0x",
        to_address="0x0000000000001FF3684f28c67538d4D072C22734",
        data="0xswap",
    )
    fields.update(overrides)
    return SwapQuote(**fields)


def test_parse_quantity_accepts_int_decimal_and_hex():
    assert parse_quantity(5) == 5
    assert parse_quantity("21000") == 21000
    assert parse_quantity("0x5208") == 21000
    assert parse_quantity(None) is None
    with pytest.raises(ValueError):
        parse_quantity(True)


def test_erc20_approve_calldata():
    tx = TransactionBuilder.build_erc20_approve(
        network_id="arbitrum-sepolia",
        owner_address=WALLET,
        token_address="0xToken",
        spender_address="0x00000000000000000000000000000000000000aa",
        amount=255,
    )
    assert tx.data.startswith(ERC20_APPROVE_SELECTOR)
    assert tx.data.endswith("ff")
    assert len(tx.data) == 10 + 64 + 64
    assert tx.tx_type is TransactionType.APPROVE
    assert tx.to_address == "0xtoken"


def test_swap_leg_approves_erc20_before_swap():
    txs = TransactionBuilder.build_swap_leg(_quote(), sell_token_is_native=False)

    assert [t.tx_type for t in txs] == [TransactionType.APPROVE, TransactionType.SWAP]
    assert txs[0].to_address == "0x912ce59144191c1204e64559fe8253a0e49e6548"
    assert txs[1].to_address == "0x0000000000001ff3684f28c67538d4d072c22734"


def test_native_swap_leg_has_no_approval():
    txs = TransactionBuilder.build_swap_leg(_quote(sell_token_address=None), sell_token_is_native=True)
    assert [t.tx_type for t in txs] == [TransactionType.SWAP]


def test_erc20_swap_without_allowance_target_fails():
    with pytest.raises(HooksApiError):
        TransactionBuilder.build_swap_leg(_quote(allowance_target=None), sell_token_is_native=False)


def test_build_from_raw_detects_approvals():
    tx = TransactionBuilder.build_from_raw(
        {"from": WALLET.upper().replace("0X", "0x"), "to": "0xPool", "data": "095ea7b3" + "00" * 64, "gas": "0x5208"},
        "arbitrum-sepolia",
    )
    assert tx.tx_type is TransactionType.APPROVE
    assert tx.data.startswith("0x")
    assert tx.gas == 21000
    assert tx.from_address == WALLET


def test_build_from_raw_rejects_other_network():
    with pytest.raises(HooksApiError):
        TransactionBuilder.build_from_raw(
            {"from": WALLET, "to": "0xPool", "data": "0x", "networkId": "celo-mainnet"},
            "arbitrum-sepolia",
        )


def test_build_from_raw_rejects_missing_fields():
    with pytest.raises(HooksApiError):
        TransactionBuilder.build_from_raw({"to": "0xPool"}, "arbitrum-sepolia")
