from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import ARB_ID, ETH_ID, NETWORK, USDC_ID, WALLET
from earn.api.earn import get_deposit_preparer
from earn.config import settings
from earn.core.earn import PrepareDepositResult
from earn.core.errors import HooksApiError
from earn.core.execution import PreparedTransactionsNotEnoughBalanceForGas
from earn.main import app

client = TestClient(app)


USDC = {
    "token_id": USDC_ID,
    "network_id": NETWORK,
    "symbol": "USDC",
    "decimals": 6,
    "balance": "10",
    "price_usd": "1",
    "address": "0x75faf114eafb1bdbe2f0316df893fd58ce46aa4d",
}
ETH = {
    "token_id": ETH_ID,
    "network_id": NETWORK,
    "symbol": "ETH",
    "decimals": 18,
    "balance": "0",
    "price_usd": "1500",
    "is_native": True,
    "minimum_app_version_to_swap": "1.0.0",
}
ARB = {
    "token_id": ARB_ID,
    "network_id": NETWORK,
    "symbol": "ARB",
    "decimals": 18,
    "balance": "100",
    "price_usd": "1.01",
    "address": "0x912ce59144191c1204e64559fe8253a0e49e6548",
    "minimum_app_version_to_swap": "1.0.0",
}
POOL = {
    "app_id": "aave",
    "position_id": "aave-v3-arbitrum-sepolia-usdc",
    "network_id": NETWORK,
    "deposit_token_id": USDC_ID,
    "deposit_token_decimals": 6,
    "address": "0x460b97bd498e1157530aeb3086301d5225b91216",
}


@pytest.fixture
def preparer():
    mock = MagicMock()
    mock.prepare = AsyncMock()
    app.dependency_overrides[get_deposit_preparer] = lambda: mock
    yield mock
    app.dependency_overrides.clear()


def test_health_endpoint():
    response = client.get("/healthz")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] in ("healthy", "degraded")
    assert "arbitrum-sepolia" in data["rpc_networks"]


def test_prepare_deposit_returns_tagged_result(preparer):
    preparer.prepare.return_value = PrepareDepositResult(
        prepare_transactions_result=PreparedTransactionsNotEnoughBalanceForGas(fee_currencies=()),
        deposit_amount=Decimal("8"),
    )
    payload = {"amount": "8", "token": USDC, "wallet_address": WALLET, "pool": POOL, "fee_currencies": [ETH]}

    response = client.post("/earn/deposit/prepare", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["result"]["type"] == "not-enough-balance-for-gas"
    assert data["depositAmount"] == "8"
    request = preparer.prepare.await_args.args[0]
    assert request.fee_currencies[0].token_id == ETH_ID
    assert request.hooks_api_url


def test_prepare_deposit_ignores_client_supplied_hooks_url(preparer):
    preparer.prepare.return_value = PrepareDepositResult(
        prepare_transactions_result=PreparedTransactionsNotEnoughBalanceForGas(fee_currencies=()),
    )
    payload = {
        "amount": "8",
        "token": USDC,
        "wallet_address": WALLET,
        "pool": POOL,
        "hooks_api_url": "http://169.254.169.254/latest",
    }

    response = client.post("/earn/deposit/prepare", json=payload)

    assert response.status_code == 200
    request = preparer.prepare.await_args.args[0]
    assert request.hooks_api_url == settings.hooks_api_url


def test_prepare_deposit_maps_failures_to_bad_gateway(preparer):
    preparer.prepare.side_effect = HooksApiError("hooks down", status_code=503)
    payload = {"amount": "8", "token": USDC, "wallet_address": WALLET, "pool": POOL}

    response = client.post("/earn/deposit/prepare", json=payload)

    assert response.status_code == 502
    assert response.json()["detail"]["message"] == "hooks down"


def test_prepare_deposit_rejects_non_positive_amount(preparer):
    payload = {"amount": "0", "token": USDC, "wallet_address": WALLET, "pool": POOL}

    response = client.post("/earn/deposit/prepare", json=payload)

    assert response.status_code == 422
    preparer.prepare.assert_not_awaited()


def test_enter_amount_state_over_balance(preparer):
    payload = {"pool": POOL, "tokens": [USDC, ETH], "wallet_address": WALLET, "amount_text": "12", "prepare": True}

    response = client.post("/earn/enter-amount/state", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["selection"]["selectedTokenId"] == USDC_ID
    assert data["pool"]["positionId"] == POOL["position_id"]
    assert data["selection"]["tokenSelectDisabled"] is True
    assert data["state"]["overBalance"] is True
    assert data["state"]["continueEnabled"] is False
    preparer.prepare.assert_not_awaited()


def test_enter_amount_state_prepares_when_asked(preparer):
    preparer.prepare.return_value = PrepareDepositResult(
        prepare_transactions_result=PreparedTransactionsNotEnoughBalanceForGas(fee_currencies=()),
    )
    payload = {"pool": POOL, "tokens": [USDC, ETH], "wallet_address": WALLET, "amount_text": "8", "prepare": True}

    response = client.post("/earn/enter-amount/state", json=payload)

    data = response.json()
    assert data["state"]["notEnoughForGas"] is True
    assert data["state"]["fiatSummary"] == "₱10.64"
    assert data["prepared"]["result"]["type"] == "not-enough-balance-for-gas"
    assert preparer.prepare.await_args.args[0].fee_currencies[0].token_id == ETH_ID


def test_enter_amount_state_swap_dropdown(preparer):
    payload = {
        "pool": POOL,
        "tokens": [USDC, dict(ETH, balance="1"), ARB],
        "wallet_address": WALLET,
        "mode": "swap-deposit",
        "selected_token_id": ARB_ID,
    }

    response = client.post("/earn/enter-amount/state", json=payload)

    selection = response.json()["selection"]
    assert selection["showDropdown"] is True
    assert selection["eligibleTokenIds"] == [ETH_ID, ARB_ID]
    assert selection["selectedTokenId"] == ARB_ID


def test_enter_amount_state_unknown_pool_token(preparer):
    payload = {"pool": POOL, "tokens": [ARB], "wallet_address": WALLET}

    response = client.post("/earn/enter-amount/state", json=payload)

    assert response.status_code == 404


def test_enter_amount_state_comma_locale(preparer):
    payload = {
        "pool": POOL,
        "tokens": [dict(USDC, balance="100000.42"), ETH],
        "wallet_address": WALLET,
        "amount_text": "100.000,42",
        "decimal_separator": ",",
        "grouping_separator": ".",
    }

    response = client.post("/earn/enter-amount/state", json=payload)

    state = response.json()["state"]
    assert state["tokenAmount"] == "100000.42"
    assert state["localAmountText"] == "₱133.000,56"
