from dataclasses import replace
from decimal import Decimal

import pytest

from earn.core.earn.models import Pool
from earn.core.tokens import TokenBalance


NETWORK = "arbitrum-sepolia"
WALLET = "0x2b8441ef13333ffa955c9ea5ab5b3692da95260d"

USDC_ID = "arbitrum-sepolia:0x75faf114eafb1bdbe2f0316df893fd58ce46aa4d"
ETH_ID = "arbitrum-sepolia:native"
ARB_ID = "arbitrum-sepolia:0x912ce59144191c1204e64559fe8253a0e49e6548"


def make_token(**overrides) -> TokenBalance:
    fields = {
        "token_id": USDC_ID,
        "network_id": NETWORK,
        "symbol": "USDC",
        "decimals": 6,
        "balance": Decimal("10"),
        "price_usd": Decimal("1"),
        "address": "0x75faf114eafb1bdbe2f0316df893fd58ce46aa4d",
    }
    fields.update(overrides)
    return TokenBalance(**fields)


@pytest.fixture
def usdc() -> TokenBalance:
    return make_token()


@pytest.fixture
def eth() -> TokenBalance:
    return make_token(
        token_id=ETH_ID,
        symbol="ETH",
        decimals=18,
        balance=Decimal("0"),
        price_usd=Decimal("1500"),
        address=None,
        is_native=True,
        minimum_app_version_to_swap="1.0.0",
    )


@pytest.fixture
def funded_eth(eth) -> TokenBalance:
    return replace(eth, balance=Decimal("1"))


@pytest.fixture
def arb() -> TokenBalance:
    return make_token(
        token_id=ARB_ID,
        symbol="ARB",
        decimals=18,
        balance=Decimal("100"),
        price_usd=Decimal("1.01"),
        address="0x912ce59144191c1204e64559fe8253a0e49e6548",
        minimum_app_version_to_swap="1.0.0",
    )


@pytest.fixture
def pool() -> Pool:
    return Pool(
        app_id="aave",
        position_id="aave-v3-arbitrum-sepolia-usdc",
        network_id=NETWORK,
        deposit_token_id=USDC_ID,
        deposit_token_decimals=6,
        address="0x460b97bd498e1157530aeb3086301d5225b91216",
        name="USDC Pool",
    )
