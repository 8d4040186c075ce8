from decimal import Decimal

from earn.config import Settings


def test_hooks_api_url_aliases(monkeypatch):
    """Hooks URL should load from the prefixed alias when present."""

    monkeypatch.delenv("HOOKS_API_URL", raising=False)
    monkeypatch.setenv("EARN_HOOKS_API_URL", "https://staging.hooks.test/api")

    settings = Settings()

    assert settings.hooks_api_url == "https://staging.hooks.test/api"
    assert settings.has_hooks_api is True


def test_preparation_settings_from_env(monkeypatch):
    monkeypatch.setenv("PREPARE_DEBOUNCE_MS", "0")
    monkeypatch.setenv("SWAP_SLIPPAGE_PERCENTAGE", "0.5")
    monkeypatch.setenv("GAS_SUBSIDIZED_NETWORK_IDS", '["celo-alfajores"]')

    settings = Settings()

    assert settings.prepare_debounce_ms == 0
    assert settings.swap_slippage_percentage == Decimal("0.5")
    assert settings.is_gas_subsidized("celo-alfajores") is True
    assert settings.is_gas_subsidized("arbitrum-one") is False


def test_rpc_urls_by_network(monkeypatch):
    monkeypatch.setenv("RPC_URLS", '{"arbitrum-sepolia": "https://rpc.test"}')

    settings = Settings()

    assert settings.rpc_url_for("arbitrum-sepolia") == "https://rpc.test"
    assert settings.rpc_url_for("celo-mainnet") is None


def test_local_currency_defaults():
    settings = Settings()

    assert settings.local_currency_symbol == "₱"
    assert settings.usd_to_local_rate == Decimal("1.33")
