from decimal import Decimal
from pathlib import Path
from typing import Dict, List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Hooks service (shortcuts + swap quotes)
    hooks_api_url: str = Field(
        default="https://api.mainnet.valora.xyz/hooks-api",
        description="Base URL of the hooks service used to build deposit and swap transactions",
        validation_alias=AliasChoices("hooks_api_url", "HOOKS_API_URL", "EARN_HOOKS_API_URL"),
    )
    request_timeout_seconds: int = Field(default=30, description="Request timeout")

    # Client
    app_version: str = Field(
        default="1.90.0",
        description="Running client version, compared against a token's minimum version to swap",
    )

    # Preparation
    prepare_debounce_ms: int = Field(
        default=300,
        ge=0,
        description="Delay before a changed amount or token triggers a new preparation",
    )
    swap_slippage_percentage: Decimal = Field(
        default=Decimal("0.3"),
        ge=0,
        le=50,
        description="Slippage passed to the swap quote for swap-deposit",
    )
    gas_subsidized_network_ids: List[str] = Field(
        default_factory=list,
        description="Networks where gas is sponsored and fee balances are not checked",
    )
    non_native_fee_gas_padding: int = Field(
        default=50_000,
        ge=0,
        description="Extra gas added per transaction when fees are paid in a non-native token",
    )
    rpc_urls: Dict[str, str] = Field(
        default_factory=lambda: {
            "ethereum-mainnet": "https://eth.llamarpc.com",
            "arbitrum-one": "https://arb1.arbitrum.io/rpc",
            "arbitrum-sepolia": "https://sepolia-rollup.arbitrum.io/rpc",
            "op-mainnet": "https://mainnet.optimism.io",
            "celo-mainnet": "https://forno.celo.org",
            "base-mainnet": "https://mainnet.base.org",
        },
        description="JSON-RPC endpoint per network id, used for gas and fee estimation",
    )

    # Local currency display
    local_currency_code: str = Field(default="PHP", description="Local (fiat) currency code")
    local_currency_symbol: str = Field(default="₱", description="Local (fiat) currency symbol")
    usd_to_local_rate: Decimal = Field(
        default=Decimal("1.33"),
        gt=0,
        description="Exchange rate applied to USD prices for local amounts",
    )

    @property
    def has_hooks_api(self) -> bool:
        return bool(self.hooks_api_url)

    def rpc_url_for(self, network_id: str) -> str | None:
        return self.rpc_urls.get(network_id)

    def is_gas_subsidized(self, network_id: str) -> bool:
        return network_id in set(self.gas_subsidized_network_ids)


# Global settings instance
settings = Settings()
