"""Typed models used by the earn deposit flow."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from ..execution.models import PreparedTransactionsResult, SwapQuote
from ..tokens import TokenBalance


class ShortcutId(str, Enum):
    """Named deposit pathway; also the enter-amount screen's mode."""
    DEPOSIT = "deposit"
    SWAP_DEPOSIT = "swap-deposit"


class AmountField(str, Enum):
    """Which field the user typed into."""
    TOKEN = "token"
    LOCAL = "local"


@dataclass(frozen=True)
class Pool:
    """A yield-bearing position the user can deposit into."""

    app_id: str
    position_id: str
    network_id: str
    deposit_token_id: str
    deposit_token_decimals: int = 18
    address: Optional[str] = None
    name: Optional[str] = None

    @property
    def provider_id(self) -> str:
        return self.app_id

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Pool":
        data_props = data.get("dataProps") or {}
        return cls(
            app_id=str(data["appId"]),
            position_id=str(data["positionId"]),
            network_id=str(data["networkId"]),
            deposit_token_id=str(data.get("depositTokenId") or data_props["depositTokenId"]),
            deposit_token_decimals=int(data.get("depositTokenDecimals", 18)),
            address=data.get("address"),
            name=data.get("name") or data.get("displayProps", {}).get("title"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "appId": self.app_id,
            "positionId": self.position_id,
            "networkId": self.network_id,
            "depositTokenId": self.deposit_token_id,
            "depositTokenDecimals": self.deposit_token_decimals,
            "address": self.address,
            "name": self.name,
        }


@dataclass(frozen=True)
class DepositRequest:
    """Immutable snapshot of everything a preparation needs.

    Built fresh on every amount or token change; ``generation`` orders requests
    so only the latest result is ever applied.
    """

    amount: Decimal
    token: TokenBalance
    wallet_address: str
    pool: Pool
    hooks_api_url: str
    fee_currencies: Tuple[TokenBalance, ...]
    shortcut_id: ShortcutId = ShortcutId.DEPOSIT
    generation: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "wallet_address", self.wallet_address.lower())
        object.__setattr__(self, "fee_currencies", tuple(self.fee_currencies))
        object.__setattr__(self, "shortcut_id", ShortcutId(self.shortcut_id))

    @property
    def is_swap_deposit(self) -> bool:
        return self.shortcut_id is ShortcutId.SWAP_DEPOSIT


@dataclass(frozen=True)
class PrepareDepositResult:
    """Prepared transactions plus the swap quote they were built from (swap-deposit only)."""

    prepare_transactions_result: PreparedTransactionsResult
    swap_transaction: Optional[SwapQuote] = None
    deposit_amount: Optional[Decimal] = None
    data_props: Dict[str, Any] = field(default_factory=dict, compare=False)
