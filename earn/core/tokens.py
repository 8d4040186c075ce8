"""Held-token snapshots used throughout the earn flow."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .errors import TokenNotFoundError


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


@dataclass(frozen=True)
class TokenBalance:
    """Balance of a single token on a single network.

    Supplied by external state and never mutated; use ``dataclasses.replace``
    to derive a modified copy.
    """

    token_id: str
    network_id: str
    symbol: str
    decimals: int
    balance: Decimal = Decimal("0")
    price_usd: Optional[Decimal] = None
    last_known_price_usd: Optional[Decimal] = None
    is_native: bool = False
    address: Optional[str] = None
    name: Optional[str] = None
    minimum_app_version_to_swap: Optional[str] = None
    is_fee_currency: bool = False
    fee_currency_address: Optional[str] = None

    @property
    def balance_usd(self) -> Optional[Decimal]:
        if self.price_usd is None:
            return None
        return self.balance * self.price_usd

    @property
    def can_pay_fees(self) -> bool:
        return self.is_native or self.is_fee_currency or bool(self.fee_currency_address)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TokenBalance":
        """Build from a camelCase snapshot entry (as stored by the host app)."""
        return cls(
            token_id=str(data["tokenId"]),
            network_id=str(data["networkId"]),
            symbol=str(data.get("symbol", "")),
            decimals=int(data.get("decimals", 18)),
            balance=_to_decimal(data.get("balance")) or Decimal("0"),
            price_usd=_to_decimal(data.get("priceUsd")),
            last_known_price_usd=_to_decimal(data.get("lastKnownPriceUsd")),
            is_native=bool(data.get("isNative", False)),
            address=data.get("address"),
            name=data.get("name"),
            minimum_app_version_to_swap=data.get("minimumAppVersionToSwap"),
            is_fee_currency=bool(data.get("isFeeCurrency", False)),
            fee_currency_address=data.get("feeCurrencyAdapterAddress") or data.get("feeCurrencyAddress"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tokenId": self.token_id,
            "networkId": self.network_id,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "balance": str(self.balance),
            "priceUsd": str(self.price_usd) if self.price_usd is not None else None,
            "lastKnownPriceUsd": str(self.last_known_price_usd) if self.last_known_price_usd is not None else None,
            "isNative": self.is_native,
            "address": self.address,
            "name": self.name,
            "minimumAppVersionToSwap": self.minimum_app_version_to_swap,
            "isFeeCurrency": self.is_fee_currency,
            "feeCurrencyAddress": self.fee_currency_address,
        }


def usd_sort_key(token: TokenBalance) -> tuple:
    """Descending USD value, then descending raw balance, then symbol."""
    usd = token.balance_usd if token.balance_usd is not None else Decimal("-1")
    return (-usd, -token.balance, token.symbol)


def index_balances(tokens: Iterable[TokenBalance]) -> Dict[str, TokenBalance]:
    return {token.token_id: token for token in tokens}


def get_token(tokens: Mapping[str, TokenBalance], token_id: str) -> TokenBalance:
    token = tokens.get(token_id)
    if token is None:
        raise TokenNotFoundError(f"Token {token_id} not found in balances", {"token_id": token_id})
    return token


def tokens_on_network(tokens: Iterable[TokenBalance], network_id: str) -> List[TokenBalance]:
    return [token for token in tokens if token.network_id == network_id]


__all__ = [
    "TokenBalance",
    "usd_sort_key",
    "index_balances",
    "get_token",
    "tokens_on_network",
]
