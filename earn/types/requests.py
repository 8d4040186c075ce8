from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from ..core.earn.models import AmountField, DepositRequest, Pool, ShortcutId
from ..core.tokens import TokenBalance


class TokenBalanceModel(BaseModel):
    token_id: str = Field(description="Token identifier, e.g. arbitrum-one:0xaf88...")
    network_id: str = Field(description="Network the token lives on")
    symbol: str = Field(description="Ticker symbol")
    decimals: int = Field(ge=0, le=36, description="Token decimals")
    balance: Decimal = Field(default=Decimal("0"), ge=0, description="Held balance in token units")
    price_usd: Optional[Decimal] = Field(default=None, ge=0, description="Current USD price")
    last_known_price_usd: Optional[Decimal] = Field(default=None, ge=0, description="Last known USD price")
    is_native: bool = Field(default=False, description="Native asset of the network")
    address: Optional[str] = Field(default=None, description="Contract address (absent for native assets)")
    name: Optional[str] = Field(default=None)
    minimum_app_version_to_swap: Optional[str] = Field(default=None, description="Minimum client version allowed to swap")
    is_fee_currency: bool = Field(default=False, description="Can pay network fees")
    fee_currency_address: Optional[str] = Field(default=None, description="Fee currency adapter address")

    def to_domain(self) -> TokenBalance:
        return TokenBalance(**self.model_dump())


class PoolModel(BaseModel):
    app_id: str = Field(description="Provider id")
    position_id: str = Field(description="Position id")
    network_id: str = Field(description="Network of the position")
    deposit_token_id: str = Field(description="Token the position accepts")
    deposit_token_decimals: int = Field(default=18, ge=0, le=36)
    address: Optional[str] = Field(default=None, description="Position contract address")
    name: Optional[str] = Field(default=None)

    def to_domain(self) -> Pool:
        return Pool(**self.model_dump())


class PrepareDepositBody(BaseModel):
    amount: Decimal = Field(gt=0, description="Amount of `token` to spend, in token units")
    token: TokenBalanceModel
    wallet_address: str = Field(description="Sender wallet address")
    pool: PoolModel
    fee_currencies: List[TokenBalanceModel] = Field(default_factory=list, description="Fee currency candidates, in order")
    shortcut_id: ShortcutId = Field(default=ShortcutId.DEPOSIT)

    def to_domain(self, hooks_api_url: str) -> DepositRequest:
        return DepositRequest(
            amount=self.amount,
            token=self.token.to_domain(),
            wallet_address=self.wallet_address,
            pool=self.pool.to_domain(),
            hooks_api_url=hooks_api_url,
            fee_currencies=tuple(fc.to_domain() for fc in self.fee_currencies),
            shortcut_id=self.shortcut_id,
        )


class EnterAmountBody(BaseModel):
    pool: PoolModel
    tokens: List[TokenBalanceModel] = Field(description="Held balances snapshot")
    mode: ShortcutId = Field(default=ShortcutId.DEPOSIT)
    wallet_address: str
    amount_text: str = Field(default="", description="Text typed by the user, locale formatted")
    entered_in: AmountField = Field(default=AmountField.TOKEN)
    decimal_separator: str = Field(default=".", min_length=1, max_length=1)
    grouping_separator: str = Field(default=",", max_length=1)
    selected_token_id: Optional[str] = Field(default=None, description="User's dropdown choice (swap-deposit)")
    prepare: bool = Field(default=False, description="Also prepare transactions for a valid amount")
