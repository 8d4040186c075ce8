"""
Enter-amount screen state.

``derive_enter_amount_state`` is a pure function of the typed amount, the
selected token and the latest preparation outcome. ``EnterAmountController``
is the stateful adapter the host screen drives: it re-prepares on input
changes, and emits analytics and navigation on the two calls to action.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from ...config import settings
from ..amounts import (
    DEFAULT_NUMBER_FORMAT,
    LocalCurrency,
    NumberFormat,
    format_amount,
    format_fiat,
    format_input_amount,
    format_token_amount,
    local_amount_for,
    parse_amount,
    round_usd,
    token_amount_for_local,
)
from ..errors import PrepareTransactionError
from ..execution.models import (
    PreparedTransactionsNotEnoughBalanceForGas,
    PreparedTransactionsResult,
    match_prepared_result,
)
from ..tokens import TokenBalance
from ...services.analytics import AnalyticsSink, EarnEvents, LoggingAnalyticsSink
from ...services.navigation import CICOFlow, Navigator, Screens
from .models import AmountField, DepositRequest, Pool, PrepareDepositResult, ShortcutId
from .refresher import DepositPreparationRefresher
from .selection import TokenSelection, fee_currencies_for_network, resolve_token_selection


logger = logging.getLogger(__name__)


def default_local_currency() -> LocalCurrency:
    return LocalCurrency(
        code=settings.local_currency_code,
        symbol=settings.local_currency_symbol,
        usd_exchange_rate=settings.usd_to_local_rate,
    )


def display_price(token: TokenBalance) -> Optional[Decimal]:
    return token.price_usd if token.price_usd is not None else token.last_known_price_usd


def strip_currency_symbol(text: Optional[str], symbol: str) -> Optional[str]:
    """Drop a leading currency symbol so a prefilled fiat field parses back."""
    if text is None or not symbol:
        return text
    stripped = text.strip()
    if stripped.startswith(symbol):
        stripped = stripped[len(symbol):].lstrip()
    return stripped


@dataclass(frozen=True)
class AmountInput:
    """What the user typed, in which field, under which locale separators."""

    text: str = ""
    number_format: NumberFormat = DEFAULT_NUMBER_FORMAT
    entered_in: AmountField = AmountField.TOKEN

    @property
    def value(self) -> Optional[Decimal]:
        return parse_amount(
            self.text,
            self.number_format.decimal_separator,
            self.number_format.grouping_separator,
        )


@dataclass(frozen=True)
class EnterAmountState:
    token_amount: Optional[Decimal]
    local_amount: Optional[Decimal]
    token_amount_text: str
    local_amount_text: str
    over_balance: bool
    not_enough_for_gas: bool
    need_decrease_spend_amount: bool
    show_prepare_error: bool
    continue_enabled: bool
    is_loading: bool
    gas_fee_currency: Optional[TokenBalance] = None
    decreased_spend_amount: Optional[Decimal] = None
    estimated_gas_fee: Optional[Decimal] = None
    token_summary: Optional[str] = None
    fiat_summary: Optional[str] = None


@dataclass(frozen=True)
class _ResultFlags:
    possible: bool = False
    not_enough_for_gas: bool = False
    need_decrease: bool = False
    gas_fee_currency: Optional[TokenBalance] = None
    decreased_spend_amount: Optional[Decimal] = None
    estimated_gas_fee: Optional[Decimal] = None


def _result_flags(result: Optional[PreparedTransactionsResult]) -> _ResultFlags:
    if result is None:
        return _ResultFlags()
    return match_prepared_result(
        result,
        possible=lambda r: _ResultFlags(
            possible=True,
            gas_fee_currency=r.fee_currency,
            estimated_gas_fee=r.estimated_gas_fee_in_decimal,
        ),
        not_enough_balance_for_gas=lambda r: _ResultFlags(
            not_enough_for_gas=True,
            gas_fee_currency=r.fee_currencies[0] if r.fee_currencies else None,
        ),
        need_decrease_spend_amount_for_gas=lambda r: _ResultFlags(
            need_decrease=True,
            gas_fee_currency=r.fee_currency,
            decreased_spend_amount=r.decreased_spend_amount,
            estimated_gas_fee=r.estimated_gas_fee_in_decimal,
        ),
    )


def derive_enter_amount_state(
    amount_input: AmountInput,
    selected_token: Optional[TokenBalance],
    prepared_result: Optional[PreparedTransactionsResult],
    is_preparing: bool,
    prepare_error: Optional[PrepareTransactionError] = None,
    local_currency: Optional[LocalCurrency] = None,
) -> EnterAmountState:
    """Derive every user-facing flag from the current inputs.

    Balances are compared as exact decimals. An over-balance amount is a
    warning that blocks continue; it does not need a preparation to be known.
    """
    currency = local_currency or default_local_currency()
    number_format = amount_input.number_format
    parsed = amount_input.value

    token_amount: Optional[Decimal]
    local_amount: Optional[Decimal]
    if selected_token is None:
        token_amount, local_amount = None, None
        token_text, local_text = amount_input.text, ""
    elif amount_input.entered_in is AmountField.LOCAL:
        local_amount = parse_amount(
            strip_currency_symbol(amount_input.text, currency.symbol),
            number_format.decimal_separator,
            number_format.grouping_separator,
        )
        token_amount = token_amount_for_local(local_amount, display_price(selected_token), currency, selected_token.decimals)
        local_text = amount_input.text
        token_text = (
            format_input_amount(token_amount, number_format, selected_token.decimals)
            if token_amount is not None else ""
        )
    else:
        token_amount = parsed
        local_amount = local_amount_for(parsed, display_price(selected_token), currency)
        token_text = amount_input.text
        local_text = format_fiat(local_amount, currency, number_format) if local_amount is not None else ""

    over_balance = bool(selected_token is not None and token_amount is not None and token_amount > selected_token.balance)
    has_amount = token_amount is not None and token_amount > 0
    flags = _result_flags(prepared_result)

    token_summary = None
    fiat_summary = None
    if selected_token is not None and has_amount:
        token_summary = format_token_amount(token_amount, selected_token.symbol, number_format)
        if local_amount is not None:
            fiat_summary = format_fiat(local_amount, currency, number_format)

    return EnterAmountState(
        token_amount=token_amount,
        local_amount=local_amount,
        token_amount_text=token_text,
        local_amount_text=local_text,
        over_balance=over_balance,
        not_enough_for_gas=flags.not_enough_for_gas,
        need_decrease_spend_amount=flags.need_decrease,
        show_prepare_error=prepare_error is not None and not is_preparing,
        continue_enabled=has_amount and not over_balance and not is_preparing and flags.possible,
        is_loading=is_preparing,
        gas_fee_currency=flags.gas_fee_currency,
        decreased_spend_amount=flags.decreased_spend_amount,
        estimated_gas_fee=flags.estimated_gas_fee,
        token_summary=token_summary,
        fiat_summary=fiat_summary,
    )


class EnterAmountController:
    """Drives one enter-amount session for a pool."""

    def __init__(
        self,
        *,
        pool: Pool,
        tokens: Iterable[TokenBalance],
        mode: ShortcutId,
        wallet_address: str,
        refresher: Optional[DepositPreparationRefresher] = None,
        analytics: Optional[AnalyticsSink] = None,
        navigator: Optional[Navigator] = None,
        number_format: NumberFormat = DEFAULT_NUMBER_FORMAT,
        local_currency: Optional[LocalCurrency] = None,
        app_version: Optional[str] = None,
        hooks_api_url: Optional[str] = None,
    ) -> None:
        self.pool = pool
        self.tokens = tuple(tokens)
        self.mode = ShortcutId(mode)
        self.wallet_address = wallet_address.lower()
        self.refresher = refresher or DepositPreparationRefresher()
        self.analytics = analytics or LoggingAnalyticsSink()
        self.navigator = navigator
        self.number_format = number_format
        self.local_currency = local_currency or default_local_currency()
        self.app_version = app_version or settings.app_version
        self.hooks_api_url = hooks_api_url or settings.hooks_api_url

        self.selection: TokenSelection = resolve_token_selection(pool, self.tokens, self.mode, self.app_version)
        self.amount_input = AmountInput(number_format=number_format)

    @property
    def selected_token(self) -> Optional[TokenBalance]:
        return self.selection.selected_token

    @property
    def prepared_result(self) -> Optional[PrepareDepositResult]:
        return self.refresher.prepare_transactions_result

    @property
    def state(self) -> EnterAmountState:
        prepared = self.prepared_result
        return derive_enter_amount_state(
            self.amount_input,
            self.selected_token,
            prepared.prepare_transactions_result if prepared else None,
            self.refresher.is_preparing_transactions,
            self.refresher.prepare_transaction_error,
            self.local_currency,
        )

    # ---------------------------
    # Input events
    # ---------------------------
    def on_amount_changed(self, text: str) -> Optional[asyncio.Task]:
        self.amount_input = AmountInput(text, self.number_format, AmountField.TOKEN)
        return self._refresh_or_clear()

    def on_local_amount_changed(self, text: str) -> Optional[asyncio.Task]:
        self.amount_input = AmountInput(text, self.number_format, AmountField.LOCAL)
        return self._refresh_or_clear()

    def on_token_selected(self, token_id: str) -> Optional[asyncio.Task]:
        if not self.selection.show_dropdown:
            return None
        self.selection = resolve_token_selection(
            self.pool, self.tokens, self.mode, self.app_version, selected_token_id=token_id
        )
        return self._refresh_or_clear()

    def on_max_pressed(self) -> Optional[asyncio.Task]:
        token = self.selected_token
        if token is None:
            return None
        text = format_input_amount(token.balance, self.number_format, token.decimals)
        return self.on_amount_changed(text)

    def build_request(self, amount: Decimal) -> DepositRequest:
        token = self.selected_token
        if token is None:
            raise ValueError("No input token selected")
        return DepositRequest(
            amount=amount,
            token=token,
            wallet_address=self.wallet_address,
            pool=self.pool,
            hooks_api_url=self.hooks_api_url,
            fee_currencies=fee_currencies_for_network(self.tokens, token.network_id),
            shortcut_id=self.mode,
        )

    def _refresh_or_clear(self) -> Optional[asyncio.Task]:
        state = self.state
        amount = state.token_amount
        if self.selected_token is None or amount is None or amount <= 0 or state.over_balance:
            self.refresher.clear()
            return None
        return self.refresher.refresh(self.build_request(amount))

    # ---------------------------
    # Calls to action
    # ---------------------------
    def continue_event_properties(self, state: EnterAmountState) -> Dict[str, Any]:
        token = self.selected_token
        if token is None or state.token_amount is None:
            raise ValueError("No amount or token to report")
        price = display_price(token)
        properties: Dict[str, Any] = {
            "amountEnteredIn": self.amount_input.entered_in.value,
            "amountInUsd": round_usd(state.token_amount * price) if price is not None else None,
            "networkId": token.network_id,
            "tokenAmount": format_amount(state.token_amount, grouping=False),
            "depositTokenId": self.pool.deposit_token_id,
            "userHasFunds": state.token_amount <= token.balance,
            "providerId": self.pool.provider_id,
            "poolId": self.pool.position_id,
        }
        if self.mode is ShortcutId.SWAP_DEPOSIT:
            properties["mode"] = self.mode.value
            properties["fromTokenId"] = token.token_id
        return properties

    def on_continue_pressed(self) -> Optional[PrepareDepositResult]:
        """Track the press and hand back the prepared deposit for confirmation."""
        state = self.state
        if not state.continue_enabled:
            return None
        self.analytics.track(EarnEvents.EARN_ENTER_AMOUNT_CONTINUE_PRESS, self.continue_event_properties(state))
        return self.prepared_result

    def on_add_gas_pressed(self) -> Optional[TokenBalance]:
        """Track the press and open cash-in for the fee token that needs topping up."""
        fee_token = self.state.gas_fee_currency
        prepared = self.prepared_result
        if fee_token is None or prepared is None or not isinstance(
            prepared.prepare_transactions_result, PreparedTransactionsNotEnoughBalanceForGas
        ):
            return None

        self.analytics.track(EarnEvents.EARN_DEPOSIT_ADD_GAS_PRESS, {"gasTokenId": fee_token.token_id})
        if self.navigator is not None:
            self.navigator.navigate(
                Screens.FIAT_EXCHANGE_AMOUNT,
                {
                    "tokenId": fee_token.token_id,
                    "flow": CICOFlow.CASH_IN.value,
                    "tokenSymbol": fee_token.symbol,
                    "networkId": fee_token.network_id,
                },
            )
        else:
            logger.warning("Add gas pressed without a navigator; cash-in not opened")
        return fee_token


__all__ = [
    "AmountInput",
    "EnterAmountState",
    "EnterAmountController",
    "derive_enter_amount_state",
    "default_local_currency",
    "display_price",
    "strip_currency_symbol",
]
