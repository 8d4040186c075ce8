"""
Fee-currency selection for a sequence of base transactions.

Walks the candidate fee currencies in order and attaches gas and fee fields
paid in the first one the wallet can afford. When the spent token is also the
fee currency, the spend amount and the maximum fee must fit in the balance
together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from ...config import settings
from ..amounts import from_base_units, to_base_units
from ..errors import SpendAmountExceedsBalanceError
from ..tokens import TokenBalance
from .gas import GasFeeEstimator
from .models import (
    BaseTransaction,
    FeeData,
    PreparedTransactionsNeedDecreaseSpendAmountForGas,
    PreparedTransactionsNotEnoughBalanceForGas,
    PreparedTransactionsPossible,
    PreparedTransactionsResult,
    TransactionRequest,
    describe_transactions,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeeCurrencyCheck:
    """Outcome of pricing the sequence in one fee currency."""
    fee_currency: TokenBalance
    transactions: tuple[TransactionRequest, ...]
    max_gas_fee: int
    estimated_gas_fee: int
    required_balance: int
    available_balance: int

    @property
    def sufficient(self) -> bool:
        return self.available_balance >= self.required_balance

    @property
    def covers_fee_only(self) -> bool:
        """Enough for the fee, but not for the fee plus the spend amount."""
        return self.available_balance >= self.max_gas_fee


def _with_fee_fields(
    tx: BaseTransaction,
    gas: int,
    fee_data: FeeData,
    fee_currency: TokenBalance,
) -> TransactionRequest:
    fee_currency_address = None if fee_currency.is_native else fee_currency.fee_currency_address
    if fee_data.legacy:
        return TransactionRequest(
            network_id=tx.network_id,
            from_address=tx.from_address,
            to_address=tx.to_address,
            data=tx.data,
            value=tx.value,
            gas=gas,
            gas_price=fee_data.max_fee_per_gas,
            base_fee_per_gas=fee_data.base_fee_per_gas,
            estimated_gas_use=tx.estimated_gas_use,
            fee_currency_address=fee_currency_address,
            tx_type=tx.tx_type,
        )
    return TransactionRequest(
        network_id=tx.network_id,
        from_address=tx.from_address,
        to_address=tx.to_address,
        data=tx.data,
        value=tx.value,
        gas=gas,
        max_fee_per_gas=fee_data.max_fee_per_gas,
        max_priority_fee_per_gas=fee_data.max_priority_fee_per_gas,
        base_fee_per_gas=fee_data.base_fee_per_gas,
        estimated_gas_use=tx.estimated_gas_use,
        fee_currency_address=fee_currency_address,
        tx_type=tx.tx_type,
    )


async def price_in_fee_currency(
    base_transactions: Sequence[BaseTransaction],
    fee_currency: TokenBalance,
    estimator: GasFeeEstimator,
    gas_padding: int,
    spend_amount: int = 0,
) -> FeeCurrencyCheck:
    """Attach gas and fees paid in ``fee_currency`` and compare against its balance."""
    network_id = base_transactions[0].network_id
    fee_data = await estimator.get_fee_data(network_id, fee_currency)
    fee_currency_address = None if fee_currency.is_native else fee_currency.fee_currency_address

    transactions = []
    for tx in base_transactions:
        if tx.gas is None:
            gas = await estimator.estimate_gas(tx, fee_currency_address=fee_currency_address)
        else:
            gas = tx.gas if fee_currency.is_native else tx.gas + gas_padding
        transactions.append(_with_fee_fields(tx, gas, fee_data, fee_currency))

    max_gas_fee = sum(tx.max_gas_fee for tx in transactions)
    estimated_gas_fee = sum(tx.estimated_gas_fee for tx in transactions)
    return FeeCurrencyCheck(
        fee_currency=fee_currency,
        transactions=tuple(transactions),
        max_gas_fee=max_gas_fee,
        estimated_gas_fee=estimated_gas_fee,
        required_balance=max_gas_fee + spend_amount,
        available_balance=to_base_units(fee_currency.balance, fee_currency.decimals),
    )


async def prepare_transactions(
    *,
    fee_currencies: Sequence[TokenBalance],
    base_transactions: Sequence[BaseTransaction],
    spend_token: Optional[TokenBalance] = None,
    spend_token_amount: Decimal = Decimal("0"),
    estimator: Optional[GasFeeEstimator] = None,
    is_gas_subsidized: bool = False,
    gas_padding: Optional[int] = None,
    origin: str = "earn",
) -> PreparedTransactionsResult:
    """
    Choose the first fee currency that can pay for ``base_transactions``.

    Args:
        fee_currencies: Candidates, already in preference order (native first)
        base_transactions: Calls to execute, in order
        spend_token: Token leaving the wallet, if any
        spend_token_amount: Amount of ``spend_token`` spent, in decimal units
        estimator: Gas/fee estimator (defaults to one built from settings)
        is_gas_subsidized: Skip balance checks; fees are sponsored
        gas_padding: Extra gas per call when paying in a non-native token
        origin: Label for logs

    Returns:
        Exactly one prepared-transactions variant

    Raises:
        SpendAmountExceedsBalanceError: spend amount above the spend token's balance
        GasEstimationError: gas or fee data could not be fetched
    """
    if spend_token is not None and spend_token_amount > spend_token.balance:
        raise SpendAmountExceedsBalanceError(
            "Cannot prepare transactions for an amount greater than the balance",
            {"token_id": spend_token.token_id, "amount": str(spend_token_amount), "balance": str(spend_token.balance)},
        )
    if not base_transactions or not fee_currencies:
        logger.info(f"[{origin}] no fee currency or transactions to price")
        return PreparedTransactionsNotEnoughBalanceForGas(fee_currencies=tuple(fee_currencies))

    estimator = estimator or GasFeeEstimator()
    padding = settings.non_native_fee_gas_padding if gas_padding is None else gas_padding
    spend_amount = to_base_units(spend_token_amount, spend_token.decimals) if spend_token else 0

    decrease_candidate: Optional[FeeCurrencyCheck] = None
    for fee_currency in fee_currencies:
        pays_with_spend_token = spend_token is not None and fee_currency.token_id == spend_token.token_id
        check = await price_in_fee_currency(
            base_transactions,
            fee_currency,
            estimator,
            padding,
            spend_amount=spend_amount if pays_with_spend_token else 0,
        )
        if is_gas_subsidized or check.sufficient:
            logger.info(
                f"[{origin}] prepared {describe_transactions(list(check.transactions))} "
                f"paying fees in {fee_currency.token_id}"
            )
            return PreparedTransactionsPossible(transactions=check.transactions, fee_currency=fee_currency)
        if pays_with_spend_token and check.covers_fee_only and decrease_candidate is None:
            decrease_candidate = check

    if decrease_candidate is not None:
        fee_currency = decrease_candidate.fee_currency
        max_fee = from_base_units(decrease_candidate.max_gas_fee, fee_currency.decimals)
        logger.info(f"[{origin}] spend amount must decrease to cover gas in {fee_currency.token_id}")
        return PreparedTransactionsNeedDecreaseSpendAmountForGas(
            fee_currency=fee_currency,
            max_gas_fee_in_decimal=max_fee,
            estimated_gas_fee_in_decimal=from_base_units(decrease_candidate.estimated_gas_fee, fee_currency.decimals),
            decreased_spend_amount=fee_currency.balance - max_fee,
        )

    logger.info(f"[{origin}] not enough balance for gas in {[t.token_id for t in fee_currencies]}")
    return PreparedTransactionsNotEnoughBalanceForGas(fee_currencies=tuple(fee_currencies))
