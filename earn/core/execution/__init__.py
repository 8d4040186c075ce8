"""
Transaction Preparation Layer

Turns unsigned calls into transactions ready for signing:
- TransactionBuilder: approvals, swap calls and raw shortcut transactions
- GasFeeEstimator: gas limits and per-gas fees over JSON-RPC
- prepare_transactions: picks the fee currency that can pay for a sequence

Usage:
    from earn.core.execution import prepare_transactions, match_prepared_result

    result = await prepare_transactions(
        fee_currencies=fee_currencies,
        base_transactions=transactions,
        spend_token=token,
        spend_token_amount=amount,
    )
"""

from .models import (
    TransactionType,
    BaseTransaction,
    FeeData,
    TransactionRequest,
    SwapQuote,
    PreparedTransactionsPossible,
    PreparedTransactionsNotEnoughBalanceForGas,
    PreparedTransactionsNeedDecreaseSpendAmountForGas,
    PreparedTransactionsResult,
    match_prepared_result,
    serialize_prepared_result,
)

from .tx_builder import TransactionBuilder

from .gas import GasFeeEstimator

from .fees import FeeCurrencyCheck, prepare_transactions

__all__ = [
    "TransactionType",
    "BaseTransaction",
    "FeeData",
    "TransactionRequest",
    "SwapQuote",
    "PreparedTransactionsPossible",
    "PreparedTransactionsNotEnoughBalanceForGas",
    "PreparedTransactionsNeedDecreaseSpendAmountForGas",
    "PreparedTransactionsResult",
    "match_prepared_result",
    "serialize_prepared_result",
    "TransactionBuilder",
    "GasFeeEstimator",
    "FeeCurrencyCheck",
    "prepare_transactions",
]
