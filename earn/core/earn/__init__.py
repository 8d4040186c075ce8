"""
Earn deposit flow

- resolve_token_selection / fee_currencies_for_network: which token is spent, who pays gas
- DepositTransactionPreparer: swap (optional) + deposit transactions, priced for gas
- DepositPreparationRefresher: debounced, latest-wins preparation
- derive_enter_amount_state / EnterAmountController: screen state and calls to action

Usage:
    from earn.core.earn import EnterAmountController, ShortcutId

    controller = EnterAmountController(
        pool=pool,
        tokens=balances,
        mode=ShortcutId.DEPOSIT,
        wallet_address="0x...",
    )
    task = controller.on_amount_changed("8")  # None when there is nothing to prepare
    if task is not None:
        await task
    controller.state.continue_enabled
"""

from .models import AmountField, DepositRequest, Pool, PrepareDepositResult, ShortcutId
from .selection import (
    TokenSelection,
    fee_currencies_for_network,
    is_swap_eligible,
    resolve_token_selection,
    swappable_tokens,
)
from .prepare import DepositTransactionPreparer, parse_swap_quote
from .refresher import DepositPreparationRefresher
from .enter_amount import (
    AmountInput,
    EnterAmountController,
    EnterAmountState,
    derive_enter_amount_state,
)

__all__ = [
    "AmountField",
    "DepositRequest",
    "Pool",
    "PrepareDepositResult",
    "ShortcutId",
    "TokenSelection",
    "fee_currencies_for_network",
    "is_swap_eligible",
    "resolve_token_selection",
    "swappable_tokens",
    "DepositTransactionPreparer",
    "parse_swap_quote",
    "DepositPreparationRefresher",
    "AmountInput",
    "EnterAmountController",
    "EnterAmountState",
    "derive_enter_amount_state",
]
