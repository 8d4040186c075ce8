import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..config import settings
from ..core.amounts import NumberFormat
from ..core.earn import (
    AmountInput,
    DepositTransactionPreparer,
    EnterAmountState,
    PrepareDepositResult,
    derive_enter_amount_state,
    fee_currencies_for_network,
    resolve_token_selection,
)
from ..core.earn.enter_amount import default_local_currency
from ..core.earn.models import DepositRequest
from ..core.errors import PrepareTransactionError, TokenNotFoundError
from ..core.execution.models import serialize_prepared_result
from ..types.requests import EnterAmountBody, PrepareDepositBody

router = APIRouter(prefix="/earn")
logger = logging.getLogger(__name__)


def get_deposit_preparer() -> DepositTransactionPreparer:
    return DepositTransactionPreparer()


def _serialize_prepare_result(result: PrepareDepositResult) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "result": serialize_prepared_result(result.prepare_transactions_result),
        "depositAmount": str(result.deposit_amount) if result.deposit_amount is not None else None,
        "dataProps": result.data_props,
        "swapTransaction": None,
    }
    quote = result.swap_transaction
    if quote is not None:
        payload["swapTransaction"] = {
            "sellTokenId": quote.sell_token_id,
            "buyTokenId": quote.buy_token_id,
            "sellAmount": str(quote.sell_amount),
            "buyAmount": str(quote.buy_amount),
            "price": str(quote.price),
            "swapProvider": quote.swap_provider,
        }
    return payload


def _serialize_state(state: EnterAmountState) -> Dict[str, Any]:
    def _str(value: Optional[Any]) -> Optional[str]:
        return str(value) if value is not None else None

    return {
        "tokenAmount": _str(state.token_amount),
        "localAmount": _str(state.local_amount),
        "tokenAmountText": state.token_amount_text,
        "localAmountText": state.local_amount_text,
        "overBalance": state.over_balance,
        "notEnoughForGas": state.not_enough_for_gas,
        "needDecreaseSpendAmount": state.need_decrease_spend_amount,
        "showPrepareError": state.show_prepare_error,
        "continueEnabled": state.continue_enabled,
        "isLoading": state.is_loading,
        "gasFeeCurrencyId": state.gas_fee_currency.token_id if state.gas_fee_currency else None,
        "decreasedSpendAmount": _str(state.decreased_spend_amount),
        "estimatedGasFee": _str(state.estimated_gas_fee),
        "tokenSummary": state.token_summary,
        "fiatSummary": state.fiat_summary,
    }


@router.post("/deposit/prepare")
async def prepare_deposit(
    body: PrepareDepositBody,
    preparer: DepositTransactionPreparer = Depends(get_deposit_preparer),
) -> Dict[str, Any]:
    request = body.to_domain(settings.hooks_api_url)
    try:
        result = await preparer.prepare(request)
    except PrepareTransactionError as exc:
        raise HTTPException(status_code=502, detail={"message": exc.message, "details": exc.details})
    return {"success": True, **_serialize_prepare_result(result)}


@router.post("/enter-amount/state")
async def enter_amount_state(
    body: EnterAmountBody,
    preparer: DepositTransactionPreparer = Depends(get_deposit_preparer),
) -> Dict[str, Any]:
    """Resolve the token selection and derive the screen state for a snapshot.

    With ``prepare`` set and a spendable amount, the deposit is prepared
    inline and the outcome folded into the state.
    """
    pool = body.pool.to_domain()
    tokens = [token.to_domain() for token in body.tokens]
    try:
        number_format = NumberFormat(body.decimal_separator, body.grouping_separator)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    try:
        selection = resolve_token_selection(
            pool, tokens, body.mode, settings.app_version, selected_token_id=body.selected_token_id
        )
    except TokenNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message)
    amount_input = AmountInput(body.amount_text, number_format, body.entered_in)
    currency = default_local_currency()
    token = selection.selected_token

    state = derive_enter_amount_state(amount_input, token, None, False, local_currency=currency)
    prepared: Optional[PrepareDepositResult] = None
    error: Optional[PrepareTransactionError] = None
    amount = state.token_amount
    if body.prepare and token is not None and amount is not None and amount > 0 and not state.over_balance:
        request = DepositRequest(
            amount=amount,
            token=token,
            wallet_address=body.wallet_address,
            pool=pool,
            hooks_api_url=settings.hooks_api_url,
            fee_currencies=fee_currencies_for_network(tokens, token.network_id),
            shortcut_id=body.mode,
        )
        try:
            prepared = await preparer.prepare(request)
        except PrepareTransactionError as exc:
            logger.info(f"Enter-amount preparation failed: {exc.message}")
            error = exc
        state = derive_enter_amount_state(
            amount_input,
            token,
            prepared.prepare_transactions_result if prepared else None,
            False,
            error,
            currency,
        )

    return {
        "pool": pool.to_dict(),
        "selection": {
            "selectedTokenId": token.token_id if token else None,
            "tokenSelectDisabled": selection.token_select_disabled,
            "showDropdown": selection.show_dropdown,
            "eligibleTokenIds": [t.token_id for t in selection.eligible_tokens],
        },
        "state": _serialize_state(state),
        "prepared": _serialize_prepare_result(prepared) if prepared else None,
        "error": error.message if error else None,
    }
