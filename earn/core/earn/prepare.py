"""
Deposit transaction preparation.

Builds the call sequence for a deposit (optionally preceded by a swap into the
pool's deposit token), then prices it in the first fee currency the wallet can
afford. Service failures surface as ``PrepareTransactionError``; an explicit,
successful quote that the wallet cannot pay gas for surfaces as the
``not-enough-balance-for-gas`` variant. The two are never conflated.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from ...config import settings
from ...providers.hooks import HooksApiProvider
from ..amounts import from_base_units, to_base_units
from ..errors import HooksApiError, PrepareTransactionError
from ..execution.fees import prepare_transactions
from ..execution.gas import GasFeeEstimator
from ..execution.models import BaseTransaction, SwapQuote, TransactionType
from ..execution.tx_builder import TransactionBuilder, parse_quantity
from .models import DepositRequest, PrepareDepositResult, ShortcutId


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(str(value))


def parse_swap_quote(body: Dict[str, Any], request: DepositRequest) -> SwapQuote:
    """Validate and parse a ``getSwapQuote`` response body."""
    tx = body.get("unvalidatedSwapTransaction") or {}
    details = body.get("details") or {}
    try:
        sell_amount = parse_quantity(tx["sellAmount"])
        buy_amount = parse_quantity(tx["buyAmount"])
        quote = SwapQuote(
            network_id=request.pool.network_id,
            wallet_address=request.wallet_address,
            sell_token_id=request.token.token_id,
            sell_token_address=tx.get("sellTokenAddress") or request.token.address,
            sell_amount=sell_amount,
            buy_token_id=request.pool.deposit_token_id,
            buy_token_address=tx.get("buyTokenAddress"),
            buy_amount=buy_amount,
            price=Decimal(str(tx.get("price", "0"))),
            guaranteed_price=_optional_decimal(tx.get("guaranteedPrice")),
            allowance_target=tx.get("allowanceTarget"),
            swap_provider=details.get("swapProvider"),
            to_address=str(tx["to"]),
            data=str(tx["data"]),
            value=parse_quantity(tx.get("value")) or 0,
            gas=parse_quantity(tx.get("gas")),
            estimated_gas_use=parse_quantity(tx.get("estimatedGasUse")),
            raw_response=body,
        )
    except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
        raise HooksApiError(f"Malformed swap quote: {exc}") from exc

    if not quote.buy_amount or quote.buy_amount <= 0 or not quote.sell_amount:
        raise HooksApiError("Swap quote has no output amount", details={"buy_amount": quote.buy_amount})
    return quote


class DepositTransactionPreparer:
    """Prepares the ordered transactions for a :class:`DepositRequest`."""

    def __init__(
        self,
        *,
        hooks: Optional[HooksApiProvider] = None,
        estimator: Optional[GasFeeEstimator] = None,
        slippage_percentage: Optional[Decimal] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._hooks = hooks or HooksApiProvider()
        self._estimator = estimator or GasFeeEstimator()
        self._slippage = slippage_percentage if slippage_percentage is not None else settings.swap_slippage_percentage
        self._logger = logger or logging.getLogger(__name__)

    async def prepare(self, request: DepositRequest) -> PrepareDepositResult:
        """
        Build and price the deposit sequence.

        Raises:
            PrepareTransactionError: the hooks service or gas estimation failed,
                returned unusable data, or the amount is not spendable
        """
        if request.amount <= 0:
            raise PrepareTransactionError("Deposit amount must be positive", {"amount": str(request.amount)})

        origin = f"earn-{request.shortcut_id.value}"
        try:
            swap_quote: Optional[SwapQuote] = None
            base_transactions: List[BaseTransaction] = []
            deposit_amount = request.amount
            deposit_token_address = request.token.address

            if request.is_swap_deposit:
                swap_quote = await self._fetch_swap_quote(request)
                base_transactions.extend(TransactionBuilder.build_swap_leg(swap_quote, request.token.is_native))
                deposit_amount = from_base_units(swap_quote.buy_amount, request.pool.deposit_token_decimals)
                deposit_token_address = swap_quote.buy_token_address

            deposit_leg, data_props = await self._fetch_deposit_leg(
                request, deposit_amount, deposit_token_address, after_swap=request.is_swap_deposit
            )
            base_transactions.extend(deposit_leg)

            result = await prepare_transactions(
                fee_currencies=request.fee_currencies,
                base_transactions=base_transactions,
                spend_token=request.token,
                spend_token_amount=request.amount,
                estimator=self._estimator,
                is_gas_subsidized=settings.is_gas_subsidized(request.pool.network_id),
                origin=origin,
            )
        except PrepareTransactionError as exc:
            self._logger.warning(
                f"[{origin}] preparation failed for {request.pool.position_id}: {exc.message}",
                extra={"details": exc.details, "generation": request.generation},
            )
            raise

        self._logger.info(
            f"[{origin}] prepared {result.type} for {request.pool.position_id}",
            extra={"generation": request.generation, "amount": str(request.amount)},
        )
        return PrepareDepositResult(
            prepare_transactions_result=result,
            swap_transaction=swap_quote,
            deposit_amount=deposit_amount,
            data_props=data_props,
        )

    async def _fetch_swap_quote(self, request: DepositRequest) -> SwapQuote:
        payload = {
            "userAddress": request.wallet_address,
            "sellToken": request.token.address,
            "sellIsNative": request.token.is_native,
            "sellNetworkId": request.token.network_id,
            "buyTokenId": request.pool.deposit_token_id,
            "buyNetworkId": request.pool.network_id,
            "sellAmount": str(to_base_units(request.amount, request.token.decimals)),
            "slippagePercentage": str(self._slippage),
        }
        body = await self._hooks.get_swap_quote(payload, hooks_api_url=request.hooks_api_url)
        quote = parse_swap_quote(body, request)
        self._logger.debug(
            f"Swap quote {quote.sell_token_id} -> {quote.buy_token_id}: "
            f"sell={quote.sell_amount} buy={quote.buy_amount} via {quote.swap_provider}"
        )
        return quote

    async def _fetch_deposit_leg(
        self,
        request: DepositRequest,
        amount: Decimal,
        token_address: Optional[str],
        after_swap: bool = False,
    ) -> tuple[List[BaseTransaction], Dict[str, Any]]:
        pool = request.pool
        payload = {
            "address": request.wallet_address,
            "appId": pool.app_id,
            "networkId": pool.network_id,
            "shortcutId": ShortcutId.DEPOSIT.value,
            "positionAddress": pool.address,
            "tokenAddress": token_address,
            "tokenDecimals": pool.deposit_token_decimals,
            "tokenAmount": str(amount),
        }
        data = await self._hooks.trigger_shortcut(payload, hooks_api_url=request.hooks_api_url)

        raw_transactions = data["transactions"]
        if not raw_transactions:
            raise HooksApiError("Deposit shortcut returned no transactions", details={"pool": pool.position_id})

        transactions = []
        for raw in raw_transactions:
            if not isinstance(raw, dict):
                raise HooksApiError("Malformed shortcut transaction", details={"transaction": raw})
            tx = TransactionBuilder.build_from_raw(raw, pool.network_id, TransactionType.DEPOSIT)
            if tx.from_address != request.wallet_address:
                raise HooksApiError(
                    "Shortcut transaction is not sent from the wallet",
                    details={"from": tx.from_address, "wallet": request.wallet_address},
                )
            # a node cannot simulate these until the swap has landed
            if after_swap and tx.gas is None:
                raise HooksApiError(
                    "Deposit transaction after a swap must carry a gas limit",
                    details={"pool": pool.position_id, "to": tx.to_address},
                )
            transactions.append(tx)

        data_props = data.get("dataProps")
        return transactions, data_props if isinstance(data_props, dict) else {}
