"""
Gas limit and fee estimation over JSON-RPC.

Native fee currencies use EIP-1559 fee history; tokens that pay fees through a
fee-currency adapter (e.g. on Celo) ask the node for prices denominated in that
token.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ...config import settings
from ..errors import GasEstimationError
from ..tokens import TokenBalance
from .models import BaseTransaction, FeeData


logger = logging.getLogger(__name__)

DEFAULT_PRIORITY_FEE_WEI = 1_000_000_000  # 1 gwei


class GasFeeEstimator:
    """
    Estimates gas limits and per-gas fees for a network.

    Responsibilities:
    - eth_estimateGas for calls the hooks service returned without a gas limit
    - EIP-1559 fee data from eth_feeHistory (legacy gasPrice as fallback)
    - fee data for non-native fee currencies
    """

    def __init__(
        self,
        rpc_urls: Optional[Dict[str, str]] = None,
        timeout_s: Optional[int] = None,
        gas_multiplier: float = 1.1,
    ) -> None:
        self._rpc_urls = rpc_urls if rpc_urls is not None else dict(settings.rpc_urls)
        self.timeout_s = timeout_s or settings.request_timeout_seconds
        self.gas_multiplier = gas_multiplier

    async def _rpc_call(
        self,
        network_id: str,
        method: str,
        params: List[Any],
    ) -> Any:
        """Make an RPC call to the network."""
        rpc_url = self._rpc_urls.get(network_id)
        if not rpc_url:
            raise GasEstimationError(f"No RPC URL configured for network {network_id}")

        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": 1,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                response = await client.post(rpc_url, json=payload)
                response.raise_for_status()
                result = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GasEstimationError(f"RPC {method} failed on {network_id}: {exc}") from exc

        if "error" in result:
            raise GasEstimationError(f"RPC error: {result['error']}", {"method": method})

        return result.get("result")

    async def estimate_gas(
        self,
        tx: BaseTransaction,
        fee_currency_address: Optional[str] = None,
    ) -> int:
        """Estimate the gas limit of ``tx``, padded by ``gas_multiplier``."""
        call_obj: Dict[str, Any] = {
            "from": tx.from_address,
            "to": tx.to_address,
            "data": tx.data,
        }
        if tx.value > 0:
            call_obj["value"] = hex(tx.value)
        if fee_currency_address:
            call_obj["feeCurrency"] = fee_currency_address

        gas_limit_hex = await self._rpc_call(tx.network_id, "eth_estimateGas", [call_obj])
        try:
            gas_limit = int(gas_limit_hex, 16)
        except (TypeError, ValueError) as exc:
            raise GasEstimationError(f"Unexpected eth_estimateGas result: {gas_limit_hex!r}") from exc

        return int(gas_limit * self.gas_multiplier)

    async def get_fee_data(self, network_id: str, fee_currency: TokenBalance) -> FeeData:
        """Per-gas fee parameters, denominated in ``fee_currency``."""
        try:
            if not fee_currency.is_native and fee_currency.fee_currency_address:
                return await self._fee_currency_fee_data(network_id, fee_currency.fee_currency_address)
            return await self._native_fee_data(network_id)
        except GasEstimationError:
            raise
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.error(f"Fee data for {network_id} was malformed: {exc}")
            raise GasEstimationError(f"Failed to read fee data: {exc}") from exc

    async def _native_fee_data(self, network_id: str) -> FeeData:
        fee_history = await self._rpc_call(network_id, "eth_feeHistory", [1, "latest", [50]])
        base_fees = (fee_history or {}).get("baseFeePerGas") or []
        if not base_fees:
            gas_price = int(await self._rpc_call(network_id, "eth_gasPrice", []), 16)
            return FeeData(max_fee_per_gas=gas_price, base_fee_per_gas=gas_price, legacy=True)

        base_fee = int(base_fees[-1], 16)
        rewards = fee_history.get("reward") or []
        priority_fee = int(rewards[0][0], 16) if rewards and rewards[0] else DEFAULT_PRIORITY_FEE_WEI

        return FeeData(
            max_fee_per_gas=base_fee * 2 + priority_fee,
            max_priority_fee_per_gas=priority_fee,
            base_fee_per_gas=base_fee,
        )

    async def _fee_currency_fee_data(self, network_id: str, fee_currency_address: str) -> FeeData:
        base_fee = int(await self._rpc_call(network_id, "eth_gasPrice", [fee_currency_address]), 16)
        priority_hex = await self._rpc_call(network_id, "eth_maxPriorityFeePerGas", [fee_currency_address])
        priority_fee = int(priority_hex, 16) if priority_hex else 0

        return FeeData(
            max_fee_per_gas=base_fee * 2 + priority_fee,
            max_priority_fee_per_gas=priority_fee,
            base_fee_per_gas=base_fee,
        )
