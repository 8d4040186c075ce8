"""
Transaction builder for the calls in a deposit sequence.
"""

from typing import Any, Mapping, Optional

from ..errors import HooksApiError
from .models import BaseTransaction, SwapQuote, TransactionType


ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)


def _encode_uint256(value: int) -> str:
    """Encode a uint256 as a 32-byte hex string (without 0x prefix)."""
    return format(value, "064x")


def _encode_address(address: str) -> str:
    """Encode an address as a 32-byte hex string (without 0x prefix)."""
    addr = address.lower().replace("0x", "")
    return addr.zfill(64)


def parse_quantity(value: Any) -> Optional[int]:
    """Read an integer that may arrive as int, decimal string or 0x-hex string."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity: {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


class TransactionBuilder:
    """
    Builds the unsigned calls of a deposit sequence.

    Handles:
    - ERC20 approvals ahead of a swap
    - Swaps from hooks quotes
    - Raw shortcut transactions returned by the hooks service
    """

    @staticmethod
    def build_erc20_approve(
        network_id: str,
        owner_address: str,
        token_address: str,
        spender_address: str,
        amount: int,
        description: str = "",
    ) -> BaseTransaction:
        """
        Build an ERC20 approval transaction.

        Args:
            network_id: The network the token lives on
            owner_address: The token owner (sender)
            token_address: The ERC20 token contract
            spender_address: The address being approved to spend
            amount: The amount to approve, in smallest units
            description: Human-readable description

        Returns:
            BaseTransaction without fee fields
        """
        calldata = (
            ERC20_APPROVE_SELECTOR +
            _encode_address(spender_address) +
            _encode_uint256(amount)
        )

        return BaseTransaction(
            network_id=network_id,
            from_address=owner_address.lower(),
            to_address=token_address.lower(),
            data=calldata,
            value=0,
            tx_type=TransactionType.APPROVE,
            description=description or f"Approve {spender_address[:10]}... to spend tokens",
        )

    @staticmethod
    def build_from_swap_quote(quote: SwapQuote) -> BaseTransaction:
        """Build the swap call itself from a parsed quote."""
        return BaseTransaction(
            network_id=quote.network_id,
            from_address=quote.wallet_address.lower(),
            to_address=quote.to_address.lower(),
            data=quote.data,
            value=quote.value,
            gas=quote.gas,
            estimated_gas_use=quote.estimated_gas_use,
            tx_type=TransactionType.SWAP,
            description=f"Swap {quote.sell_token_id} for {quote.buy_token_id}",
        )

    @staticmethod
    def build_swap_leg(quote: SwapQuote, sell_token_is_native: bool) -> list[BaseTransaction]:
        """Approve (ERC20 sells only) followed by the swap call."""
        transactions: list[BaseTransaction] = []
        if not sell_token_is_native:
            if not quote.sell_token_address or not quote.allowance_target:
                raise HooksApiError(
                    "Swap quote is missing the sell token address or allowance target",
                    details={"sell_token_id": quote.sell_token_id},
                )
            transactions.append(
                TransactionBuilder.build_erc20_approve(
                    network_id=quote.network_id,
                    owner_address=quote.wallet_address,
                    token_address=quote.sell_token_address,
                    spender_address=quote.allowance_target,
                    amount=quote.sell_amount,
                    description=f"Approve {quote.sell_token_id} for swap",
                )
            )
        transactions.append(TransactionBuilder.build_from_swap_quote(quote))
        return transactions

    @staticmethod
    def build_from_raw(
        raw: Mapping[str, Any],
        network_id: str,
        tx_type: TransactionType = TransactionType.DEPOSIT,
    ) -> BaseTransaction:
        """
        Build a transaction from a hooks service payload entry.

        Raises:
            HooksApiError: when required fields are missing or unparseable
        """
        try:
            from_address = str(raw["from"])
            to_address = str(raw["to"])
            data = str(raw.get("data") or "0x")
            value = parse_quantity(raw.get("value")) or 0
            gas = parse_quantity(raw.get("gas"))
            estimated_gas_use = parse_quantity(raw.get("estimatedGasUse"))
        except (KeyError, TypeError, ValueError) as exc:
            raise HooksApiError(f"Malformed shortcut transaction: {exc}", details={"transaction": dict(raw)}) from exc

        if raw.get("networkId") and raw["networkId"] != network_id:
            raise HooksApiError(
                "Shortcut transaction targets a different network",
                details={"expected": network_id, "received": raw["networkId"]},
            )

        if not data.startswith("0x"):
            data = f"0x{data}"
        if data.lower().startswith(ERC20_APPROVE_SELECTOR):
            tx_type = TransactionType.APPROVE

        return BaseTransaction(
            network_id=network_id,
            from_address=from_address.lower(),
            to_address=to_address.lower(),
            data=data,
            value=value,
            gas=gas,
            estimated_gas_use=estimated_gas_use,
            tx_type=tx_type,
        )
