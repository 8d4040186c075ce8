"""
Transaction preparation models and types.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, TypeVar, Union

from ..errors import UnknownPreparedResultError
from ..tokens import TokenBalance


class TransactionType(str, Enum):
    """Types of transactions in a deposit sequence."""
    APPROVE = "approve"
    SWAP = "swap"
    DEPOSIT = "deposit"
    OTHER = "other"


@dataclass(frozen=True)
class BaseTransaction:
    """An unsigned call as returned by the hooks service, before fees are attached."""
    network_id: str
    from_address: str
    to_address: str
    data: str                                   # Encoded calldata (hex)
    value: int = 0                              # Wei to send
    gas: Optional[int] = None                   # Gas limit when the service provides one
    estimated_gas_use: Optional[int] = None
    tx_type: TransactionType = TransactionType.OTHER
    description: str = ""


@dataclass(frozen=True)
class FeeData:
    """Per-gas fee parameters for one fee currency on one network."""
    max_fee_per_gas: int
    max_priority_fee_per_gas: Optional[int] = None  # EIP-1559
    base_fee_per_gas: Optional[int] = None
    legacy: bool = False                            # gasPrice instead of EIP-1559 fields


@dataclass(frozen=True)
class TransactionRequest:
    """A transaction ready to be signed: calldata plus gas and fee fields."""
    network_id: str
    from_address: str
    to_address: str
    data: str
    value: int
    gas: int
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    gas_price: Optional[int] = None                 # Legacy fee field
    base_fee_per_gas: Optional[int] = None          # For estimated-fee display only
    estimated_gas_use: Optional[int] = None
    fee_currency_address: Optional[str] = None      # Set when fees are paid in a non-native token
    tx_type: TransactionType = TransactionType.OTHER

    @property
    def max_gas_fee(self) -> int:
        """Upper bound of the fee in the fee currency's smallest unit."""
        return self.gas * (self.max_fee_per_gas if self.max_fee_per_gas is not None else (self.gas_price or 0))

    @property
    def estimated_gas_fee(self) -> int:
        per_gas = self.base_fee_per_gas
        if per_gas is None:
            per_gas = self.max_fee_per_gas if self.max_fee_per_gas is not None else (self.gas_price or 0)
        return (self.estimated_gas_use or self.gas) * per_gas

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for signing."""
        tx: Dict[str, Any] = {
            "from": self.from_address,
            "to": self.to_address,
            "data": self.data,
            "value": hex(self.value),
            "gas": hex(self.gas),
        }
        if self.gas_price is not None:
            tx["gasPrice"] = hex(self.gas_price)
        else:
            if self.max_fee_per_gas is not None:
                tx["maxFeePerGas"] = hex(self.max_fee_per_gas)
            if self.max_priority_fee_per_gas is not None:
                tx["maxPriorityFeePerGas"] = hex(self.max_priority_fee_per_gas)
        if self.fee_currency_address:
            tx["feeCurrency"] = self.fee_currency_address
        return tx


@dataclass(frozen=True)
class SwapQuote:
    """Parsed swap quote from the hooks service."""
    network_id: str
    wallet_address: str

    sell_token_id: str
    sell_token_address: Optional[str]
    sell_amount: int                            # In smallest units
    buy_token_id: str
    buy_token_address: Optional[str]
    buy_amount: int                             # In smallest units, authoritative for the deposit leg

    price: Decimal
    guaranteed_price: Optional[Decimal]
    allowance_target: Optional[str]
    swap_provider: Optional[str]

    # Execution data
    to_address: str
    data: str
    value: int = 0
    gas: Optional[int] = None
    estimated_gas_use: Optional[int] = None

    raw_response: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)


# ---------------------------------------------------------------------------
# Prepared transactions result (tagged variant)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PreparedTransactionsPossible:
    transactions: Tuple[TransactionRequest, ...]
    fee_currency: TokenBalance
    type: Literal["possible"] = "possible"

    @property
    def max_gas_fee_in_decimal(self) -> Decimal:
        return Decimal(sum(tx.max_gas_fee for tx in self.transactions)).scaleb(-self.fee_currency.decimals)

    @property
    def estimated_gas_fee_in_decimal(self) -> Decimal:
        return Decimal(sum(tx.estimated_gas_fee for tx in self.transactions)).scaleb(-self.fee_currency.decimals)


@dataclass(frozen=True)
class PreparedTransactionsNotEnoughBalanceForGas:
    fee_currencies: Tuple[TokenBalance, ...]
    type: Literal["not-enough-balance-for-gas"] = "not-enough-balance-for-gas"


@dataclass(frozen=True)
class PreparedTransactionsNeedDecreaseSpendAmountForGas:
    fee_currency: TokenBalance
    max_gas_fee_in_decimal: Decimal
    estimated_gas_fee_in_decimal: Decimal
    decreased_spend_amount: Decimal
    type: Literal["need-decrease-spend-amount-for-gas"] = "need-decrease-spend-amount-for-gas"


PreparedTransactionsResult = Union[
    PreparedTransactionsPossible,
    PreparedTransactionsNotEnoughBalanceForGas,
    PreparedTransactionsNeedDecreaseSpendAmountForGas,
]

T = TypeVar("T")


def match_prepared_result(
    result: PreparedTransactionsResult,
    *,
    possible: Callable[[PreparedTransactionsPossible], T],
    not_enough_balance_for_gas: Callable[[PreparedTransactionsNotEnoughBalanceForGas], T],
    need_decrease_spend_amount_for_gas: Callable[[PreparedTransactionsNeedDecreaseSpendAmountForGas], T],
) -> T:
    """Dispatch on the active variant; every variant must be handled."""
    if isinstance(result, PreparedTransactionsPossible):
        return possible(result)
    if isinstance(result, PreparedTransactionsNotEnoughBalanceForGas):
        return not_enough_balance_for_gas(result)
    if isinstance(result, PreparedTransactionsNeedDecreaseSpendAmountForGas):
        return need_decrease_spend_amount_for_gas(result)
    raise UnknownPreparedResultError(f"Unknown prepared transactions result: {result!r}")


def serialize_prepared_result(result: PreparedTransactionsResult) -> Dict[str, Any]:
    """JSON-friendly shape with a ``type`` tag, for the HTTP surface and logs."""
    return match_prepared_result(
        result,
        possible=lambda r: {
            "type": r.type,
            "transactions": [tx.to_dict() for tx in r.transactions],
            "feeCurrency": r.fee_currency.to_dict(),
            "maxGasFeeInDecimal": str(r.max_gas_fee_in_decimal),
            "estimatedGasFeeInDecimal": str(r.estimated_gas_fee_in_decimal),
        },
        not_enough_balance_for_gas=lambda r: {
            "type": r.type,
            "feeCurrencies": [token.to_dict() for token in r.fee_currencies],
        },
        need_decrease_spend_amount_for_gas=lambda r: {
            "type": r.type,
            "feeCurrency": r.fee_currency.to_dict(),
            "maxGasFeeInDecimal": str(r.max_gas_fee_in_decimal),
            "estimatedGasFeeInDecimal": str(r.estimated_gas_fee_in_decimal),
            "decreasedSpendAmount": str(r.decreased_spend_amount),
        },
    )


def describe_transactions(transactions: List[TransactionRequest]) -> List[str]:
    return [tx.tx_type.value for tx in transactions]
