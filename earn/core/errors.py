"""
Error types raised by the earn deposit engine.

Malformed amount text is never an error (it parses to "no amount"), and an
amount above the held balance is a warning state, not an exception. Everything
here is recoverable by changing the input or retrying.
"""

from typing import Any, Dict, Optional


class EarnError(Exception):
    """Base exception for the earn deposit engine."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TokenNotFoundError(EarnError):
    """A token id referenced by a pool or request is missing from the balances snapshot."""


class PrepareTransactionError(EarnError):
    """Building the deposit transactions failed (service error, bad payload, gas estimation)."""


class SpendAmountExceedsBalanceError(PrepareTransactionError):
    """The spend amount is larger than the token balance it is drawn from."""


class HooksApiError(PrepareTransactionError):
    """The hooks service errored or returned an unusable payload."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class GasEstimationError(PrepareTransactionError):
    """Gas limit or fee data could not be obtained."""


class UnknownPreparedResultError(EarnError):
    """A prepared-transactions value is not one of the known variants."""
