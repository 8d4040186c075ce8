"""
Locale-aware decimal amount parsing and formatting.

Amounts are always ``decimal.Decimal``; floats never enter the pipeline. Parsing
is lenient about partial input (``.25``, ``8.``) because it runs on every
keystroke, and returns ``None`` instead of raising for anything that is not a
number. Formatting is the inverse: ``parse_amount(format_amount(v)) == v`` for
any value when no ``max_decimals`` is given, and for values with at most
``max_decimals`` fractional digits otherwise.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Optional

# Enough precision for uint256 amounts shifted by 18 decimals.
_PRECISION = 100

_CANONICAL_AMOUNT_RE = re.compile(r"^(?:[0-9]+\.?[0-9]*|\.[0-9]+)$")

USD_DISPLAY_DECIMALS = 2
TOKEN_DISPLAY_MIN_DECIMALS = 2
TOKEN_DISPLAY_MAX_DECIMALS = 6


@dataclass(frozen=True)
class NumberFormat:
    """Decimal and grouping separators supplied by the host platform's locale."""

    decimal_separator: str = "."
    grouping_separator: str = ","

    def __post_init__(self) -> None:
        if not self.decimal_separator:
            raise ValueError("decimal_separator must not be empty")
        if self.decimal_separator == self.grouping_separator:
            raise ValueError("decimal and grouping separators must differ")


@dataclass(frozen=True)
class LocalCurrency:
    """The user's display currency and its rate against USD."""

    code: str
    symbol: str
    usd_exchange_rate: Decimal


DEFAULT_NUMBER_FORMAT = NumberFormat()


def parse_amount(
    text: Optional[str],
    decimal_separator: str = ".",
    grouping_separator: str = ",",
) -> Optional[Decimal]:
    """Parse locale-formatted ``text`` into an exact Decimal.

    Returns ``None`` for empty or malformed input (signs, exponents, letters,
    more than one decimal separator).
    """
    if text is None:
        return None
    cleaned = text.strip()
    if not cleaned:
        return None
    if grouping_separator:
        cleaned = cleaned.replace(grouping_separator, "")
    if decimal_separator != ".":
        if "." in cleaned:
            return None
        cleaned = cleaned.replace(decimal_separator, ".")
    if not _CANONICAL_AMOUNT_RE.match(cleaned):
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


def _group_digits(digits: str, separator: str) -> str:
    head = len(digits) % 3 or 3
    groups = [digits[:head]] + [digits[i:i + 3] for i in range(head, len(digits), 3)]
    return separator.join(groups)


def format_amount(
    value: Decimal,
    decimal_separator: str = ".",
    grouping_separator: str = ",",
    max_decimals: Optional[int] = None,
    min_decimals: int = 0,
    rounding: str = ROUND_DOWN,
    grouping: bool = True,
) -> str:
    """Format ``value`` with locale separators.

    Rounds to ``max_decimals`` (exact when ``None``), trims trailing zeros down to
    ``min_decimals`` and groups integer digits in runs of three unless
    ``grouping`` is off.
    """
    if min_decimals < 0 or (max_decimals is not None and max_decimals < 0):
        raise ValueError("decimal places must be non-negative")
    if max_decimals is not None and min_decimals > max_decimals:
        raise ValueError("min_decimals cannot exceed max_decimals")

    rounded = Decimal(value)
    if max_decimals is not None:
        with localcontext() as ctx:
            ctx.prec = _PRECISION
            rounded = rounded.quantize(Decimal(1).scaleb(-max_decimals), rounding=rounding)

    sign = "-" if rounded < 0 else ""
    integer_part, _, fraction = format(abs(rounded), "f").partition(".")
    fraction = fraction.rstrip("0").ljust(min_decimals, "0")
    if grouping and grouping_separator:
        integer_part = _group_digits(integer_part, grouping_separator)
    if fraction:
        return f"{sign}{integer_part}{decimal_separator}{fraction}"
    return f"{sign}{integer_part}"


def format_input_amount(value: Decimal, number_format: NumberFormat, max_decimals: int) -> str:
    """Text to place in an amount field (no grouping, as a user would type it)."""
    return format_amount(
        value,
        number_format.decimal_separator,
        number_format.grouping_separator,
        max_decimals=max_decimals,
        grouping=False,
    )


def format_token_amount(value: Decimal, symbol: str, number_format: NumberFormat = DEFAULT_NUMBER_FORMAT) -> str:
    """Token display string, e.g. ``8.00 USDC``."""
    formatted = format_amount(
        value,
        number_format.decimal_separator,
        number_format.grouping_separator,
        max_decimals=TOKEN_DISPLAY_MAX_DECIMALS,
        min_decimals=TOKEN_DISPLAY_MIN_DECIMALS,
    )
    return f"{formatted} {symbol}"


def format_fiat(
    value: Decimal,
    currency: LocalCurrency,
    number_format: NumberFormat = DEFAULT_NUMBER_FORMAT,
) -> str:
    """Local currency display string, e.g. ``₱10.64``."""
    formatted = format_amount(
        value,
        number_format.decimal_separator,
        number_format.grouping_separator,
        max_decimals=USD_DISPLAY_DECIMALS,
        min_decimals=USD_DISPLAY_DECIMALS,
        rounding=ROUND_HALF_UP,
    )
    return f"{currency.symbol}{formatted}"


def round_usd(value: Decimal) -> str:
    """Two-decimal USD string used in analytics payloads."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return str(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def to_base_units(amount: Decimal, decimals: int) -> int:
    """Shift a token amount to its smallest unit, truncating excess precision."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return int(amount.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN))


def from_base_units(value: int, decimals: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(value).scaleb(-decimals)


def truncate_to_decimals(amount: Decimal, decimals: int) -> Decimal:
    return from_base_units(to_base_units(amount, decimals), decimals)


def local_amount_for(
    token_amount: Optional[Decimal],
    price_usd: Optional[Decimal],
    currency: LocalCurrency,
) -> Optional[Decimal]:
    """``token_amount * price_usd * rate``, or ``None`` when any input is missing."""
    if token_amount is None or price_usd is None:
        return None
    return token_amount * price_usd * currency.usd_exchange_rate


def token_amount_for_local(
    local_amount: Optional[Decimal],
    price_usd: Optional[Decimal],
    currency: LocalCurrency,
    decimals: int,
) -> Optional[Decimal]:
    """Inverse of :func:`local_amount_for`, truncated to the token's decimals."""
    if local_amount is None or not price_usd or not currency.usd_exchange_rate:
        return None
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        raw = local_amount / (price_usd * currency.usd_exchange_rate)
    return truncate_to_decimals(raw, decimals)


__all__ = [
    "NumberFormat",
    "LocalCurrency",
    "DEFAULT_NUMBER_FORMAT",
    "USD_DISPLAY_DECIMALS",
    "parse_amount",
    "format_amount",
    "format_input_amount",
    "format_token_amount",
    "format_fiat",
    "round_usd",
    "to_base_units",
    "from_base_units",
    "truncate_to_decimals",
    "local_amount_for",
    "token_amount_for_local",
]
