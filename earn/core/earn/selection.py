"""
Input-token and fee-currency resolution for the enter-amount screen.

In ``deposit`` mode the input token is fixed to the pool's deposit token. In
``swap-deposit`` mode the user picks among held tokens that can be swapped
into it: a token qualifies when it declares a minimum client version to swap
that the running client satisfies and its balance is above zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from packaging.version import InvalidVersion, Version

from ..tokens import TokenBalance, get_token, index_balances, tokens_on_network, usd_sort_key
from .models import Pool, ShortcutId


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenSelection:
    selected_token: Optional[TokenBalance]
    token_select_disabled: bool
    show_dropdown: bool
    eligible_tokens: Tuple[TokenBalance, ...]


def _version_satisfied(minimum: str, app_version: str) -> bool:
    try:
        return Version(app_version) >= Version(minimum)
    except InvalidVersion:
        logger.warning(f"Unparseable version comparing {app_version!r} against {minimum!r}")
        return False


def is_swap_eligible(token: TokenBalance, app_version: str) -> bool:
    if not token.minimum_app_version_to_swap:
        return False
    if token.balance <= 0:
        return False
    return _version_satisfied(token.minimum_app_version_to_swap, app_version)


def swappable_tokens(
    tokens: Iterable[TokenBalance],
    pool: Pool,
    app_version: str,
) -> List[TokenBalance]:
    """Swap-eligible tokens on the pool's network, richest (USD) first.

    The pool's own deposit token is left out; depositing it needs no swap.
    """
    candidates = [
        token
        for token in tokens_on_network(tokens, pool.network_id)
        if token.token_id != pool.deposit_token_id and is_swap_eligible(token, app_version)
    ]
    return sorted(candidates, key=usd_sort_key)


def resolve_token_selection(
    pool: Pool,
    tokens: Iterable[TokenBalance],
    mode: ShortcutId,
    app_version: str,
    selected_token_id: Optional[str] = None,
) -> TokenSelection:
    """Decide the input token and which selection affordance to show.

    Raises:
        TokenNotFoundError: ``deposit`` mode and the pool's token is not in the snapshot
    """
    tokens = list(tokens)
    if ShortcutId(mode) is ShortcutId.DEPOSIT:
        deposit_token = get_token(index_balances(tokens), pool.deposit_token_id)
        return TokenSelection(
            selected_token=deposit_token,
            token_select_disabled=True,
            show_dropdown=False,
            eligible_tokens=(deposit_token,),
        )

    eligible = swappable_tokens(tokens, pool, app_version)
    if not eligible:
        return TokenSelection(selected_token=None, token_select_disabled=True, show_dropdown=False, eligible_tokens=())
    if len(eligible) == 1:
        return TokenSelection(
            selected_token=eligible[0],
            token_select_disabled=True,
            show_dropdown=False,
            eligible_tokens=(eligible[0],),
        )

    selected = next((token for token in eligible if token.token_id == selected_token_id), eligible[0])
    return TokenSelection(
        selected_token=selected,
        token_select_disabled=False,
        show_dropdown=True,
        eligible_tokens=tuple(eligible),
    )


def _fee_currency_sort_key(token: TokenBalance) -> tuple:
    return (not token.is_native, *usd_sort_key(token))


def fee_currencies_for_network(tokens: Iterable[TokenBalance], network_id: str) -> Tuple[TokenBalance, ...]:
    """Tokens that can pay fees on ``network_id``: native first, then by USD balance.

    Only funded tokens are offered. With nothing funded, the network's native
    token is returned alone so a top-up can still be suggested.
    """
    candidates = [token for token in tokens_on_network(tokens, network_id) if token.can_pay_fees]
    funded = [token for token in candidates if token.balance > Decimal("0")]
    if funded:
        return tuple(sorted(funded, key=_fee_currency_sort_key))
    return tuple(token for token in candidates if token.is_native)[:1]
