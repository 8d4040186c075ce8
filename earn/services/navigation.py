"""Navigation trigger used when the user leaves the enter-amount flow."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Tuple


class Screens(str, Enum):
    FIAT_EXCHANGE_AMOUNT = "FiatExchangeAmount"


class CICOFlow(str, Enum):
    """Cash-in / cash-out intent passed to the fiat exchange screens."""
    CASH_IN = "CashIn"
    CASH_OUT = "CashOut"


class Navigator(ABC):

    @abstractmethod
    def navigate(self, screen: Screens, params: Dict[str, Any]) -> None:
        pass


class RecordingNavigator(Navigator):
    """Remembers navigation requests instead of performing them."""

    def __init__(self) -> None:
        self.calls: List[Tuple[Screens, Dict[str, Any]]] = []

    def navigate(self, screen: Screens, params: Dict[str, Any]) -> None:
        self.calls.append((Screens(screen), dict(params)))
