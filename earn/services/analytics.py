"""Analytics sink used by the enter-amount flow."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import structlog

from ..logging_config import get_logger


class EarnEvents(str, Enum):
    EARN_ENTER_AMOUNT_CONTINUE_PRESS = "earn_enter_amount_continue_press"
    EARN_DEPOSIT_ADD_GAS_PRESS = "earn_deposit_add_gas_press"


class AnalyticsSink(ABC):
    """Receives analytics events; the host app decides where they go."""

    @abstractmethod
    def track(self, event: EarnEvents, properties: Dict[str, Any]) -> None:
        pass


class LoggingAnalyticsSink(AnalyticsSink):
    """Emits each event as a structured log line."""

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None) -> None:
        self._logger = logger or get_logger("earn.analytics")

    def track(self, event: EarnEvents, properties: Dict[str, Any]) -> None:
        self._logger.info("analytics_event", analytics_event=EarnEvents(event).value, **properties)


class RecordingAnalyticsSink(AnalyticsSink):
    """Keeps events in memory (tests, HTTP responses)."""

    def __init__(self) -> None:
        self.events: List[Tuple[EarnEvents, Dict[str, Any]]] = []

    def track(self, event: EarnEvents, properties: Dict[str, Any]) -> None:
        self.events.append((EarnEvents(event), dict(properties)))
