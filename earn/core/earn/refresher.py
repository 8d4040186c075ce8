"""
Debounced, latest-wins deposit preparation.

Every amount or token change calls :meth:`DepositPreparationRefresher.refresh`.
Each request gets a generation number; a result (or error) is applied only if
its generation is still the latest when it arrives. Requests superseded while
waiting out the debounce are cancelled. Requests already sent are left to
finish and their result is dropped on arrival.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Callable, Optional

from ...config import settings
from ..errors import PrepareTransactionError
from .models import DepositRequest, PrepareDepositResult
from .prepare import DepositTransactionPreparer


class DepositPreparationRefresher:
    """Owns the displayed preparation state; the only writer of it."""

    def __init__(
        self,
        preparer: Optional[DepositTransactionPreparer] = None,
        *,
        debounce_ms: Optional[int] = None,
        on_change: Optional[Callable[["DepositPreparationRefresher"], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._preparer = preparer or DepositTransactionPreparer()
        delay_ms = settings.prepare_debounce_ms if debounce_ms is None else debounce_ms
        self._debounce_s = max(delay_ms, 0) / 1000
        self._on_change = on_change
        self._logger = logger or logging.getLogger(__name__)

        self._generation = 0
        self._pending: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        self._is_preparing = False

        self.prepare_transactions_result: Optional[PrepareDepositResult] = None
        self.prepare_transaction_error: Optional[PrepareTransactionError] = None
        self.last_request: Optional[DepositRequest] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_preparing_transactions(self) -> bool:
        return self._is_preparing

    def refresh(self, request: DepositRequest) -> asyncio.Task:
        """Schedule a preparation for ``request``, superseding any earlier one."""
        self._generation += 1
        request = dataclasses.replace(request, generation=self._generation)
        self._cancel_pending()
        self.last_request = request
        self._is_preparing = True
        self._notify()
        self._pending = asyncio.create_task(
            self._debounced(request),
            name=f"earn-prepare-{request.generation}",
        )
        return self._pending

    def clear(self) -> None:
        """Drop the displayed result and ignore anything still in flight."""
        self._generation += 1
        self._cancel_pending()
        self.last_request = None
        self.prepare_transactions_result = None
        self.prepare_transaction_error = None
        self._is_preparing = False
        self._notify()

    async def wait_idle(self) -> None:
        """Wait for the pending debounce and every sent request to settle."""
        if self._pending is not None:
            await asyncio.gather(self._pending, return_exceptions=True)
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def _cancel_pending(self) -> None:
        # Only the debounce wait is cancelled; shielded in-flight calls run on.
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _debounced(self, request: DepositRequest) -> None:
        if self._debounce_s:
            await asyncio.sleep(self._debounce_s)
        if request.generation != self._generation:
            return

        task = asyncio.create_task(self._prepare(request), name=f"earn-prepare-call-{request.generation}")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        await asyncio.shield(task)

    async def _prepare(self, request: DepositRequest) -> None:
        try:
            result = await self._preparer.prepare(request)
        except PrepareTransactionError as exc:
            self._apply(request.generation, None, exc)
            return
        except Exception as exc:  # noqa: BLE001
            self._logger.error(f"Unexpected preparation failure: {exc}", exc_info=True)
            self._apply(request.generation, None, PrepareTransactionError(str(exc)))
            return
        self._apply(request.generation, result, None)

    def _apply(
        self,
        generation: int,
        result: Optional[PrepareDepositResult],
        error: Optional[PrepareTransactionError],
    ) -> bool:
        if generation != self._generation:
            self._logger.debug(f"Discarding stale preparation {generation} (latest {self._generation})")
            return False
        self.prepare_transactions_result = result
        self.prepare_transaction_error = error
        self._is_preparing = False
        self._notify()
        return True

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
