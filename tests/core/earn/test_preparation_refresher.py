"""
Tests for debounced, latest-wins preparation.
"""

import asyncio
from decimal import Decimal

import pytest

from conftest import WALLET
from earn.core.earn import DepositPreparationRefresher, DepositRequest, PrepareDepositResult
from earn.core.errors import HooksApiError, PrepareTransactionError
from earn.core.execution import PreparedTransactionsNotEnoughBalanceForGas


class _GatedPreparer:
    """Each preparation blocks until its amount is released."""

    def __init__(self, auto_release=False):
        self.calls = []
        self.gates = {}
        self.auto_release = auto_release
        self.errors = {}

    def _gate(self, amount):
        return self.gates.setdefault(amount, asyncio.Event())

    def release(self, amount):
        self._gate(Decimal(amount)).set()

    async def prepare(self, request):
        self.calls.append(request)
        if not self.auto_release:
            await self._gate(request.amount).wait()
        if request.amount in self.errors:
            raise self.errors[request.amount]
        return PrepareDepositResult(
            prepare_transactions_result=PreparedTransactionsNotEnoughBalanceForGas(fee_currencies=()),
            deposit_amount=request.amount,
        )


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def make_request(pool, usdc):
    def _make(amount):
        return DepositRequest(
            amount=Decimal(amount),
            token=usdc,
            wallet_address=WALLET,
            pool=pool,
            hooks_api_url="https://hooks.test/api",
            fee_currencies=(),
        )
    return _make


@pytest.mark.asyncio
async def test_stale_result_never_overwrites_newer(make_request):
    preparer = _GatedPreparer()
    refresher = DepositPreparationRefresher(preparer, debounce_ms=0)

    first = refresher.refresh(make_request("1"))
    await _settle()
    second = refresher.refresh(make_request("2"))
    await _settle()
    assert [call.amount for call in preparer.calls] == [Decimal("1"), Decimal("2")]

    preparer.release("2")
    await second
    assert refresher.prepare_transactions_result.deposit_amount == Decimal("2")
    assert refresher.is_preparing_transactions is False

    preparer.release("1")
    await refresher.wait_idle()
    assert refresher.prepare_transactions_result.deposit_amount == Decimal("2")
    assert first.cancelled()


@pytest.mark.asyncio
async def test_stale_error_is_discarded(make_request):
    preparer = _GatedPreparer()
    preparer.errors[Decimal("1")] = HooksApiError("late failure")
    refresher = DepositPreparationRefresher(preparer, debounce_ms=0)

    refresher.refresh(make_request("1"))
    await _settle()
    refresher.refresh(make_request("2"))
    await _settle()

    preparer.release("2")
    preparer.release("1")
    await refresher.wait_idle()

    assert refresher.prepare_transaction_error is None
    assert refresher.prepare_transactions_result.deposit_amount == Decimal("2")


@pytest.mark.asyncio
async def test_debounce_coalesces_rapid_changes(make_request):
    preparer = _GatedPreparer(auto_release=True)
    refresher = DepositPreparationRefresher(preparer, debounce_ms=20)

    refresher.refresh(make_request("1"))
    refresher.refresh(make_request("12"))
    refresher.refresh(make_request("123"))
    assert refresher.is_preparing_transactions is True

    await refresher.wait_idle()

    assert [call.amount for call in preparer.calls] == [Decimal("123")]
    assert refresher.prepare_transactions_result.deposit_amount == Decimal("123")
    assert refresher.generation == 3


@pytest.mark.asyncio
async def test_prepare_error_is_recorded(make_request):
    preparer = _GatedPreparer(auto_release=True)
    preparer.errors[Decimal("8")] = HooksApiError("hooks down", status_code=503)
    refresher = DepositPreparationRefresher(preparer, debounce_ms=0)

    refresher.refresh(make_request("8"))
    await refresher.wait_idle()

    assert isinstance(refresher.prepare_transaction_error, HooksApiError)
    assert refresher.prepare_transactions_result is None
    assert refresher.is_preparing_transactions is False


@pytest.mark.asyncio
async def test_unexpected_error_is_wrapped(make_request):
    preparer = _GatedPreparer(auto_release=True)
    preparer.errors[Decimal("8")] = RuntimeError("kaboom")
    refresher = DepositPreparationRefresher(preparer, debounce_ms=0)

    refresher.refresh(make_request("8"))
    await refresher.wait_idle()

    assert isinstance(refresher.prepare_transaction_error, PrepareTransactionError)
    assert "kaboom" in refresher.prepare_transaction_error.message


@pytest.mark.asyncio
async def test_clear_drops_in_flight_result(make_request):
    preparer = _GatedPreparer()
    changes = []
    refresher = DepositPreparationRefresher(preparer, debounce_ms=0, on_change=lambda r: changes.append(r.generation))

    refresher.refresh(make_request("8"))
    await _settle()
    refresher.clear()
    assert refresher.is_preparing_transactions is False

    preparer.release("8")
    await refresher.wait_idle()

    assert refresher.prepare_transactions_result is None
    assert refresher.last_request is None
    assert changes == [1, 2]


@pytest.mark.asyncio
async def test_requests_are_stamped_with_generation(make_request):
    preparer = _GatedPreparer(auto_release=True)
    refresher = DepositPreparationRefresher(preparer, debounce_ms=0)

    refresher.refresh(make_request("1"))
    await refresher.wait_idle()
    refresher.refresh(make_request("2"))
    await refresher.wait_idle()

    assert [call.generation for call in preparer.calls] == [1, 2]
    assert refresher.last_request.generation == 2
