import pytest

from conftest import WALLET, make_token
from earn.core.errors import GasEstimationError
from earn.core.execution import BaseTransaction, GasFeeEstimator
from earn.core.execution import gas as gas_module


class _DummyResponse:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self._payload


class _DummyClient:
    responses = {}
    requests = []

    def __init__(self, *_, **__):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def post(self, url, json):
        _DummyClient.requests.append({"url": url, "json": json})
        return _DummyResponse(_DummyClient.responses[json["method"]])


@pytest.fixture
def rpc(monkeypatch):
    _DummyClient.responses = {}
    _DummyClient.requests = []
    monkeypatch.setattr(gas_module.httpx, "AsyncClient", _DummyClient)
    return _DummyClient


@pytest.fixture
def estimator():
    return GasFeeEstimator(rpc_urls={"arbitrum-sepolia": "https://rpc.test"}, timeout_s=5)


def _tx(value=0):
    return BaseTransaction(
        network_id="arbitrum-sepolia",
        from_address=WALLET,
        to_address="0x460b97bd498e1157530aeb3086301d5225b91216",
        data="0xe8eda9df",
        value=value,
    )


@pytest.mark.asyncio
async def test_estimate_gas_applies_multiplier(rpc, estimator):
    rpc.responses["eth_estimateGas"] = {"jsonrpc": "2.0", "id": 1, "result": hex(100_000)}

    gas = await estimator.estimate_gas(_tx(value=5), fee_currency_address="0xadapter")

    assert gas == 110_000
    call = rpc.requests[0]
    assert call["url"] == "https://rpc.test"
    assert call["json"]["params"][0]["value"] == hex(5)
    assert call["json"]["params"][0]["feeCurrency"] == "0xadapter"


@pytest.mark.asyncio
async def test_native_fee_data_from_fee_history(rpc, estimator, funded_eth):
    rpc.responses["eth_feeHistory"] = {
        "result": {"baseFeePerGas": [hex(10), hex(20)], "reward": [[hex(3)]]},
    }

    fee_data = await estimator.get_fee_data("arbitrum-sepolia", funded_eth)

    assert fee_data.base_fee_per_gas == 20
    assert fee_data.max_priority_fee_per_gas == 3
    assert fee_data.max_fee_per_gas == 43
    assert fee_data.legacy is False


@pytest.mark.asyncio
async def test_native_fee_data_falls_back_to_gas_price(rpc, estimator, funded_eth):
    rpc.responses["eth_feeHistory"] = {"result": {"baseFeePerGas": []}}
    rpc.responses["eth_gasPrice"] = {"result": hex(7)}

    fee_data = await estimator.get_fee_data("arbitrum-sepolia", funded_eth)

    assert fee_data.legacy is True
    assert fee_data.max_fee_per_gas == 7


@pytest.mark.asyncio
async def test_fee_currency_prices_in_token(rpc, estimator):
    cusd = make_token(token_id="arbitrum-sepolia:cusd", is_fee_currency=True, fee_currency_address="0xadapter")
    rpc.responses["eth_gasPrice"] = {"result": hex(50)}
    rpc.responses["eth_maxPriorityFeePerGas"] = {"result": hex(5)}

    fee_data = await estimator.get_fee_data("arbitrum-sepolia", cusd)

    assert fee_data.max_fee_per_gas == 105
    assert all(req["json"]["params"] == ["0xadapter"] for req in rpc.requests)


@pytest.mark.asyncio
async def test_rpc_error_raises(rpc, estimator):
    rpc.responses["eth_estimateGas"] = {"error": {"code": 3, "message": "execution reverted"}}

    with pytest.raises(GasEstimationError):
        await estimator.estimate_gas(_tx())


@pytest.mark.asyncio
async def test_unknown_network_raises(estimator, funded_eth):
    with pytest.raises(GasEstimationError):
        await estimator.get_fee_data("celo-mainnet", funded_eth)
