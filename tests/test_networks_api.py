import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from contract_deployer.api.dependencies import get_probe
from contract_deployer.core.errors import RpcUnavailableError
from contract_deployer.core.networks import ARBITRUM_SEPOLIA
from contract_deployer.core.rpc import EndpointHealth
from contract_deployer.main import app

client = TestClient(app)


class StubProbe:
    """Endpoint health from a fixed set of live URLs."""

    def __init__(self, healthy):
        self.healthy = set(healthy)
        self.rpc = AsyncMock()
        self.rpc.gas_price.return_value = 20_000_000

    async def check(self, endpoint, timeout=None):
        if endpoint in self.healthy:
            return EndpointHealth(endpoint=endpoint, healthy=True, block_number=1, latency_ms=5)
        return EndpointHealth(endpoint=endpoint, healthy=False, error="connection refused")

    async def probe(self, endpoints, per_endpoint_timeout=None, cancel_event=None):
        for endpoint in endpoints:
            if endpoint in self.healthy:
                return endpoint
        raise RpcUnavailableError(f"All {len(endpoints)} RPC endpoints failed")


@pytest.fixture
def probe():
    def install(healthy):
        stub = StubProbe(healthy)
        app.dependency_overrides[get_probe] = lambda: stub
        return stub

    yield install
    app.dependency_overrides.pop(get_probe, None)


def test_list_networks():
    resp = client.get("/networks")

    assert resp.status_code == 200
    data = resp.json()
    assert data["default"] == "arbitrum-sepolia"
    ids = [n["id"] for n in data["networks"]]
    assert ids == ["arbitrum-sepolia", "arbitrum-mainnet"]


def test_get_network():
    resp = client.get("/networks/arbitrum-sepolia")

    assert resp.status_code == 200
    data = resp.json()
    assert data["chainId"] == 421614
    assert data["explorerUrl"] == "https://sepolia.arbiscan.io"


def test_unknown_network_is_404():
    resp = client.get("/networks/goerli")

    assert resp.status_code == 404
    assert "goerli" in resp.json()["detail"]


def test_deployment_cost(probe):
    stub = probe({ARBITRUM_SEPOLIA.rpc_endpoints[1]})

    resp = client.get("/networks/arbitrum-sepolia/deployment-cost", params={"gas_limit": 1_000_000})

    assert resp.status_code == 200, resp.json()
    data = resp.json()
    assert data["rpcEndpoint"] == ARBITRUM_SEPOLIA.rpc_endpoints[1]
    assert data["gasLimit"] == 1_000_000
    assert data["estimatedCostWei"] == str(20_000_000 * 1_000_000)
    assert data["estimatedCost"] == "0.00002"
    assert data["symbol"] == "ETH"
    stub.rpc.gas_price.assert_awaited_once()


def test_deployment_cost_all_rpcs_down(probe):
    probe(set())

    resp = client.get("/networks/arbitrum-sepolia/deployment-cost")

    assert resp.status_code == 503


def test_health_degraded_when_a_network_has_no_live_endpoint(probe):
    probe({ARBITRUM_SEPOLIA.rpc_endpoints[2]})

    resp = client.get("/healthz")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["networks"]["arbitrum-sepolia"]["status"] == "healthy"
    assert data["networks"]["arbitrum-sepolia"]["healthy_endpoints"] == 1
    assert data["networks"]["arbitrum-mainnet"]["status"] == "unavailable"


def test_health_healthy(probe):
    from contract_deployer.core.networks import ARBITRUM_MAINNET

    probe({ARBITRUM_SEPOLIA.rpc_endpoints[0], ARBITRUM_MAINNET.rpc_endpoints[0]})

    resp = client.get("/healthz")

    assert resp.json()["status"] == "healthy"
