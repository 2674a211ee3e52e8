import pytest
from fastapi.testclient import TestClient

from contract_deployer.api.dependencies import get_orchestrator
from contract_deployer.core.deployment import (
    AttemptOutcome,
    DeploymentAttempt,
    DeploymentResult,
    DeploymentState,
    ProgressEvent,
)
from contract_deployer.core.errors import ClassifiedError, ErrorKind
from contract_deployer.main import app

client = TestClient(app)

CONTRACT = "0x2222222222222222222222222222222222222222"
TX_HASH = "0x" + "ab" * 32


class StubOrchestrator:
    """Records the request and replays a canned result."""

    def __init__(self, result: DeploymentResult):
        self.result = result
        self.requests = []

    async def run(self, request, on_progress=None, cancel_event=None):
        self.requests.append(request)
        for state in (DeploymentState.CONNECTING, self.result_state()):
            await on_progress(ProgressEvent(state=state, attempt_number=1))
        return self.result

    def result_state(self):
        return DeploymentState.SUCCEEDED if self.result.success else DeploymentState.FAILED


def success_result() -> DeploymentResult:
    attempt = DeploymentAttempt(attempt_number=1, rpc_endpoint_used="http://rpc.test", transaction_hash=TX_HASH)
    attempt.finish(AttemptOutcome.SUCCEEDED)
    return DeploymentResult(
        success=True,
        network_id="arbitrum-sepolia",
        contract_address=CONTRACT,
        transaction_hash=TX_HASH,
        gas_used=21000,
        block_number=16,
        attempts=(attempt,),
        explorer_url=f"https://sepolia.arbiscan.io/address/{CONTRACT}",
    )


@pytest.fixture
def stub():
    holder = {}

    def install(result: DeploymentResult) -> StubOrchestrator:
        holder["stub"] = StubOrchestrator(result)
        app.dependency_overrides[get_orchestrator] = lambda: holder["stub"]
        return holder["stub"]

    yield install
    app.dependency_overrides.pop(get_orchestrator, None)


def test_deploy_success(stub):
    orchestrator = stub(success_result())

    resp = client.post("/deployments", json={"bytecode": "0x6080", "gas_limit": 3_000_000})

    assert resp.status_code == 200, resp.json()
    data = resp.json()
    assert data["success"] is True
    assert data["contractAddress"] == CONTRACT
    assert data["network"] == "arbitrum-sepolia"
    assert data["record"]["transactionHash"] == TX_HASH
    assert [p["state"] for p in data["progress"]] == ["connecting", "succeeded"]
    assert data["requestId"] == orchestrator.requests[0].request_id

    request = orchestrator.requests[0]
    assert request.target_network_id == "arbitrum-sepolia"
    assert request.requested_gas_limit == 3_000_000


def test_deploy_failure_is_reported_in_body(stub):
    error = ClassifiedError(
        kind=ErrorKind.TIMEOUT,
        retryable=False,
        message="Transaction sent but confirmation timed out",
        transaction_hash=TX_HASH,
    )
    stub(DeploymentResult(success=False, network_id="arbitrum-mainnet", transaction_hash=TX_HASH, error=error))

    resp = client.post("/deployments", json={"bytecode": "0x6080", "network": "arbitrum-mainnet"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is False
    assert data["error"]["kind"] == "timeout"
    assert data["error"]["transactionHash"] == TX_HASH
    assert data["record"] is None


def test_invalid_bytecode_rejected(stub):
    orchestrator = stub(success_result())

    resp = client.post("/deployments", json={"bytecode": "0xnothex"})

    assert resp.status_code == 422
    assert orchestrator.requests == []


def test_unprefixed_bytecode_rejected(stub):
    orchestrator = stub(success_result())

    resp = client.post("/deployments", json={"bytecode": "6080"})

    assert resp.status_code == 422
    assert "0x-prefixed" in resp.json()["detail"]
    assert orchestrator.requests == []


def test_non_positive_gas_limit_rejected(stub):
    stub(success_result())

    resp = client.post("/deployments", json={"bytecode": "0x6080", "gas_limit": 0})

    assert resp.status_code == 422


def test_root_lists_endpoints():
    resp = client.get("/")

    assert resp.status_code == 200
    assert resp.json()["networks"] == "/networks"
