from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.deployment import GasEstimator
from ..core.errors import RpcUnavailableError, UnknownNetworkError
from ..core.networks import DEFAULT_NETWORK_ID, NetworkConfig, NetworkRegistry
from ..core.rpc import RpcHealthProbe
from .dependencies import get_gas_estimator, get_probe, get_registry


router = APIRouter(prefix="/networks")


def _lookup(registry: NetworkRegistry, network_id: str) -> NetworkConfig:
    try:
        return registry.get(network_id)
    except UnknownNetworkError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("")
async def list_networks(registry: NetworkRegistry = Depends(get_registry)) -> Dict[str, Any]:
    return {
        "networks": [network.to_dict() for network in registry.all()],
        "default": DEFAULT_NETWORK_ID,
    }


@router.get("/{network_id}")
async def get_network(network_id: str, registry: NetworkRegistry = Depends(get_registry)) -> Dict[str, Any]:
    return _lookup(registry, network_id).to_dict()


@router.get("/{network_id}/deployment-cost")
async def get_deployment_cost(
    network_id: str,
    gas_limit: Optional[int] = Query(default=None, gt=0, description="Gas limit to price (defaults to fallback limit)"),
    registry: NetworkRegistry = Depends(get_registry),
    probe: RpcHealthProbe = Depends(get_probe),
    gas_estimator: GasEstimator = Depends(get_gas_estimator),
) -> Dict[str, Any]:
    """Rough cost of a deployment at the current gas price."""
    network = _lookup(registry, network_id)

    try:
        endpoint = await probe.probe(network.rpc_endpoints)
    except RpcUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    limit = gas_limit or gas_estimator.fallback_gas_limit
    cost_wei = await gas_estimator.estimate_cost_wei(probe.rpc, endpoint, limit)

    return {
        "network": network.id,
        "gasLimit": limit,
        "estimatedCostWei": str(cost_wei),
        "estimatedCost": network.native_currency.format(cost_wei),
        "symbol": network.native_currency.symbol,
        "rpcEndpoint": endpoint,
    }
