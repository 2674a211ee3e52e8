import asyncio
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..core.networks import NetworkRegistry
from ..core.rpc import RpcHealthProbe
from .dependencies import get_probe, get_registry

router = APIRouter()


@router.get("/healthz")
async def health_check(
    registry: NetworkRegistry = Depends(get_registry),
    probe: RpcHealthProbe = Depends(get_probe),
) -> Dict[str, Any]:
    """Health check endpoint that probes every configured RPC endpoint"""

    networks = registry.all()
    checks = await asyncio.gather(
        *(
            asyncio.gather(*(probe.check(endpoint) for endpoint in network.rpc_endpoints))
            for network in networks
        )
    )

    network_status = {}
    for network, results in zip(networks, checks):
        healthy = sum(1 for result in results if result.healthy)
        network_status[network.id] = {
            "status": "healthy" if healthy else "unavailable",
            "healthy_endpoints": healthy,
            "total_endpoints": len(results),
            "endpoints": [result.to_dict() for result in results],
        }

    # Deployments to a network only need one live endpoint
    all_healthy = all(status["healthy_endpoints"] > 0 for status in network_status.values())

    return {
        "status": "healthy" if all_healthy else "degraded",
        "networks": network_status,
    }
