from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..core.deployment import DeploymentOrchestrator, DeploymentRequest, ProgressEvent
from ..core.networks import DEFAULT_NETWORK_ID
from .dependencies import get_orchestrator


router = APIRouter(prefix="/deployments")


class DeploymentCreateRequest(BaseModel):
    bytecode: str = Field(min_length=2, description="Compiled contract bytecode (hex, 0x-prefixed)")
    network: str = Field(default=DEFAULT_NETWORK_ID, description="Target network id")
    gas_limit: Optional[int] = Field(default=None, gt=0, description="Gas limit used if estimation fails")


@router.post("")
async def create_deployment(
    req: DeploymentCreateRequest,
    orchestrator: DeploymentOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """
    Deploy bytecode and wait for the terminal result.

    Failures are reported in the body (``success: false`` plus a classified
    ``error``); a ``timeout`` error with a transaction hash means the
    deployment may still land and should be verified on the explorer.
    """
    try:
        request = DeploymentRequest(
            bytecode=req.bytecode,
            target_network_id=req.network,
            requested_gas_limit=req.gas_limit,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    progress: List[Dict[str, Any]] = []

    async def record(event: ProgressEvent) -> None:
        progress.append(event.to_dict())

    result = await orchestrator.run(request, on_progress=record)

    return {
        "requestId": request.request_id,
        **result.to_dict(),
        "record": result.persistence_record(),
        "progress": progress,
    }
