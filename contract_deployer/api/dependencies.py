"""FastAPI dependencies shared by the deployment routers."""

from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends

from ..config import settings
from ..core.deployment import DeploymentOrchestrator, DeploymentPolicy, GasEstimator
from ..core.networks import NetworkRegistry
from ..core.rpc import JsonRpcClient, RpcHealthProbe
from ..core.wallet import JsonRpcWalletSession, WalletSession


@lru_cache(maxsize=1)
def get_registry() -> NetworkRegistry:
    return NetworkRegistry.from_settings(settings)


def get_gas_estimator() -> GasEstimator:
    return GasEstimator(
        safety_factor=settings.gas_safety_factor,
        fallback_gas_limit=settings.fallback_gas_limit,
        fallback_gas_price_wei=settings.fallback_gas_price_wei,
    )


async def get_rpc_client() -> AsyncIterator[JsonRpcClient]:
    client = JsonRpcClient(timeout=settings.request_timeout_seconds)
    try:
        yield client
    finally:
        await client.aclose()


def get_probe(rpc: JsonRpcClient = Depends(get_rpc_client)) -> RpcHealthProbe:
    return RpcHealthProbe(rpc, per_endpoint_timeout=settings.rpc_probe_timeout_seconds)


async def get_wallet_session() -> AsyncIterator[WalletSession]:
    session = JsonRpcWalletSession(settings.signer_url, timeout=settings.request_timeout_seconds)
    try:
        yield session
    finally:
        await session.aclose()


def get_orchestrator(
    wallet: WalletSession = Depends(get_wallet_session),
    rpc: JsonRpcClient = Depends(get_rpc_client),
    registry: NetworkRegistry = Depends(get_registry),
    gas_estimator: GasEstimator = Depends(get_gas_estimator),
) -> DeploymentOrchestrator:
    return DeploymentOrchestrator(
        wallet,
        registry=registry,
        rpc=rpc,
        gas_estimator=gas_estimator,
        policy=DeploymentPolicy.from_settings(settings),
    )
