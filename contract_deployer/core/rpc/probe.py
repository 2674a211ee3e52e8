"""
RPC Health Probe

Sequential failover across a network's endpoints. Each endpoint gets a short
liveness check (``eth_blockNumber``); the first one that answers wins.
Worst-case latency is ``len(endpoints) * per_endpoint_timeout``.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Sequence

from ..errors import DeploymentCancelledError, RpcUnavailableError
from .client import JsonRpcClient


logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class EndpointHealth:
    """Liveness of a single endpoint."""

    endpoint: str
    healthy: bool
    block_number: Optional[int] = None
    latency_ms: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "healthy": self.healthy,
            "blockNumber": self.block_number,
            "latencyMs": self.latency_ms,
            "error": self.error,
        }


class RpcHealthProbe:
    """Finds the first live endpoint in an ordered list."""

    def __init__(
        self,
        rpc: JsonRpcClient,
        per_endpoint_timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
    ):
        self.rpc = rpc
        self.per_endpoint_timeout = per_endpoint_timeout

    @staticmethod
    def candidates(endpoints: Sequence[str]) -> Iterator[str]:
        """Lazy, finite candidate sequence; every call starts from the top."""
        seen = set()
        for endpoint in endpoints:
            if endpoint and endpoint not in seen:
                seen.add(endpoint)
                yield endpoint

    async def check(self, endpoint: str, timeout: Optional[float] = None) -> EndpointHealth:
        """Probe one endpoint without raising."""
        timeout = timeout or self.per_endpoint_timeout
        started = time.perf_counter()
        try:
            block_number = await asyncio.wait_for(
                self.rpc.block_number(endpoint, timeout=timeout),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            return EndpointHealth(endpoint=endpoint, healthy=False, error=f"timed out after {timeout}s")
        except Exception as e:
            return EndpointHealth(endpoint=endpoint, healthy=False, error=str(e) or e.__class__.__name__)

        return EndpointHealth(
            endpoint=endpoint,
            healthy=True,
            block_number=block_number,
            latency_ms=int((time.perf_counter() - started) * 1000),
        )

    async def probe(
        self,
        endpoints: Sequence[str],
        per_endpoint_timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """
        Return the first healthy endpoint.

        Raises:
            RpcUnavailableError: Every endpoint failed or timed out
            DeploymentCancelledError: ``cancel_event`` was set between checks
        """
        failures: Dict[str, str] = {}

        for endpoint in self.candidates(endpoints):
            if cancel_event is not None and cancel_event.is_set():
                raise DeploymentCancelledError("Deployment cancelled while probing RPC endpoints")

            health = await self.check(endpoint, per_endpoint_timeout)
            if health.healthy:
                logger.info(
                    f"RPC healthy ({endpoint}), block {health.block_number}, {health.latency_ms}ms"
                )
                return endpoint

            logger.warning(f"RPC failed ({endpoint}): {health.error}")
            failures[endpoint] = health.error or "unhealthy"

        if not failures:
            raise RpcUnavailableError("No RPC endpoints configured")

        raise RpcUnavailableError(
            f"All {len(failures)} RPC endpoints failed",
            failures=failures,
        )
