"""
RPC Module

JSON-RPC transport and endpoint liveness probing.
"""

from .client import JsonRpcClient, parse_quantity
from .probe import DEFAULT_PROBE_TIMEOUT_SECONDS, EndpointHealth, RpcHealthProbe

__all__ = [
    "JsonRpcClient",
    "parse_quantity",
    "RpcHealthProbe",
    "EndpointHealth",
    "DEFAULT_PROBE_TIMEOUT_SECONDS",
]
