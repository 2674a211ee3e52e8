"""
Network Catalog

Static registry of target networks and their ordered RPC endpoint lists.
"""

from .constants import ARBITRUM_MAINNET, ARBITRUM_SEPOLIA, DEFAULT_NETWORK_ID, DEFAULT_NETWORKS
from .models import NativeCurrency, NetworkConfig
from .registry import NetworkRegistry

__all__ = [
    "NetworkRegistry",
    "NetworkConfig",
    "NativeCurrency",
    "DEFAULT_NETWORKS",
    "DEFAULT_NETWORK_ID",
    "ARBITRUM_SEPOLIA",
    "ARBITRUM_MAINNET",
]
