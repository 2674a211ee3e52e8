"""Built-in network catalog."""

from typing import Dict

from .models import NativeCurrency, NetworkConfig

ARBITRUM_SEPOLIA = NetworkConfig(
    id="arbitrum-sepolia",
    chain_id=421614,
    display_name="Arbitrum Sepolia",
    rpc_endpoints=(
        "https://sepolia-rollup.arbitrum.io/rpc",
        "https://arbitrum-sepolia.blockpi.network/v1/rpc/public",
        "https://arbitrum-sepolia-rpc.publicnode.com",
    ),
    explorer_url_template="https://sepolia.arbiscan.io/{kind}/{identifier}",
    native_currency=NativeCurrency(name="Arbitrum Sepolia Ether", symbol="ETH", decimals=18),
)

ARBITRUM_MAINNET = NetworkConfig(
    id="arbitrum-mainnet",
    chain_id=42161,
    display_name="Arbitrum One",
    rpc_endpoints=(
        "https://arb1.arbitrum.io/rpc",
        "https://arbitrum-one.publicnode.com",
        "https://arbitrum.blockpi.network/v1/rpc/public",
    ),
    explorer_url_template="https://arbiscan.io/{kind}/{identifier}",
    native_currency=NativeCurrency(name="Ether", symbol="ETH", decimals=18),
)

DEFAULT_NETWORKS: Dict[str, NetworkConfig] = {
    ARBITRUM_SEPOLIA.id: ARBITRUM_SEPOLIA,
    ARBITRUM_MAINNET.id: ARBITRUM_MAINNET,
}

DEFAULT_NETWORK_ID = ARBITRUM_SEPOLIA.id
