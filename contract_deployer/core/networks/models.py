"""Network catalog models."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class NativeCurrency:
    """Native gas token of a network."""

    name: str
    symbol: str
    decimals: int = 18

    def format(self, amount: int) -> str:
        """Render an amount in the smallest unit as a decimal string (no symbol)."""
        value = Decimal(amount) / (Decimal(10) ** self.decimals)
        return f"{value.normalize():f}"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "symbol": self.symbol, "decimals": self.decimals}


@dataclass(frozen=True)
class NetworkConfig:
    """A deployable network and its ordered RPC endpoints."""

    id: str                         # e.g., "arbitrum-sepolia"
    chain_id: int                   # e.g., 421614
    display_name: str               # e.g., "Arbitrum Sepolia"
    rpc_endpoints: Tuple[str, ...]  # Preferred endpoint first
    explorer_url_template: str      # e.g., "https://sepolia.arbiscan.io/{kind}/{identifier}"
    native_currency: NativeCurrency

    @property
    def chain_id_hex(self) -> str:
        return hex(self.chain_id)

    @property
    def explorer_base_url(self) -> str:
        return self.explorer_url_template.split("/{kind}", 1)[0]

    def explorer_tx_url(self, transaction_hash: str) -> str:
        return self.explorer_url_template.format(kind="tx", identifier=transaction_hash)

    def explorer_address_url(self, address: str) -> str:
        return self.explorer_url_template.format(kind="address", identifier=address)

    def to_add_chain_params(self) -> Dict[str, Any]:
        """Payload for ``wallet_addEthereumChain``."""
        return {
            "chainId": self.chain_id_hex,
            "chainName": self.display_name,
            "nativeCurrency": self.native_currency.to_dict(),
            "rpcUrls": list(self.rpc_endpoints[:1]),
            "blockExplorerUrls": [self.explorer_base_url],
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "chainId": self.chain_id,
            "chainIdHex": self.chain_id_hex,
            "displayName": self.display_name,
            "rpcEndpoints": list(self.rpc_endpoints),
            "explorerUrl": self.explorer_base_url,
            "nativeCurrency": self.native_currency.to_dict(),
        }
