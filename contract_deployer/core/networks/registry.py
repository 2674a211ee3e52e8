"""Static registry of deployable networks."""

from __future__ import annotations

import logging
from dataclasses import replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Mapping, Optional

from ..errors import UnknownNetworkError
from .constants import DEFAULT_NETWORKS
from .models import NetworkConfig

if TYPE_CHECKING:
    from ...config import Settings


logger = logging.getLogger(__name__)


class NetworkRegistry:
    """Immutable catalog of target networks keyed by network id.

    Usage:
        registry = NetworkRegistry.from_settings(settings)
        network = registry.get("arbitrum-sepolia")
        network.rpc_endpoints  # ordered, preferred endpoint first
    """

    def __init__(self, networks: Optional[Iterable[NetworkConfig]] = None) -> None:
        catalog: Dict[str, NetworkConfig] = {}
        for network in networks if networks is not None else DEFAULT_NETWORKS.values():
            if network.id in catalog:
                raise ValueError(f"Duplicate network id '{network.id}'")
            catalog[network.id] = network
        self._networks: Mapping[str, NetworkConfig] = MappingProxyType(catalog)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "NetworkRegistry":
        """Build the default catalog with ``settings.rpc_overrides`` applied."""
        return cls.with_overrides(DEFAULT_NETWORKS.values(), settings.rpc_overrides)

    @classmethod
    def with_overrides(
        cls,
        networks: Iterable[NetworkConfig],
        rpc_overrides: Mapping[str, List[str]],
    ) -> "NetworkRegistry":
        """Place override endpoints ahead of each network's built-in ones."""
        merged = []
        known = set()
        for network in networks:
            known.add(network.id)
            extra = rpc_overrides.get(network.id) or []
            if extra:
                endpoints = tuple(dict.fromkeys([*extra, *network.rpc_endpoints]))
                network = replace(network, rpc_endpoints=endpoints)
            merged.append(network)

        for network_id in rpc_overrides:
            if network_id not in known:
                logger.warning("Ignoring RPC override for unknown network %s", network_id)

        return cls(merged)

    def get(self, network_id: str) -> NetworkConfig:
        """Return the network config, or raise ``UnknownNetworkError``."""
        try:
            return self._networks[network_id]
        except KeyError:
            raise UnknownNetworkError(
                f"Unknown network '{network_id}'. Supported: {', '.join(self.ids())}"
            ) from None

    def by_chain_id(self, chain_id: int) -> NetworkConfig:
        for network in self._networks.values():
            if network.chain_id == chain_id:
                return network
        raise UnknownNetworkError(f"No network registered for chain id {chain_id}")

    def ids(self) -> List[str]:
        return list(self._networks.keys())

    def all(self) -> List[NetworkConfig]:
        return list(self._networks.values())

    def __contains__(self, network_id: object) -> bool:
        return network_id in self._networks

    def __iter__(self) -> Iterator[NetworkConfig]:
        return iter(self._networks.values())

    def __len__(self) -> int:
        return len(self._networks)
