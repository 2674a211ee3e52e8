"""
Wallet session boundary.

The orchestrator never touches key material. Everything that needs the
user's account (connecting, switching chains, signing and broadcasting) goes
through a ``WalletSession`` injected by the caller, so a browser bridge, a
remote signer or a test fake can stand behind it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..errors import JsonRpcError, WalletError
from ..networks.models import NetworkConfig
from ..rpc.client import JsonRpcClient, parse_quantity


logger = logging.getLogger(__name__)

# EIP-1193 / EIP-3326 provider error codes
USER_REJECTED_REQUEST = 4001
UNRECOGNIZED_CHAIN = 4902
METHOD_NOT_FOUND = -32601

Transaction = Dict[str, Any]


class WalletSession(ABC):
    """Signer interface consumed by the deployment pipeline.

    Every call is fallible and potentially slow. Implementations raise
    ``WalletError`` for signer-side failures; transport errors propagate.
    """

    @abstractmethod
    async def connect(self) -> str:
        """Request account access and return the active address."""
        pass

    @abstractmethod
    async def current_address(self) -> Optional[str]:
        """Return the connected address without prompting, if any."""
        pass

    @abstractmethod
    async def balance_of(self, address: str) -> int:
        """Native balance in the smallest unit (wei)."""
        pass

    @abstractmethod
    async def switch_network(self, network: NetworkConfig) -> None:
        """Switch the signer to ``network``, adding it first if the signer lacks it."""
        pass

    @abstractmethod
    async def estimate_gas(self, tx: Transaction) -> int:
        pass

    @abstractmethod
    async def send_transaction(self, tx: Transaction) -> str:
        """Sign and broadcast ``tx``; return its hash."""
        pass


class JsonRpcWalletSession(WalletSession):
    """
    Wallet session backed by an EIP-1193 style JSON-RPC signer.

    Works against anything that speaks the wallet JSON-RPC methods over
    HTTP: a browser-wallet bridge, a remote signer, or a development node
    with unlocked accounts.
    """

    def __init__(self, signer_url: str, rpc: Optional[JsonRpcClient] = None, timeout: float = 30.0):
        self.signer_url = signer_url
        self.rpc = rpc or JsonRpcClient(timeout=timeout)
        self._address: Optional[str] = None

    async def _request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        try:
            return await self.rpc.call(self.signer_url, method, params)
        except JsonRpcError as e:
            raise WalletError(e.message, code=e.code, data=e.data) from e

    async def connect(self) -> str:
        try:
            accounts = await self._request("eth_requestAccounts")
        except WalletError as e:
            if e.code != METHOD_NOT_FOUND:
                raise
            # Plain nodes expose unlocked accounts without a consent flow
            accounts = await self._request("eth_accounts")

        if not accounts:
            raise WalletError(
                "No accounts found. Create or unlock an account in the signer.",
                code=USER_REJECTED_REQUEST,
            )

        self._address = accounts[0]
        logger.info(f"Wallet connected: {self._address}")
        return self._address

    async def current_address(self) -> Optional[str]:
        if self._address:
            return self._address
        accounts = await self._request("eth_accounts")
        return accounts[0] if accounts else None

    async def balance_of(self, address: str) -> int:
        result = await self._request("eth_getBalance", [address, "latest"])
        return parse_quantity(result)

    async def switch_network(self, network: NetworkConfig) -> None:
        logger.info(f"Switching signer to {network.display_name} ({network.chain_id})")
        try:
            await self._switch(network)
        except WalletError as e:
            if e.code == METHOD_NOT_FOUND:
                await self._require_chain(network)
                return
            if e.code != UNRECOGNIZED_CHAIN:
                raise
            logger.info(f"Adding {network.display_name} to signer")
            await self._request("wallet_addEthereumChain", [network.to_add_chain_params()])
            await self._switch(network)

    async def _switch(self, network: NetworkConfig) -> None:
        await self._request("wallet_switchEthereumChain", [{"chainId": network.chain_id_hex}])

    async def _require_chain(self, network: NetworkConfig) -> None:
        """Signers without chain switching must already be on the target chain."""
        chain_id = parse_quantity(await self._request("eth_chainId"))
        if chain_id != network.chain_id:
            raise WalletError(
                f"Signer is on chain {chain_id} and cannot switch to {network.display_name} "
                f"({network.chain_id})",
                code=UNRECOGNIZED_CHAIN,
            )

    async def estimate_gas(self, tx: Transaction) -> int:
        result = await self._request("eth_estimateGas", [tx])
        return parse_quantity(result)

    async def send_transaction(self, tx: Transaction) -> str:
        return await self._request("eth_sendTransaction", [tx])

    async def aclose(self) -> None:
        await self.rpc.aclose()
