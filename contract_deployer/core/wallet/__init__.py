"""
Wallet Module

The signer boundary used by the deployment pipeline:
- WalletSession: abstract signer interface (connect, switch, estimate, send)
- JsonRpcWalletSession: EIP-1193 style JSON-RPC signer adapter

Usage:
    from contract_deployer.core.wallet import JsonRpcWalletSession

    session = JsonRpcWalletSession("http://127.0.0.1:8545")
    address = await session.connect()
    await session.switch_network(registry.get("arbitrum-sepolia"))
"""

from .session import (
    METHOD_NOT_FOUND,
    UNRECOGNIZED_CHAIN,
    USER_REJECTED_REQUEST,
    JsonRpcWalletSession,
    Transaction,
    WalletSession,
)

__all__ = [
    "WalletSession",
    "JsonRpcWalletSession",
    "Transaction",
    "USER_REJECTED_REQUEST",
    "UNRECOGNIZED_CHAIN",
    "METHOD_NOT_FOUND",
]
