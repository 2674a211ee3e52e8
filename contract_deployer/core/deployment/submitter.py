"""Builds and sends the deployment transaction through the wallet session."""

import logging

from ..errors import WalletError
from ..wallet.session import Transaction, WalletSession


logger = logging.getLogger(__name__)


def build_deployment_transaction(bytecode: str, gas_limit: int, from_address: str) -> Transaction:
    """Contract creation: no ``to``, bytecode as data, gas as hex quantity."""
    return {
        "from": from_address,
        "data": bytecode,
        "gas": hex(gas_limit),
    }


class TransactionSubmitter:
    """Thin wrapper over ``WalletSession.send_transaction``.

    Signer errors propagate untouched so classification happens once, in the
    orchestrator.
    """

    async def submit(self, bytecode: str, gas_limit: int, wallet_session: WalletSession) -> str:
        address = await wallet_session.current_address()
        if not address:
            raise WalletError("Wallet is not connected")

        tx = build_deployment_transaction(bytecode, gas_limit, address)
        logger.info(f"Sending deployment from {address} with {gas_limit} gas ({len(bytecode) // 2 - 1} bytes)")

        transaction_hash = await wallet_session.send_transaction(tx)
        if not transaction_hash:
            raise WalletError("Signer returned no transaction hash")

        logger.info(f"Transaction sent: {transaction_hash}")
        return transaction_hash
