"""Tests for the deployment transaction submitter."""

import pytest
from unittest.mock import AsyncMock

from contract_deployer.core.deployment import TransactionSubmitter, build_deployment_transaction
from contract_deployer.core.errors import ErrorKind, WalletError, classify_error


DEPLOYER = "0x1111111111111111111111111111111111111111"
TX_HASH = "0x" + "ef" * 32


def test_build_deployment_transaction_has_no_recipient():
    tx = build_deployment_transaction("0x6080", 2_000_000, DEPLOYER)

    assert tx == {"from": DEPLOYER, "data": "0x6080", "gas": "0x1e8480"}


class TestTransactionSubmitter:
    """Tests for TransactionSubmitter.submit."""

    @pytest.mark.asyncio
    async def test_returns_hash(self):
        wallet = AsyncMock()
        wallet.current_address.return_value = DEPLOYER
        wallet.send_transaction.return_value = TX_HASH

        tx_hash = await TransactionSubmitter().submit("0x6080", 100_000, wallet)

        assert tx_hash == TX_HASH
        wallet.send_transaction.assert_awaited_once_with(
            {"from": DEPLOYER, "data": "0x6080", "gas": hex(100_000)}
        )

    @pytest.mark.asyncio
    async def test_requires_connected_wallet(self):
        wallet = AsyncMock()
        wallet.current_address.return_value = None

        with pytest.raises(WalletError, match="not connected"):
            await TransactionSubmitter().submit("0x6080", 100_000, wallet)

        wallet.send_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_signer_errors_propagate_unclassified(self):
        wallet = AsyncMock()
        wallet.current_address.return_value = DEPLOYER
        rejection = WalletError("User rejected the request.", code=4001)
        wallet.send_transaction.side_effect = rejection

        with pytest.raises(WalletError) as exc_info:
            await TransactionSubmitter().submit("0x6080", 100_000, wallet)

        assert exc_info.value is rejection
        assert classify_error(exc_info.value).kind == ErrorKind.USER_REJECTED

    @pytest.mark.asyncio
    async def test_empty_hash_is_an_error(self):
        wallet = AsyncMock()
        wallet.current_address.return_value = DEPLOYER
        wallet.send_transaction.return_value = ""

        with pytest.raises(WalletError, match="no transaction hash"):
            await TransactionSubmitter().submit("0x6080", 100_000, wallet)
