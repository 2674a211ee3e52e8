"""Tests for receipt polling."""

import asyncio

import pytest
from unittest.mock import AsyncMock

from contract_deployer.core.deployment import ConfirmationPoller
from contract_deployer.core.errors import ConfirmationTimeoutError, DeploymentCancelledError, ErrorKind


TX_HASH = "0x" + "cd" * 32

RECEIPT = {
    "transactionHash": TX_HASH,
    "blockNumber": "0x2a",
    "gasUsed": "0x186a0",
    "contractAddress": "0x3333333333333333333333333333333333333333",
    "status": "0x1",
}


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def make_poller(rpc, clock):
    return ConfirmationPoller(rpc, poll_interval=2.0, max_wait=10.0, clock=clock, sleep=clock.sleep)


class TestConfirmationPoller:
    """Tests for ConfirmationPoller.poll."""

    @pytest.mark.asyncio
    async def test_returns_receipt_when_found(self):
        rpc = AsyncMock()
        rpc.get_transaction_receipt.side_effect = [None, None, RECEIPT]
        clock = FakeClock()

        receipt = await make_poller(rpc, clock).poll(TX_HASH, "http://rpc.test")

        assert receipt.block_number == 42
        assert receipt.gas_used == 100000
        assert receipt.contract_address == RECEIPT["contractAddress"]
        assert rpc.get_transaction_receipt.await_count == 3
        assert clock.sleeps == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_lookup_errors_count_as_not_found(self):
        rpc = AsyncMock()
        rpc.get_transaction_receipt.side_effect = [ConnectionError("reset"), RECEIPT]

        receipt = await make_poller(rpc, FakeClock()).poll(TX_HASH, "http://rpc.test")

        assert receipt.transaction_hash == TX_HASH

    @pytest.mark.asyncio
    async def test_times_out_with_hash(self):
        rpc = AsyncMock()
        rpc.get_transaction_receipt.return_value = None

        with pytest.raises(ConfirmationTimeoutError) as exc_info:
            await make_poller(rpc, FakeClock()).poll(TX_HASH, "http://rpc.test")

        error = exc_info.value
        assert error.classified.kind == ErrorKind.TIMEOUT
        assert error.classified.transaction_hash == TX_HASH
        assert error.waited_seconds == 10.0
        assert rpc.get_transaction_receipt.await_count == 5

    @pytest.mark.asyncio
    async def test_same_endpoint_for_every_lookup(self):
        rpc = AsyncMock()
        rpc.get_transaction_receipt.side_effect = [None, RECEIPT]

        await make_poller(rpc, FakeClock()).poll(TX_HASH, "http://rpc.test")

        endpoints = {call.args[0] for call in rpc.get_transaction_receipt.await_args_list}
        assert endpoints == {"http://rpc.test"}

    @pytest.mark.asyncio
    async def test_cancel_stops_polling(self):
        rpc = AsyncMock()
        rpc.get_transaction_receipt.return_value = None
        cancel_event = asyncio.Event()
        cancel_event.set()

        with pytest.raises(DeploymentCancelledError) as exc_info:
            await make_poller(rpc, FakeClock()).poll(TX_HASH, "http://rpc.test", cancel_event=cancel_event)

        assert exc_info.value.classified.transaction_hash == TX_HASH
        rpc.get_transaction_receipt.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ticks_report_lookup_errors(self):
        rpc = AsyncMock()
        rpc.get_transaction_receipt.side_effect = [ValueError("bad json"), RECEIPT]

        ticks = [tick async for tick in make_poller(rpc, FakeClock()).ticks(TX_HASH, "http://rpc.test")]

        assert [t.attempt for t in ticks] == [1, 2]
        assert ticks[0].error == "bad json"
        assert ticks[0].receipt is None
        assert ticks[1].receipt is not None
        assert ticks[1].elapsed == 2.0
