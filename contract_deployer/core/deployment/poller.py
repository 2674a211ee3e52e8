"""
Confirmation polling.

Block inclusion and indexing lag vary by provider, so confirmation is a
bounded poll on ``eth_getTransactionReceipt`` rather than a subscription.
The endpoint is fixed for the whole poll.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Optional

from ..errors import ConfirmationTimeoutError, DeploymentCancelledError
from ..rpc.client import JsonRpcClient
from .models import TransactionReceipt


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 2.0
DEFAULT_MAX_WAIT_SECONDS = 150.0
DEFAULT_LOOKUP_TIMEOUT_SECONDS = 10.0

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PollTick:
    """Outcome of one receipt lookup."""

    attempt: int
    elapsed: float
    receipt: Optional[TransactionReceipt] = None
    error: Optional[str] = None


class ConfirmationPoller:
    """Polls an RPC endpoint for a transaction receipt until found or timed out."""

    def __init__(
        self,
        rpc: JsonRpcClient,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_wait: float = DEFAULT_MAX_WAIT_SECONDS,
        lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT_SECONDS,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.rpc = rpc
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.lookup_timeout = lookup_timeout
        self._clock = clock
        self._sleep = sleep

    async def ticks(
        self,
        transaction_hash: str,
        rpc_endpoint: str,
        poll_interval: Optional[float] = None,
        max_wait: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[PollTick]:
        """
        Lazily yield one ``PollTick`` per lookup.

        Stops after the first tick carrying a receipt, or once ``max_wait``
        has elapsed. Lookup errors are reported on the tick and never end
        the sequence.
        """
        interval = poll_interval if poll_interval is not None else self.poll_interval
        deadline = max_wait if max_wait is not None else self.max_wait
        started = self._clock()
        attempt = 0

        while self._clock() - started < deadline:
            if cancel_event is not None and cancel_event.is_set():
                raise DeploymentCancelledError(
                    "Polling cancelled",
                    transaction_hash=transaction_hash,
                )

            attempt += 1
            receipt: Optional[TransactionReceipt] = None
            error: Optional[str] = None
            try:
                data = await self.rpc.get_transaction_receipt(
                    rpc_endpoint, transaction_hash, timeout=self.lookup_timeout
                )
                if data:
                    receipt = TransactionReceipt.from_rpc(data)
            except Exception as e:
                # A flaky response is "not yet found", not a failure
                error = str(e) or e.__class__.__name__
                logger.debug(f"Receipt lookup {attempt} for {transaction_hash} failed: {error}")

            yield PollTick(
                attempt=attempt,
                elapsed=self._clock() - started,
                receipt=receipt,
                error=error,
            )
            if receipt is not None:
                return

            await self._sleep(interval)

    async def poll(
        self,
        transaction_hash: str,
        rpc_endpoint: str,
        poll_interval: Optional[float] = None,
        max_wait: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TransactionReceipt:
        """
        Wait for the receipt of ``transaction_hash``.

        Raises:
            ConfirmationTimeoutError: No receipt within ``max_wait`` (hash attached)
            DeploymentCancelledError: ``cancel_event`` was set between lookups
        """
        deadline = max_wait if max_wait is not None else self.max_wait
        ticks = 0
        async for tick in self.ticks(transaction_hash, rpc_endpoint, poll_interval, max_wait, cancel_event):
            ticks = tick.attempt
            if tick.receipt is not None:
                logger.info(
                    f"Transaction {transaction_hash} confirmed in block {tick.receipt.block_number} "
                    f"after {tick.attempt} lookups"
                )
                return tick.receipt

        logger.warning(f"No receipt for {transaction_hash} after {ticks} lookups ({deadline}s)")
        raise ConfirmationTimeoutError(transaction_hash, waited_seconds=deadline)
