"""
Deployment Orchestrator

Drives one deployment request through
connect -> switch network -> probe RPC -> estimate gas -> submit -> poll,
owning the retry policy and the attempt log. Every failure is classified
before anything is done about it; only retryable classifications consume
another attempt, and ``run()`` always returns exactly one result.

Cancellation: the caller's ``cancel_event`` is checked at every suspension
point. Once a transaction hash exists, cancelling only stops polling. The
transaction has already been broadcast and may still be mined, so the result
is reported as ``timeout`` with the hash attached.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional

import structlog

from ..errors import (
    ClassifiedError,
    ConfirmationTimeoutError,
    DeploymentCancelledError,
    DeploymentError,
    InsufficientFundsError,
    classify_error,
)
from ..networks.models import NetworkConfig
from ..networks.registry import NetworkRegistry
from ..rpc.client import JsonRpcClient
from ..rpc.probe import DEFAULT_PROBE_TIMEOUT_SECONDS, RpcHealthProbe
from ..wallet.session import WalletSession
from .gas import GasEstimator
from .models import (
    AttemptOutcome,
    DeploymentAttempt,
    DeploymentRequest,
    DeploymentResult,
    DeploymentState,
    TransactionReceipt,
)
from .poller import DEFAULT_MAX_WAIT_SECONDS, DEFAULT_POLL_INTERVAL_SECONDS, ConfirmationPoller
from .state_machine import DeploymentStateMachine, ProgressCallback
from .submitter import TransactionSubmitter

if TYPE_CHECKING:
    from ...config import Settings


logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 2.0
DEFAULT_MIN_BALANCE_WEI = 10**14  # 0.0001 ETH


@dataclass
class DeploymentPolicy:
    """Retry and timing policy for the orchestrator."""

    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS
    min_balance_wei: int = DEFAULT_MIN_BALANCE_WEI

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DeploymentPolicy":
        return cls(
            max_retries=settings.max_retries,
            retry_delay_seconds=settings.retry_delay_seconds,
            probe_timeout_seconds=settings.rpc_probe_timeout_seconds,
            poll_interval_seconds=settings.poll_interval_seconds,
            max_wait_seconds=settings.confirmation_timeout_seconds,
            min_balance_wei=settings.min_deploy_balance_wei(),
        )


class DeploymentOrchestrator:
    """
    Runs deployment requests against one wallet session.

    The orchestrator itself holds no per-request state: each ``run()`` owns
    its state machine and attempt log, so independent requests on different
    sessions can run concurrently. Only one in-flight deployment per signer
    account is supported; serializing requests on a shared session is the
    caller's job.
    """

    def __init__(
        self,
        wallet_session: WalletSession,
        registry: Optional[NetworkRegistry] = None,
        rpc: Optional[JsonRpcClient] = None,
        probe: Optional[RpcHealthProbe] = None,
        gas_estimator: Optional[GasEstimator] = None,
        submitter: Optional[TransactionSubmitter] = None,
        poller: Optional[ConfirmationPoller] = None,
        policy: Optional[DeploymentPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.wallet = wallet_session
        self.registry = registry or NetworkRegistry()
        self.policy = policy or DeploymentPolicy()
        self.rpc = rpc or JsonRpcClient()
        self.probe = probe or RpcHealthProbe(self.rpc, self.policy.probe_timeout_seconds)
        self.gas_estimator = gas_estimator or GasEstimator()
        self.submitter = submitter or TransactionSubmitter()
        self.poller = poller or ConfirmationPoller(
            self.rpc,
            poll_interval=self.policy.poll_interval_seconds,
            max_wait=self.policy.max_wait_seconds,
        )
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        wallet_session: WalletSession,
        settings: "Settings",
        rpc: Optional[JsonRpcClient] = None,
    ) -> "DeploymentOrchestrator":
        policy = DeploymentPolicy.from_settings(settings)
        rpc = rpc or JsonRpcClient(timeout=settings.request_timeout_seconds)
        return cls(
            wallet_session,
            registry=NetworkRegistry.from_settings(settings),
            rpc=rpc,
            gas_estimator=GasEstimator(
                safety_factor=settings.gas_safety_factor,
                fallback_gas_limit=settings.fallback_gas_limit,
                fallback_gas_price_wei=settings.fallback_gas_price_wei,
            ),
            policy=policy,
        )

    async def run(
        self,
        request: DeploymentRequest,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> DeploymentResult:
        """
        Deploy ``request`` and return its single terminal result.

        Never raises ``Exception``; every failure ends up in
        ``DeploymentResult.error``. ``asyncio.CancelledError`` propagates as
        usual; use ``cancel_event`` for a cooperative stop with a result.
        """
        machine = DeploymentStateMachine(request.request_id, on_progress, logger=logger)
        attempts: List[DeploymentAttempt] = []

        with structlog.contextvars.bound_contextvars(
            request_id=request.request_id,
            network=request.target_network_id,
        ):
            try:
                return await self._run(request, machine, attempts, cancel_event)
            except Exception as e:
                # Unexpected error in the orchestrator itself
                logger.exception(f"Unexpected error during deployment {request.request_id}: {e}")
                error = classify_error(e)
                transaction_hash = next(
                    (a.transaction_hash for a in reversed(attempts) if a.transaction_hash), None
                )
                return await self._fail(
                    request, machine, attempts, None, error.with_transaction_hash(transaction_hash)
                )

    async def _run(
        self,
        request: DeploymentRequest,
        machine: DeploymentStateMachine,
        attempts: List[DeploymentAttempt],
        cancel_event: Optional[asyncio.Event],
    ) -> DeploymentResult:
        attempt = self._start_attempt(machine, attempts)
        network: Optional[NetworkConfig] = None

        await machine.transition_to(DeploymentState.CONNECTING)
        try:
            self._checkpoint(cancel_event)
            network = self.registry.get(request.target_network_id)
            address = await self.wallet.connect()
        except Exception as e:
            # A missing or rejecting signer is not transient
            return await self._fail(request, machine, attempts, network, classify_error(e))

        network_ready = False
        await machine.transition_to(DeploymentState.SWITCHING_NETWORK)

        while True:
            try:
                if not network_ready:
                    if machine.current_state != DeploymentState.SWITCHING_NETWORK:
                        await machine.transition_to(DeploymentState.SWITCHING_NETWORK)
                    self._checkpoint(cancel_event)
                    await self.wallet.switch_network(network)
                    network_ready = True

                await machine.transition_to(DeploymentState.PROBING_RPC)
                self._checkpoint(cancel_event)
                endpoint = await self.probe.probe(
                    network.rpc_endpoints,
                    self.policy.probe_timeout_seconds,
                    cancel_event=cancel_event,
                )
                attempt.rpc_endpoint_used = endpoint

                self._checkpoint(cancel_event)
                await self._check_balance(address, network)

                await machine.transition_to(DeploymentState.ESTIMATING_GAS)
                self._checkpoint(cancel_event)
                gas_limit = await self.gas_estimator.estimate(
                    request.bytecode,
                    self.wallet,
                    fallback_gas_limit=request.requested_gas_limit,
                )
                attempt.gas_limit_used = gas_limit

                await machine.transition_to(DeploymentState.SUBMITTING)
                self._checkpoint(cancel_event)
                attempt.transaction_hash = await self.submitter.submit(
                    request.bytecode, gas_limit, self.wallet
                )

                await machine.transition_to(DeploymentState.POLLING)
                receipt = await self.poller.poll(
                    attempt.transaction_hash,
                    endpoint,
                    poll_interval=self.policy.poll_interval_seconds,
                    max_wait=self.policy.max_wait_seconds,
                    cancel_event=cancel_event,
                )
                return await self._complete(request, machine, attempts, network, receipt)

            except Exception as e:
                error = self._classify(e, attempt)

                # A broadcast transaction is never re-sent
                can_retry = (
                    error.retryable
                    and attempt.transaction_hash is None
                    and attempt.attempt_number < self.policy.max_retries
                )
                if not can_retry:
                    if error.retryable:
                        logger.error(
                            f"Deployment failed after {attempt.attempt_number} attempts: {error.message}"
                        )
                    return await self._fail(request, machine, attempts, network, error)

                logger.warning(
                    f"Attempt {attempt.attempt_number}/{self.policy.max_retries} failed "
                    f"({error.kind.value}): {error.message}. "
                    f"Retrying in {self.policy.retry_delay_seconds:.1f}s"
                )
                attempt.finish(AttemptOutcome.RETRYING, error)
                await machine.transition_to(DeploymentState.RETRYING)
                await self._retry_delay(cancel_event)
                attempt = self._start_attempt(machine, attempts)

    def _start_attempt(
        self,
        machine: DeploymentStateMachine,
        attempts: List[DeploymentAttempt],
    ) -> DeploymentAttempt:
        attempt = DeploymentAttempt(attempt_number=len(attempts) + 1)
        attempts.append(attempt)
        machine.attempt_number = attempt.attempt_number
        logger.info(f"Deployment attempt {attempt.attempt_number} of {self.policy.max_retries}")
        return attempt

    @staticmethod
    def _checkpoint(cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise DeploymentCancelledError("Deployment cancelled")

    async def _retry_delay(self, cancel_event: Optional[asyncio.Event]) -> None:
        delay = self.policy.retry_delay_seconds
        if delay <= 0:
            return
        if cancel_event is None:
            await self._sleep(delay)
            return
        # Wake early when cancelled; the next checkpoint turns it into a failure
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def _check_balance(self, address: str, network: NetworkConfig) -> None:
        """Pre-flight: refuse to submit from an account that cannot pay for gas."""
        balance = await self.wallet.balance_of(address)
        currency = network.native_currency
        logger.info(f"Account balance: {currency.format(balance)} {currency.symbol}")

        if balance < self.policy.min_balance_wei:
            raise InsufficientFundsError(
                f"Insufficient balance. You need at least "
                f"{currency.format(self.policy.min_balance_wei)} {currency.symbol} to deploy. "
                f"Current balance: {currency.format(balance)} {currency.symbol}",
                required=self.policy.min_balance_wei,
                available=balance,
            )

    @staticmethod
    def _classify(error: Exception, attempt: DeploymentAttempt) -> ClassifiedError:
        transaction_hash = attempt.transaction_hash
        if transaction_hash and isinstance(error, DeploymentCancelledError):
            error = ConfirmationTimeoutError(
                transaction_hash,
                message=(
                    f"Polling cancelled. Transaction {transaction_hash} was broadcast "
                    f"and may still be mined"
                ),
            )
        return classify_error(error).with_transaction_hash(transaction_hash)

    async def _complete(
        self,
        request: DeploymentRequest,
        machine: DeploymentStateMachine,
        attempts: List[DeploymentAttempt],
        network: NetworkConfig,
        receipt: TransactionReceipt,
    ) -> DeploymentResult:
        attempt = attempts[-1]

        if receipt.reverted:
            error = DeploymentError(
                f"Deployment transaction reverted in block {receipt.block_number}",
                transaction_hash=attempt.transaction_hash,
            ).classified
            return await self._fail(request, machine, attempts, network, error)

        if not receipt.contract_address:
            error = DeploymentError(
                "Contract address not found in receipt",
                transaction_hash=attempt.transaction_hash,
            ).classified
            return await self._fail(request, machine, attempts, network, error)

        attempt.finish(AttemptOutcome.SUCCEEDED)
        await machine.transition_to(DeploymentState.SUCCEEDED)
        logger.info(
            f"Contract deployed at {receipt.contract_address} "
            f"(block {receipt.block_number}, gas used {receipt.gas_used})"
        )

        return DeploymentResult(
            success=True,
            network_id=request.target_network_id,
            contract_address=receipt.contract_address,
            transaction_hash=attempt.transaction_hash,
            gas_used=receipt.gas_used,
            block_number=receipt.block_number,
            attempts=tuple(attempts),
            explorer_url=network.explorer_address_url(receipt.contract_address),
        )

    async def _fail(
        self,
        request: DeploymentRequest,
        machine: DeploymentStateMachine,
        attempts: List[DeploymentAttempt],
        network: Optional[NetworkConfig],
        error: ClassifiedError,
    ) -> DeploymentResult:
        if attempts and attempts[-1].finished_at is None:
            attempts[-1].finish(AttemptOutcome.FAILED, error)
        if not machine.is_terminal:
            await machine.transition_to(DeploymentState.FAILED)

        logger.error(f"Deployment {request.request_id} failed ({error.kind.value}): {error.message}")

        transaction_hash = error.transaction_hash
        explorer_url = None
        if network is not None and transaction_hash:
            explorer_url = network.explorer_tx_url(transaction_hash)

        return DeploymentResult(
            success=False,
            network_id=request.target_network_id,
            transaction_hash=transaction_hash,
            error=error,
            attempts=tuple(attempts),
            explorer_url=explorer_url,
        )

