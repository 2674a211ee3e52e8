"""
Deployment Module

Orchestrates broadcasting compiled bytecode to a network and confirming
its inclusion:
- DeploymentOrchestrator: state machine owning retry policy and attempt log
- GasEstimator: estimate with safety buffer and guaranteed fallback
- TransactionSubmitter: sends the creation transaction via the wallet session
- ConfirmationPoller: bounded receipt polling

Usage:
    from contract_deployer.core.deployment import DeploymentOrchestrator, DeploymentRequest

    orchestrator = DeploymentOrchestrator(wallet_session)
    result = await orchestrator.run(
        DeploymentRequest(bytecode="0x6080...", target_network_id="arbitrum-sepolia")
    )
    if not result.success:
        print(result.error.kind, result.error.message)
"""

from .gas import DEFAULT_FALLBACK_GAS_LIMIT, DEFAULT_SAFETY_FACTOR, GasEstimator
from .models import (
    AttemptOutcome,
    DeploymentAttempt,
    DeploymentRequest,
    DeploymentResult,
    DeploymentState,
    InvalidTransitionError,
    ProgressEvent,
    TransactionReceipt,
)
from .orchestrator import DeploymentOrchestrator, DeploymentPolicy
from .poller import ConfirmationPoller, PollTick
from .state_machine import DeploymentStateMachine, ProgressCallback
from .submitter import TransactionSubmitter, build_deployment_transaction

__all__ = [
    # Orchestrator
    "DeploymentOrchestrator",
    "DeploymentPolicy",
    "DeploymentStateMachine",
    "ProgressCallback",
    # Components
    "GasEstimator",
    "TransactionSubmitter",
    "build_deployment_transaction",
    "ConfirmationPoller",
    "PollTick",
    "DEFAULT_SAFETY_FACTOR",
    "DEFAULT_FALLBACK_GAS_LIMIT",
    # Models
    "DeploymentState",
    "AttemptOutcome",
    "DeploymentRequest",
    "DeploymentAttempt",
    "DeploymentResult",
    "TransactionReceipt",
    "ProgressEvent",
    "InvalidTransitionError",
]
