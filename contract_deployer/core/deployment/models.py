"""
Deployment Models

Requests, per-attempt records, receipts and terminal results for the
deployment pipeline.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from ..errors import ClassifiedError
from ..rpc.client import parse_quantity


HEX_BYTECODE = re.compile(r"^0x(?:[0-9a-fA-F]{2})+$")


class DeploymentState(str, Enum):
    """States of a single deployment run."""

    IDLE = "idle"                            # Created, run() not called yet
    CONNECTING = "connecting"                # Requesting signer account access
    SWITCHING_NETWORK = "switching_network"  # Moving signer to the target chain
    PROBING_RPC = "probing_rpc"              # Looking for a live endpoint
    ESTIMATING_GAS = "estimating_gas"        # Estimating with buffer and fallback
    SUBMITTING = "submitting"                # Asking signer to sign and broadcast
    POLLING = "polling"                      # Waiting for the receipt
    RETRYING = "retrying"                    # Between attempts
    SUCCEEDED = "succeeded"                  # Contract deployed
    FAILED = "failed"                        # Terminal failure

    @property
    def is_terminal(self) -> bool:
        return self in (DeploymentState.SUCCEEDED, DeploymentState.FAILED)


class AttemptOutcome(str, Enum):
    """How a single attempt ended."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    RETRYING = "retrying"   # Failed with a retryable error, another attempt follows
    FAILED = "failed"       # Failed terminally


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_state: DeploymentState, to_state: DeploymentState, message: Optional[str] = None):
        self.from_state = from_state
        self.to_state = to_state
        self.message = message or f"Invalid transition from {from_state.value} to {to_state.value}"
        super().__init__(self.message)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DeploymentRequest:
    """What to deploy and where. Immutable once handed to the orchestrator."""

    bytecode: str
    target_network_id: str
    requested_gas_limit: Optional[int] = None
    request_id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self):
        if not isinstance(self.bytecode, str) or not HEX_BYTECODE.fullmatch(self.bytecode):
            raise ValueError("bytecode must be a non-empty, even-length, 0x-prefixed hex string")

        if self.requested_gas_limit is not None and self.requested_gas_limit <= 0:
            raise ValueError("requested_gas_limit must be positive")


@dataclass
class DeploymentAttempt:
    """One pass through probe -> estimate -> submit -> poll."""

    attempt_number: int
    started_at: datetime = field(default_factory=_utcnow)
    rpc_endpoint_used: Optional[str] = None
    gas_limit_used: Optional[int] = None
    transaction_hash: Optional[str] = None
    outcome: AttemptOutcome = AttemptOutcome.PENDING
    error: Optional[ClassifiedError] = None
    finished_at: Optional[datetime] = None

    def finish(self, outcome: AttemptOutcome, error: Optional[ClassifiedError] = None) -> None:
        self.outcome = outcome
        self.error = error
        self.finished_at = _utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attemptNumber": self.attempt_number,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "rpcEndpointUsed": self.rpc_endpoint_used,
            "gasLimitUsed": self.gas_limit_used,
            "transactionHash": self.transaction_hash,
            "outcome": self.outcome.value,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass(frozen=True)
class TransactionReceipt:
    """Inclusion record returned by ``eth_getTransactionReceipt``."""

    transaction_hash: str
    block_number: int
    gas_used: int
    contract_address: Optional[str] = None
    status: Optional[int] = None  # 1 success, 0 reverted, None pre-Byzantium

    @property
    def reverted(self) -> bool:
        return self.status == 0

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "TransactionReceipt":
        status = data.get("status")
        return cls(
            transaction_hash=data["transactionHash"],
            block_number=parse_quantity(data["blockNumber"]),
            gas_used=parse_quantity(data["gasUsed"]),
            contract_address=data.get("contractAddress"),
            status=parse_quantity(status) if status is not None else None,
        )


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted to the progress callback on every state transition."""

    state: DeploymentState
    attempt_number: int
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "attemptNumber": self.attempt_number,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class DeploymentResult:
    """Terminal outcome of one deployment request."""

    success: bool
    network_id: str
    contract_address: Optional[str] = None
    transaction_hash: Optional[str] = None
    gas_used: Optional[int] = None
    block_number: Optional[int] = None
    error: Optional[ClassifiedError] = None
    attempts: Tuple[DeploymentAttempt, ...] = ()
    explorer_url: Optional[str] = None
    completed_at: datetime = field(default_factory=_utcnow)

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    def persistence_record(self) -> Optional[Dict[str, Any]]:
        """Payload for durable storage; only successful deployments are recorded."""
        if not self.success:
            return None
        return {
            "contractAddress": self.contract_address,
            "transactionHash": self.transaction_hash,
            "network": self.network_id,
            "gasUsed": self.gas_used,
            "timestamp": self.completed_at.isoformat(),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "network": self.network_id,
            "contractAddress": self.contract_address,
            "transactionHash": self.transaction_hash,
            "gasUsed": self.gas_used,
            "blockNumber": self.block_number,
            "error": self.error.to_dict() if self.error else None,
            "attempts": [attempt.to_dict() for attempt in self.attempts],
            "explorerUrl": self.explorer_url,
            "completedAt": self.completed_at.isoformat(),
        }
