"""
Error Classification

Maps raw failures from the signer, the JSON-RPC transport and the deployment
steps into a closed taxonomy. Only connectivity-style failures are retryable;
everything unrecognized is terminal.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

import httpx


class ErrorKind(str, Enum):
    """Closed set of deployment failure kinds."""

    USER_REJECTED = "user_rejected"            # Signer or caller declined
    INSUFFICIENT_FUNDS = "insufficient_funds"  # Balance below what deployment needs
    RPC_UNAVAILABLE = "rpc_unavailable"        # Endpoint down, rate limited or malformed
    TIMEOUT = "timeout"                        # Broadcast but no receipt within max wait
    UNKNOWN_NETWORK = "unknown_network"        # Target network not in the registry
    UNKNOWN = "unknown"                        # Anything unrecognized


RETRYABLE_KINDS = frozenset({ErrorKind.RPC_UNAVAILABLE})

SUGGESTED_ACTIONS: Dict[ErrorKind, str] = {
    ErrorKind.USER_REJECTED: "Approve the request in your wallet and try again",
    ErrorKind.INSUFFICIENT_FUNDS: "Add funds to the deploying account",
    ErrorKind.RPC_UNAVAILABLE: "Switch to a different RPC endpoint and retry",
    ErrorKind.TIMEOUT: "Verify the transaction on the block explorer before redeploying",
    ErrorKind.UNKNOWN_NETWORK: "Choose one of the supported networks",
    ErrorKind.UNKNOWN: "Review the error message and deployment parameters",
}


@dataclass(frozen=True)
class ClassifiedError:
    """A failure mapped into the deployment taxonomy."""

    kind: ErrorKind
    retryable: bool
    message: str
    code: Optional[Union[int, str]] = None
    transaction_hash: Optional[str] = None

    @property
    def suggested_action(self) -> str:
        return SUGGESTED_ACTIONS[self.kind]

    def with_transaction_hash(self, transaction_hash: Optional[str]) -> "ClassifiedError":
        if not transaction_hash or self.transaction_hash == transaction_hash:
            return self
        return ClassifiedError(
            kind=self.kind,
            retryable=self.retryable,
            message=self.message,
            code=self.code,
            transaction_hash=transaction_hash,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "retryable": self.retryable,
            "message": self.message,
            "code": self.code,
            "transactionHash": self.transaction_hash,
            "suggestedAction": self.suggested_action,
        }


def _classified(
    kind: ErrorKind,
    message: str,
    code: Optional[Union[int, str]] = None,
    transaction_hash: Optional[str] = None,
) -> ClassifiedError:
    return ClassifiedError(
        kind=kind,
        retryable=kind in RETRYABLE_KINDS,
        message=message,
        code=code,
        transaction_hash=transaction_hash,
    )


# =============================================================================
# Raw errors raised at the external boundaries
# =============================================================================

class WalletError(Exception):
    """
    Error returned by the signing agent.

    Mirrors EIP-1193 provider errors: a numeric or string ``code`` plus
    optional ``data``.
    """

    def __init__(
        self,
        message: str,
        code: Optional[Union[int, str]] = None,
        data: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data


class JsonRpcError(Exception):
    """JSON-RPC response carried an ``error`` member."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data


class MalformedResponseError(Exception):
    """JSON-RPC response was not valid JSON or lacked a ``result``."""

    pass


# =============================================================================
# Classified errors raised by deployment components
# =============================================================================

class DeploymentError(Exception):
    """Base class for errors that already know their classification."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        code: Optional[Union[int, str]] = None,
        transaction_hash: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.classified = _classified(self.kind, message, code, transaction_hash)


class UserRejectedError(DeploymentError):
    """The signer or the caller declined the deployment."""

    kind = ErrorKind.USER_REJECTED


class InsufficientFundsError(DeploymentError):
    """Deploying account balance is below the pre-flight threshold."""

    kind = ErrorKind.INSUFFICIENT_FUNDS

    def __init__(self, message: str = "Insufficient balance", required: Optional[int] = None,
                 available: Optional[int] = None):
        super().__init__(message, code="INSUFFICIENT_FUNDS")
        self.required = required
        self.available = available


class RpcUnavailableError(DeploymentError):
    """No RPC endpoint answered within its timeout."""

    kind = ErrorKind.RPC_UNAVAILABLE

    def __init__(self, message: str = "All RPC endpoints failed", failures: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.failures = failures or {}


class ConfirmationTimeoutError(DeploymentError):
    """A broadcast transaction produced no receipt within the max wait."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, transaction_hash: str, waited_seconds: Optional[float] = None,
                 message: Optional[str] = None):
        super().__init__(
            message or f"Transaction sent but confirmation timed out. Hash: {transaction_hash}",
            transaction_hash=transaction_hash,
        )
        self.waited_seconds = waited_seconds


class UnknownNetworkError(DeploymentError, KeyError):
    """Requested network id is not in the registry."""

    kind = ErrorKind.UNKNOWN_NETWORK

    def __str__(self) -> str:
        return self.message


class DeploymentCancelledError(DeploymentError):
    """The caller's cancellation signal was set before a transaction was broadcast."""

    kind = ErrorKind.USER_REJECTED


# =============================================================================
# Classification
# =============================================================================

USER_REJECTED_CODES = {4001, "4001", "ACTION_REJECTED"}
USER_REJECTED_PATTERNS = (
    "user rejected",
    "user denied",
    "rejected the request",
    "action_rejected",
)

INSUFFICIENT_FUNDS_CODES = {"INSUFFICIENT_FUNDS"}
INSUFFICIENT_FUNDS_PATTERNS = (
    "insufficient balance",
    "insufficient funds",
)

RPC_UNAVAILABLE_CODES = {-32603, -32000, -32002}
RPC_UNAVAILABLE_PATTERNS = (
    "failed to fetch",
    "could not coalesce error",
    "internal json-rpc error",
    "rpc_connectivity",
    "network",
    "timeout",
    "timed out",
    "econnrefused",
    "etimedout",
    "socket hang up",
    "could not detect network",
)

CONNECTIVITY_EXCEPTIONS = (
    httpx.TransportError,
    httpx.HTTPStatusError,
    asyncio.TimeoutError,
    MalformedResponseError,
    ConnectionError,
)


def _error_code(error: BaseException) -> Optional[Union[int, str]]:
    code = getattr(error, "code", None)
    if isinstance(code, (int, str)):
        return code
    return None


def classify_error(error: BaseException) -> ClassifiedError:
    """
    Classify a raw exception into the deployment taxonomy.

    Deterministic: the same error always yields the same classification.
    Unrecognized errors are never retryable.
    """
    if isinstance(error, DeploymentError):
        return error.classified

    message = str(error) or error.__class__.__name__
    lowered = message.lower()
    code = _error_code(error)

    # User rejection beats everything: re-prompting is pointless
    if code in USER_REJECTED_CODES or any(p in lowered for p in USER_REJECTED_PATTERNS):
        return _classified(ErrorKind.USER_REJECTED, message, code)

    if code in INSUFFICIENT_FUNDS_CODES or any(p in lowered for p in INSUFFICIENT_FUNDS_PATTERNS):
        return _classified(ErrorKind.INSUFFICIENT_FUNDS, message, code)

    if isinstance(error, CONNECTIVITY_EXCEPTIONS):
        return _classified(ErrorKind.RPC_UNAVAILABLE, message, code)

    if code in RPC_UNAVAILABLE_CODES or any(p in lowered for p in RPC_UNAVAILABLE_PATTERNS):
        return _classified(ErrorKind.RPC_UNAVAILABLE, message, code)

    return _classified(ErrorKind.UNKNOWN, message, code)
