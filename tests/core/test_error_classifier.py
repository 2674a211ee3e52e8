"""
Tests for Error Classification

Tests mapping of raw signer and transport failures into the deployment
taxonomy.
"""

import asyncio

import httpx
import pytest

from contract_deployer.core.errors import (
    ClassifiedError,
    ConfirmationTimeoutError,
    DeploymentCancelledError,
    ErrorKind,
    InsufficientFundsError,
    JsonRpcError,
    MalformedResponseError,
    RpcUnavailableError,
    UnknownNetworkError,
    WalletError,
    classify_error,
)


class TestUserRejection:
    """Tests for user rejection detection."""

    @pytest.mark.parametrize("code", [4001, "4001", "ACTION_REJECTED"])
    def test_rejection_codes(self, code):
        classified = classify_error(WalletError("nope", code=code))

        assert classified.kind == ErrorKind.USER_REJECTED
        assert classified.retryable is False
        assert classified.code == code

    @pytest.mark.parametrize("message", [
        "MetaMask Tx Signature: User denied transaction signature.",
        "User rejected the request.",
        "The user rejected the request",
    ])
    def test_rejection_messages(self, message):
        assert classify_error(Exception(message)).kind == ErrorKind.USER_REJECTED

    def test_rejection_wins_over_network_wording(self):
        error = WalletError("User rejected network switch", code=4001)

        assert classify_error(error).kind == ErrorKind.USER_REJECTED


class TestInsufficientFunds:
    def test_code(self):
        assert classify_error(WalletError("x", code="INSUFFICIENT_FUNDS")).kind == ErrorKind.INSUFFICIENT_FUNDS

    def test_message(self):
        error = JsonRpcError("insufficient funds for gas * price + value", code=-32000)

        classified = classify_error(error)

        assert classified.kind == ErrorKind.INSUFFICIENT_FUNDS
        assert classified.retryable is False


class TestRpcUnavailable:
    """Tests for connectivity classification."""

    @pytest.mark.parametrize("error", [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("read timed out"),
        asyncio.TimeoutError(),
        MalformedResponseError("Non-JSON response"),
        ConnectionResetError("reset"),
    ])
    def test_transport_exceptions(self, error):
        classified = classify_error(error)

        assert classified.kind == ErrorKind.RPC_UNAVAILABLE
        assert classified.retryable is True

    def test_http_status_error(self):
        request = httpx.Request("POST", "http://rpc.test")
        response = httpx.Response(429, request=request)
        error = httpx.HTTPStatusError("Too Many Requests", request=request, response=response)

        assert classify_error(error).kind == ErrorKind.RPC_UNAVAILABLE

    @pytest.mark.parametrize("code", [-32603, -32000, -32002])
    def test_rpc_codes(self, code):
        assert classify_error(JsonRpcError("server error", code=code)).kind == ErrorKind.RPC_UNAVAILABLE

    @pytest.mark.parametrize("message", [
        "Failed to fetch",
        "could not coalesce error",
        "Internal JSON-RPC error.",
        "ECONNREFUSED 127.0.0.1:8545",
    ])
    def test_messages(self, message):
        assert classify_error(Exception(message)).kind == ErrorKind.RPC_UNAVAILABLE


class TestUnknown:
    def test_unrecognized_is_not_retryable(self):
        classified = classify_error(ValueError("execution reverted: Ownable"))

        assert classified.kind == ErrorKind.UNKNOWN
        assert classified.retryable is False
        assert classified.message == "execution reverted: Ownable"

    def test_empty_message_uses_class_name(self):
        assert classify_error(RuntimeError()).message == "RuntimeError"

    def test_deterministic(self):
        error = JsonRpcError("header not found", code=-32000)

        assert classify_error(error) == classify_error(error)


class TestDeploymentErrors:
    """Tests for pre-classified errors raised by deployment components."""

    def test_classified_errors_pass_through(self):
        cases = [
            (InsufficientFundsError("low"), ErrorKind.INSUFFICIENT_FUNDS),
            (RpcUnavailableError(), ErrorKind.RPC_UNAVAILABLE),
            (ConfirmationTimeoutError("0xhash"), ErrorKind.TIMEOUT),
            (UnknownNetworkError("Unknown network 'x'"), ErrorKind.UNKNOWN_NETWORK),
            (DeploymentCancelledError("Deployment cancelled"), ErrorKind.USER_REJECTED),
        ]
        for error, kind in cases:
            assert classify_error(error).kind == kind

    def test_timeout_carries_hash(self):
        classified = classify_error(ConfirmationTimeoutError("0xhash", waited_seconds=150.0))

        assert classified.transaction_hash == "0xhash"
        assert "0xhash" in classified.message
        assert classified.retryable is False

    def test_unknown_network_is_a_key_error(self):
        error = UnknownNetworkError("Unknown network 'x'")

        assert isinstance(error, KeyError)
        assert str(error) == "Unknown network 'x'"

    def test_to_dict(self):
        classified = ClassifiedError(
            kind=ErrorKind.RPC_UNAVAILABLE,
            retryable=True,
            message="All 3 RPC endpoints failed",
        ).with_transaction_hash("0xhash")

        data = classified.to_dict()

        assert data["kind"] == "rpc_unavailable"
        assert data["retryable"] is True
        assert data["transactionHash"] == "0xhash"
        assert data["suggestedAction"]
