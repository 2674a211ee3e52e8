"""Minimal async JSON-RPC 2.0 client for per-network endpoints."""

import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import JsonRpcError, MalformedResponseError


logger = logging.getLogger(__name__)


class JsonRpcClient:
    """
    Posts JSON-RPC requests to arbitrary endpoint URLs.

    One client is shared across endpoints; the URL is passed per call so the
    same instance can serve probing, receipt polling and cost estimates.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    async def call(
        self,
        url: str,
        method: str,
        params: Optional[List[Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Make a JSON-RPC call and return its ``result``.

        Raises:
            JsonRpcError: The response carried an ``error`` member
            MalformedResponseError: The body was not a JSON-RPC response
            httpx.HTTPError: Transport failure or non-2xx status
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }

        response = await self._client.post(
            url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=timeout or self._timeout,
        )
        response.raise_for_status()

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Non-JSON response from {url}: {e}") from e

        if not isinstance(body, dict):
            raise MalformedResponseError(f"Unexpected JSON-RPC payload from {url}")

        if body.get("error") is not None:
            error = body["error"]
            if isinstance(error, dict):
                raise JsonRpcError(
                    str(error.get("message", "RPC error")),
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise JsonRpcError(f"RPC error: {error}")

        if "result" not in body:
            raise MalformedResponseError(f"JSON-RPC response from {url} has no result")

        return body["result"]

    async def block_number(self, url: str, timeout: Optional[float] = None) -> int:
        result = await self.call(url, "eth_blockNumber", [], timeout=timeout)
        return parse_quantity(result)

    async def get_transaction_receipt(
        self, url: str, transaction_hash: str, timeout: Optional[float] = None
    ) -> Optional[Dict[str, Any]]:
        return await self.call(url, "eth_getTransactionReceipt", [transaction_hash], timeout=timeout)

    async def gas_price(self, url: str, timeout: Optional[float] = None) -> int:
        result = await self.call(url, "eth_gasPrice", [], timeout=timeout)
        return parse_quantity(result)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "JsonRpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def parse_quantity(value: Any) -> int:
    """Parse a JSON-RPC hex quantity (``"0x1a"``) into an int."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value, 16) if value.lower().startswith("0x") else int(value)
        except ValueError:
            pass
    raise MalformedResponseError(f"Invalid JSON-RPC quantity: {value!r}")
