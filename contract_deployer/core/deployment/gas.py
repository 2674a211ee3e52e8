"""
Gas estimation with safety buffer and guaranteed fallback.

Estimating a deployment against an unsigned transaction can fail for
bytecode whose constructor depends on the deployer or nonce, so a failed
estimate falls back to a fixed limit instead of blocking the deployment.
"""

import logging
import math
from decimal import Decimal
from typing import Optional

from ..rpc.client import JsonRpcClient
from ..wallet.session import WalletSession


logger = logging.getLogger(__name__)

DEFAULT_SAFETY_FACTOR = 1.3
DEFAULT_FALLBACK_GAS_LIMIT = 2_000_000
DEFAULT_FALLBACK_GAS_PRICE_WEI = 100_000_000  # 0.1 gwei


class GasEstimator:
    """Produces a positive gas limit for every deployment."""

    def __init__(
        self,
        safety_factor: float = DEFAULT_SAFETY_FACTOR,
        fallback_gas_limit: int = DEFAULT_FALLBACK_GAS_LIMIT,
        fallback_gas_price_wei: int = DEFAULT_FALLBACK_GAS_PRICE_WEI,
    ):
        if safety_factor < 1:
            raise ValueError("safety_factor must be >= 1")
        if fallback_gas_limit <= 0:
            raise ValueError("fallback_gas_limit must be positive")
        self.safety_factor = Decimal(str(safety_factor))
        self.fallback_gas_limit = fallback_gas_limit
        self.fallback_gas_price_wei = fallback_gas_price_wei

    def apply_buffer(self, estimate: int) -> int:
        return math.ceil(Decimal(estimate) * self.safety_factor)

    async def estimate(
        self,
        bytecode: str,
        wallet_session: WalletSession,
        fallback_gas_limit: Optional[int] = None,
    ) -> int:
        """
        Estimate the deployment gas limit.

        Never raises ``Exception``: any estimation failure yields
        ``fallback_gas_limit`` (the caller's requested limit) or the
        configured default.
        """
        fallback = fallback_gas_limit or self.fallback_gas_limit

        try:
            tx = {"data": bytecode}
            address = await wallet_session.current_address()
            if address:
                tx["from"] = address

            estimate = await wallet_session.estimate_gas(tx)
            if estimate <= 0:
                raise ValueError(f"non-positive gas estimate {estimate}")
        except Exception as e:
            logger.warning(f"Gas estimation failed, using default {fallback}: {e}")
            return fallback

        gas_limit = self.apply_buffer(estimate)
        logger.info(f"Gas estimated: {estimate} -> using {gas_limit}")
        return gas_limit

    async def estimate_cost_wei(
        self,
        rpc: JsonRpcClient,
        endpoint: str,
        gas_limit: Optional[int] = None,
    ) -> int:
        """Rough deployment cost: current gas price times the gas limit."""
        gas_limit = gas_limit or self.fallback_gas_limit
        try:
            gas_price = await rpc.gas_price(endpoint)
        except Exception as e:
            logger.warning(f"eth_gasPrice failed on {endpoint}, using fallback price: {e}")
            gas_price = self.fallback_gas_price_wei
        return gas_price * gas_limit
