from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="Log renderer: json for services, console for local runs",
    )

    # Signer
    signer_url: str = Field(
        default="http://127.0.0.1:8545",
        description="JSON-RPC endpoint of the signing agent used for deployments",
        validation_alias=AliasChoices("signer_url", "SIGNER_URL", "WALLET_RPC_URL"),
    )
    request_timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP request timeout")

    # Retry Policy
    max_retries: int = Field(default=3, ge=1, le=10, description="Maximum deployment attempts per request")
    retry_delay_seconds: float = Field(default=2.0, ge=0, description="Fixed delay between deployment attempts")

    # RPC Probing / Confirmation
    rpc_probe_timeout_seconds: float = Field(default=5.0, gt=0, description="Per-endpoint liveness timeout")
    poll_interval_seconds: float = Field(default=2.0, gt=0, description="Receipt polling interval")
    confirmation_timeout_seconds: float = Field(
        default=150.0,
        gt=0,
        description="Max seconds to wait for a deployment receipt",
    )
    rpc_overrides: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Extra RPC endpoints per network id, tried before the built-in ones",
    )

    # Gas
    gas_safety_factor: float = Field(default=1.3, ge=1.0, description="Multiplier applied to gas estimates")
    fallback_gas_limit: int = Field(default=2_000_000, gt=0, description="Gas limit used when estimation fails")
    fallback_gas_price_wei: int = Field(
        default=100_000_000,
        gt=0,
        description="Gas price used for cost estimates when eth_gasPrice fails (0.1 gwei)",
    )

    # Pre-flight
    min_deploy_balance_eth: Decimal = Field(
        default=Decimal("0.0001"),
        ge=0,
        description="Minimum native balance required before submitting a deployment",
    )

    @field_validator("rpc_overrides", mode="before")
    @classmethod
    def _drop_empty_overrides(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {key: urls for key, urls in value.items() if urls}
        return value

    @property
    def has_rpc_overrides(self) -> bool:
        return bool(self.rpc_overrides)

    def min_deploy_balance_wei(self, decimals: int = 18) -> int:
        """Convert the minimum balance to the smallest unit of the native currency."""
        return int(self.min_deploy_balance_eth * (Decimal(10) ** decimals))


# Global settings instance
settings = Settings()
