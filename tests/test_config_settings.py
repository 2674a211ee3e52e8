from decimal import Decimal

from contract_deployer.config import Settings


def test_signer_url_alias(monkeypatch):
    """Signer URL should load from the legacy WALLET_RPC_URL alias when present."""

    monkeypatch.delenv("SIGNER_URL", raising=False)
    monkeypatch.setenv("WALLET_RPC_URL", "http://wallet-bridge:8545")

    settings = Settings()

    assert settings.signer_url == "http://wallet-bridge:8545"


def test_signer_url_direct_env(monkeypatch):
    """SIGNER_URL remains the primary source."""

    monkeypatch.setenv("SIGNER_URL", "http://signer:8545")
    monkeypatch.setenv("WALLET_RPC_URL", "http://wallet-bridge:8545")

    settings = Settings()

    assert settings.signer_url == "http://signer:8545"


def test_deployment_defaults(monkeypatch):
    for name in ("MAX_RETRIES", "RETRY_DELAY_SECONDS", "CONFIRMATION_TIMEOUT_SECONDS", "MIN_DEPLOY_BALANCE_ETH"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.max_retries == 3
    assert settings.retry_delay_seconds == 2.0
    assert settings.confirmation_timeout_seconds == 150.0
    assert settings.min_deploy_balance_wei() == 10**14


def test_rpc_overrides_from_env(monkeypatch):
    monkeypatch.setenv("RPC_OVERRIDES", '{"arbitrum-sepolia": ["https://private.rpc"], "arbitrum-mainnet": []}')

    settings = Settings()

    assert settings.rpc_overrides == {"arbitrum-sepolia": ["https://private.rpc"]}
    assert settings.has_rpc_overrides is True


def test_min_balance_custom(monkeypatch):
    monkeypatch.setenv("MIN_DEPLOY_BALANCE_ETH", "0.5")

    settings = Settings()

    assert settings.min_deploy_balance_eth == Decimal("0.5")
    assert settings.min_deploy_balance_wei() == 5 * 10**17
