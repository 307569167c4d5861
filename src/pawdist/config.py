"""Configuration management for PAWDIST using Pydantic Settings."""

from enum import Enum

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from pawdist.core.distributor import DEFAULT_DEADLINE_SECONDS, LiquidityStrategy


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    TEXT = "text"


class PawdistConfig(BaseSettings):
    """PAWDIST configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Network
    rpc_endpoint: str = Field(default="http://localhost:8545", alias="PAWDIST_RPC_ENDPOINT")
    chain_id: int | None = Field(default=None, alias="PAWDIST_CHAIN_ID")
    block_explorer_url: str | None = Field(default=None, alias="PAWDIST_BLOCK_EXPLORER_URL")

    # Wallet
    wallet_private_key: SecretStr | None = Field(default=None, alias="PAWDIST_WALLET_PRIVATE_KEY")
    wallet_private_key_file: str | None = Field(
        default=None, alias="PAWDIST_WALLET_PRIVATE_KEY_FILE"
    )

    # Distributor
    distributor_address: str | None = Field(default=None, alias="PAWDIST_DISTRIBUTOR_ADDRESS")
    liquidity_strategy: LiquidityStrategy = Field(
        default=LiquidityStrategy.SWAP_HALF, alias="PAWDIST_LIQUIDITY_STRATEGY"
    )
    deadline_seconds: int = Field(
        default=DEFAULT_DEADLINE_SECONDS, alias="PAWDIST_DEADLINE_SECONDS", gt=0
    )
    gas_limit: int = Field(default=500_000, alias="PAWDIST_GAS_LIMIT", gt=0)

    # Observability
    log_level: str = Field(default="INFO", alias="PAWDIST_LOG_LEVEL")
    log_format: LogFormat = Field(default=LogFormat.JSON, alias="PAWDIST_LOG_FORMAT")
