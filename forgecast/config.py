from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # Network
    rpc_url: str = Field(
        default="",
        description="JSON-RPC endpoint of the target network",
        validation_alias=AliasChoices("rpc_url", "eth_rpc_url", "fork_url"),
    )
    rpc_timeout_seconds: float = Field(default=30.0, gt=0, description="Per-request RPC timeout")

    # Broadcasting
    legacy: bool = Field(default=False, description="Force legacy (pre EIP-1559) transactions")
    receipt_timeout_seconds: int = Field(
        default=300,
        ge=1,
        description="Max seconds to wait for a transaction receipt",
    )
    receipt_poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Seconds between receipt polls",
    )
    priority_fee_fallback_wei: int = Field(
        default=1_000_000_000,
        ge=0,
        description="Priority fee used when fee history carries no rewards",
    )

    # Trace identification
    similarity_threshold: float = Field(
        default=0.1,
        gt=0,
        le=1,
        description="Bytecode diff score below which a local artifact is considered a match",
    )

    @property
    def has_rpc_url(self) -> bool:
        return bool(self.rpc_url)


# Global settings instance
settings = Settings()
