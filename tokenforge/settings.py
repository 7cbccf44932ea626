from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokenforge.chain.signers import DEFAULT_ACCOUNT_COUNT, DEFAULT_MNEMONIC


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Deployer credential (hex private key), supplied out of band
    secret: str = Field(default="", description="Deployer private key (env SECRET)")

    # Network
    network: str = Field(default="hardhat")
    rpc_url: Optional[str] = Field(default=None, description="Overrides the network's RPC URL")
    chain_id: Optional[int] = Field(default=None, description="Overrides the network's chain id")

    # Block explorer
    explorer_api_key: str = Field(default="")

    # Local development accounts
    mnemonic: str = Field(default=DEFAULT_MNEMONIC)
    account_count: int = Field(default=DEFAULT_ACCOUNT_COUNT, ge=1)

    # Logging
    log_level: str = Field(default="INFO")
    log_file: str = Field(default="logs/tokenforge.log")

    def masked_explorer_key(self) -> str:
        if not self.explorer_api_key:
            return "<not set>"
        if len(self.explorer_api_key) > 8:
            return f"{self.explorer_api_key[:4]}...{self.explorer_api_key[-4:]}"
        return "***"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance"""
    return Settings()
