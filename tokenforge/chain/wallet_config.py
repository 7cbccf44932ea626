"""
Deployer credential management.
Centralizes loading and masking of the deployer private key.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv
from eth_account import Account
from loguru import logger

from tokenforge.chain.signers import Signer
from tokenforge.exceptions import ConfigurationError


@dataclass
class WalletConfig:
    """Deployer key and the address it controls"""
    private_key: str
    deployer_address: str

    @classmethod
    def from_key(cls, private_key: str) -> "WalletConfig":
        try:
            account = Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            raise ConfigurationError(f"Invalid deployer private key: {exc}") from exc
        return cls(private_key=private_key, deployer_address=account.address)

    @classmethod
    def from_env(cls) -> "WalletConfig":
        """
        Create WalletConfig from the SECRET environment variable.

        Returns:
            WalletConfig instance with the deployer key loaded

        Raises:
            ConfigurationError if SECRET is missing or not a valid key
        """
        # Load environment variables if not already loaded
        load_dotenv()

        private_key = os.getenv("SECRET")
        if not private_key:
            raise ConfigurationError("SECRET environment variable not set")

        config = cls.from_key(private_key)
        logger.info(f"Loaded deployer {config.deployer_address[:8]}... (key {config.mask_private_key()})")
        return config

    def signer(self) -> Signer:
        return Signer(address=self.deployer_address, private_key=self.private_key)

    def mask_private_key(self) -> str:
        """Get masked version of private key for logging"""
        if len(self.private_key) > 10:
            return f"{self.private_key[:6]}...{self.private_key[-4:]}"
        return "***"
