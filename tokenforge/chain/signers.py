"""
Signer accounts for the local chain.

Development accounts are derived from a BIP-39 mnemonic exactly the way
Hardhat derives its default accounts, so the same mnemonic yields the same
addresses in both tools.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Tuple

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_hex

DEFAULT_MNEMONIC = "test test test test test test test test test test test junk"
DEFAULT_ACCOUNT_COUNT = 20
HD_PATH_PREFIX = "m/44'/60'/0'/0"


@dataclass(frozen=True)
class Signer:
    """An account that can send transactions"""
    address: str
    private_key: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_account(cls, account: LocalAccount) -> "Signer":
        return cls(address=account.address, private_key=to_hex(account.key))

    @classmethod
    def from_key(cls, private_key: str) -> "Signer":
        return cls.from_account(Account.from_key(private_key))

    def __str__(self) -> str:
        return self.address


@lru_cache(maxsize=8)
def derive_signers(mnemonic: str = DEFAULT_MNEMONIC, count: int = DEFAULT_ACCOUNT_COUNT) -> Tuple[Signer, ...]:
    """
    Derive ``count`` signers along m/44'/60'/0'/0/i.

    Args:
        mnemonic: BIP-39 phrase
        count: Number of accounts to derive

    Returns:
        Tuple of signers, index 0 first
    """
    Account.enable_unaudited_hdwallet_features()
    return tuple(
        Signer.from_account(Account.from_mnemonic(mnemonic, account_path=f"{HD_PATH_PREFIX}/{index}"))
        for index in range(count)
    )
