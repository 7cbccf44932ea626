"""
Contracts executed by the local chain.
"""

from .access_control import DEFAULT_ADMIN_ROLE
from .base import ZERO_ADDRESS, Contract, external, view
from .proxy import ProxyAdmin, TransparentUpgradeableProxy
from .token import ADMIN_ROLE, MyERC721EnumerableUpgradeable

__all__ = [
    "ADMIN_ROLE",
    "DEFAULT_ADMIN_ROLE",
    "ZERO_ADDRESS",
    "Contract",
    "external",
    "view",
    "MyERC721EnumerableUpgradeable",
    "ProxyAdmin",
    "TransparentUpgradeableProxy",
]
