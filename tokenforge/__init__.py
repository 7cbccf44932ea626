"""
tokenforge - deploy and exercise an upgradeable, admin-managed ERC-721 token
on an in-process EVM-style chain.
"""

__version__ = "1.0.0"
