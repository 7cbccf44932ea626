"""Local chain, signers, networks and proxy deployment"""
from .local_chain import ContractHandle, LocalChain, Log, TransactionReceipt
from .signers import Signer, derive_signers
from .upgrades import admin_address, deploy_proxy, implementation_address, upgrade_proxy
from .wallet_config import WalletConfig

__all__ = [
    "ContractHandle",
    "LocalChain",
    "Log",
    "TransactionReceipt",
    "Signer",
    "derive_signers",
    "deploy_proxy",
    "upgrade_proxy",
    "implementation_address",
    "admin_address",
    "WalletConfig",
]
