"""
Proxy deployment helpers, the local counterpart of ``upgrades.deployProxy``
and ``upgrades.upgradeProxy``.
"""

from typing import Optional, Sequence, Type, Union

from loguru import logger

from tokenforge.chain.local_chain import AddressLike, ContractHandle, LocalChain, to_address
from tokenforge.contracts.base import Contract
from tokenforge.contracts.proxy import CallData, ERC1967Storage, TransparentUpgradeableProxy

ProxyLike = Union[str, ContractHandle]


def _proxy_address(proxy: ProxyLike) -> str:
    return proxy.address if isinstance(proxy, ContractHandle) else to_address(proxy)


def deploy_proxy(
    chain: LocalChain,
    deployer: AddressLike,
    implementation_cls: Type[Contract],
    args: Sequence = (),
    initializer: Optional[str] = "initialize",
) -> ContractHandle:
    """
    Deploy ``implementation_cls`` behind a transparent proxy.

    Args:
        chain: Chain to deploy on
        deployer: Account paying for both deployments; it becomes the ProxyAdmin owner
        implementation_cls: Logic contract class
        args: Arguments for the initializer
        initializer: Name of the initializer function, or None to skip initialization

    Returns:
        Handle at the proxy address, connected to the deployer
    """
    deployer = to_address(deployer)
    implementation = chain.deploy(deployer, implementation_cls()).contract_address

    data: CallData = (initializer, tuple(args)) if initializer else None
    receipt = chain.deploy(deployer, TransparentUpgradeableProxy(), implementation, deployer, data)
    proxy_address = receipt.contract_address

    logger.info(
        f"Deployed {implementation_cls.__name__} proxy at {proxy_address} "
        f"(implementation {implementation}, admin {admin_address(chain, proxy_address)})"
    )
    return ContractHandle(chain, proxy_address, deployer)


def upgrade_proxy(
    chain: LocalChain,
    signer: AddressLike,
    proxy: ProxyLike,
    new_implementation_cls: Type[Contract],
    call: CallData = None,
) -> ContractHandle:
    """
    Point ``proxy`` at a freshly deployed ``new_implementation_cls``.

    The upgrade is sent to the proxy's ProxyAdmin, so ``signer`` must own it.
    ``call`` is an optional (function, args) pair run through the proxy
    right after the switch, typically a reinitializer.
    """
    signer = to_address(signer)
    proxy_address = _proxy_address(proxy)
    implementation = chain.deploy(signer, new_implementation_cls()).contract_address

    chain.transact(signer, admin_address(chain, proxy_address), "upgrade_and_call", proxy_address, implementation, call)

    logger.info(f"Upgraded proxy {proxy_address} to {new_implementation_cls.__name__} at {implementation}")
    return ContractHandle(chain, proxy_address, signer)


def implementation_address(chain: LocalChain, proxy: ProxyLike) -> str:
    """Read the ERC-1967 implementation slot"""
    return chain.contract_at(_proxy_address(proxy))._storage(ERC1967Storage).implementation


def admin_address(chain: LocalChain, proxy: ProxyLike) -> str:
    """Read the ERC-1967 admin slot (the ProxyAdmin contract)"""
    return chain.contract_at(_proxy_address(proxy))._storage(ERC1967Storage).admin
