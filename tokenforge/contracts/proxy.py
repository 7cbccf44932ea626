"""
Transparent upgradeable proxy and its ProxyAdmin.

The proxy owns the storage and forwards every call to the current
implementation, except calls coming from its ProxyAdmin, which may only
upgrade. The ProxyAdmin is a separate Ownable contract, so the account that
owns it can still use the proxied contract normally.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from loguru import logger

from tokenforge.contracts.base import EXTERNAL, ZERO_ADDRESS, Address, Contract, external, view
from tokenforge.contracts.errors import (
    ERC1967InvalidImplementation,
    OwnableInvalidOwner,
    ProxyDeniedAdminAccess,
)
from tokenforge.contracts.events import AdminChanged, Upgraded
from tokenforge.contracts.ownable import OwnableUpgradeable

# (function name, positional args) delegated right after an upgrade
CallData = Optional[Tuple[str, Tuple[Any, ...]]]

UPGRADE_INTERFACE_VERSION = "5.0.0"


@dataclass
class ERC1967Storage:
    NAMESPACE = "eip1967.proxy"

    implementation: str = ZERO_ADDRESS
    admin: str = ZERO_ADDRESS


class ProxyAdmin(OwnableUpgradeable):
    """Auxiliary contract that holds the upgrade right of a proxy"""

    def constructor(self, initial_owner: Address) -> None:
        if initial_owner == ZERO_ADDRESS:
            raise OwnableInvalidOwner(ZERO_ADDRESS)
        self._transfer_ownership(initial_owner)

    @view
    def UPGRADE_INTERFACE_VERSION(self) -> str:
        return UPGRADE_INTERFACE_VERSION

    @external
    def upgrade_and_call(self, proxy: Address, implementation: Address, data: CallData = None) -> None:
        self._check_owner()
        self._chain.message_call(self.address, proxy, "upgrade_to_and_call", implementation, data)


class TransparentUpgradeableProxy(Contract):

    def constructor(self, logic: Address, initial_owner: Address, data: CallData = None) -> None:
        admin = self._chain.create(self.address, ProxyAdmin(), initial_owner)
        self._change_admin(admin)
        self._upgrade_to_and_call(logic, data)

    def abi(self) -> Dict[str, str]:
        merged = dict(self._implementation_contract().abi())
        merged.update(super().abi())
        return merged

    def resolve(self, function: str, sender: str, kinds: Iterable[str]) -> Callable:
        slots = self._storage(ERC1967Storage)
        if sender == slots.admin:
            if function != "upgrade_to_and_call":
                raise ProxyDeniedAdminAccess()
            return super().resolve(function, sender, kinds)
        return self._logic().resolve(function, sender, kinds)

    @external
    def upgrade_to_and_call(self, new_implementation: Address, data: CallData = None) -> None:
        self._upgrade_to_and_call(new_implementation, data)

    # ========================================================================
    # ERC-1967 SLOTS
    # ========================================================================

    def implementation(self) -> str:
        return self._storage(ERC1967Storage).implementation

    def admin(self) -> str:
        return self._storage(ERC1967Storage).admin

    def _change_admin(self, new_admin: str) -> None:
        slots = self._storage(ERC1967Storage)
        previous = slots.admin
        slots.admin = new_admin
        self._emit(AdminChanged(previous, new_admin))

    def _upgrade_to_and_call(self, new_implementation: str, data: CallData) -> None:
        if not self._chain.is_contract(new_implementation):
            raise ERC1967InvalidImplementation(new_implementation)

        self._storage(ERC1967Storage).implementation = new_implementation
        self._emit(Upgraded(new_implementation))
        logger.info(f"Proxy {self.address} now points at {new_implementation}")

        if data:
            function, args = data
            method = self._logic().resolve(function, self._msg_sender(), (EXTERNAL,))
            self._chain.invoke(method, self._msg_sender(), args)

    def _implementation_contract(self) -> Contract:
        return self._chain.contract_at(self.implementation())

    def _logic(self) -> Contract:
        return type(self._implementation_contract()).delegate(self)
