"""
Role-based access control.

Roles are 32-byte identifiers. Each role has an admin role whose holders may
grant and revoke it; by default that is ``DEFAULT_ADMIN_ROLE``.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from tokenforge.contracts.base import Address, Bytes32, external, view
from tokenforge.contracts.errors import (
    AccessControlBadConfirmation,
    AccessControlUnauthorizedAccount,
)
from tokenforge.contracts.events import RoleAdminChanged, RoleGranted, RoleRevoked
from tokenforge.contracts.initializable import only_initializing
from tokenforge.contracts.introspection import ERC165Upgradeable

DEFAULT_ADMIN_ROLE = b"\x00" * 32
IACCESS_CONTROL_INTERFACE_ID = bytes.fromhex("7965db0b")


@dataclass
class AccessControlStorage:
    NAMESPACE = "openzeppelin.storage.AccessControl"

    members: Dict[bytes, Set[str]] = field(default_factory=dict)
    admin_roles: Dict[bytes, bytes] = field(default_factory=dict)


class AccessControlUpgradeable(ERC165Upgradeable):

    @only_initializing
    def _access_control_init(self) -> None:
        self._storage(AccessControlStorage)

    @view
    def supports_interface(self, interface_id: bytes) -> bool:
        return interface_id == IACCESS_CONTROL_INTERFACE_ID or super().supports_interface(interface_id)

    @view
    def has_role(self, role: Bytes32, account: Address) -> bool:
        return account in self._storage(AccessControlStorage).members.get(role, set())

    @view
    def get_role_admin(self, role: Bytes32) -> bytes:
        return self._storage(AccessControlStorage).admin_roles.get(role, DEFAULT_ADMIN_ROLE)

    @external
    def grant_role(self, role: Bytes32, account: Address) -> None:
        self._check_role(self.get_role_admin(role))
        self._grant_role(role, account)

    @external
    def revoke_role(self, role: Bytes32, account: Address) -> None:
        self._check_role(self.get_role_admin(role))
        self._revoke_role(role, account)

    @external
    def renounce_role(self, role: Bytes32, caller_confirmation: Address) -> None:
        """Drop a role held by the caller; the caller must pass its own address"""
        if caller_confirmation != self._msg_sender():
            raise AccessControlBadConfirmation()
        self._revoke_role(role, caller_confirmation)

    def _check_role(self, role: bytes, account: Optional[str] = None) -> None:
        account = account or self._msg_sender()
        if not self.has_role(role, account):
            raise AccessControlUnauthorizedAccount(account, role)

    def _set_role_admin(self, role: bytes, admin_role: bytes) -> None:
        previous = self.get_role_admin(role)
        self._storage(AccessControlStorage).admin_roles[role] = admin_role
        self._emit(RoleAdminChanged(role, previous, admin_role))

    def _grant_role(self, role: bytes, account: str) -> bool:
        if self.has_role(role, account):
            return False
        self._storage(AccessControlStorage).members.setdefault(role, set()).add(account)
        self._emit(RoleGranted(role, account, self._msg_sender()))
        return True

    def _revoke_role(self, role: bytes, account: str) -> bool:
        if not self.has_role(role, account):
            return False
        self._storage(AccessControlStorage).members[role].discard(account)
        self._emit(RoleRevoked(role, account, self._msg_sender()))
        return True
