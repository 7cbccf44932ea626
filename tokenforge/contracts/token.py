"""
MyERC721EnumerableUpgradeable: an admin-managed, enumerable NFT.

Rules enforced on top of the ERC-721 base:
- Only ADMIN_ROLE holders can mint, burn and move tokens. Ordinary
  transfers from a non-admin caller revert.
- Only the owner can grant or revoke roles. The owner always holds
  DEFAULT_ADMIN_ROLE: it cannot be revoked or renounced while they
  own the contract, and it follows ownership transfers.
- An admin transfer is a burn followed by a mint of the same id.
"""

from eth_utils import keccak
from loguru import logger

from tokenforge.contracts.access_control import DEFAULT_ADMIN_ROLE, AccessControlUpgradeable
from tokenforge.contracts.base import ZERO_ADDRESS, Address, Bytes32, Uint256, external, view
from tokenforge.contracts.erc721 import ERC721EnumerableUpgradeable
from tokenforge.contracts.errors import (
    AccessControlEnforcedDefaultAdminRules,
    AccessControlUnauthorizedAccount,
    ERC721IncorrectOwner,
)
from tokenforge.contracts.events import AdminTransfer, Burned, Minted
from tokenforge.contracts.initializable import initializer
from tokenforge.contracts.ownable import OwnableUpgradeable

ADMIN_ROLE = keccak(text="ADMIN_ROLE")

TOKEN_NAME = "MyERC721Token"
TOKEN_SYMBOL = "MTK"


class MyERC721EnumerableUpgradeable(
    ERC721EnumerableUpgradeable, AccessControlUpgradeable, OwnableUpgradeable
):

    def constructor(self) -> None:
        # The implementation itself is never initialized; only proxies are
        self._disable_initializers()

    @external
    @initializer
    def initialize(self) -> None:
        deployer = self._msg_sender()
        self._erc721_init(TOKEN_NAME, TOKEN_SYMBOL)
        self._access_control_init()
        self._ownable_init(deployer)
        self._grant_role(ADMIN_ROLE, deployer)
        logger.info(f"Token initialized at {self.address} - owner/admin: {deployer}")

    @view
    def ADMIN_ROLE(self) -> bytes:
        return ADMIN_ROLE

    @view
    def supports_interface(self, interface_id: bytes) -> bool:
        return super().supports_interface(interface_id)

    # ========================================================================
    # ADMIN TOKEN OPERATIONS
    # ========================================================================

    @external
    def mint(self, to: Address, token_id: Uint256) -> None:
        self._check_role(ADMIN_ROLE)
        self._mint(to, token_id)
        self._emit(Minted(to, token_id))

    @external
    def burn(self, owner: Address, token_id: Uint256) -> None:
        self._check_role(ADMIN_ROLE)
        self._require_owner(owner, token_id)
        self._burn(token_id)
        self._emit(Burned(owner, token_id))

    @external
    def admin_transfer(self, from_: Address, to: Address, token_id: Uint256) -> None:
        self._check_role(ADMIN_ROLE)
        self._require_owner(from_, token_id)
        self._burn(token_id)
        self._mint(to, token_id)
        self._emit(AdminTransfer(from_, to, token_id))

    # ========================================================================
    # ROLE MANAGEMENT (owner only)
    # ========================================================================

    @external
    def add_admin(self, account: Address) -> None:
        self._check_role_manager()
        self._grant_role(ADMIN_ROLE, account)

    @external
    def remove_admin(self, account: Address) -> None:
        self._check_role_manager()
        self._revoke_role(ADMIN_ROLE, account)

    @external
    def grant_role(self, role: Bytes32, account: Address) -> None:
        self._check_role_manager()
        self._grant_role(role, account)

    @external
    def revoke_role(self, role: Bytes32, account: Address) -> None:
        self._check_role_manager()
        self._revoke_role(role, account)

    # ========================================================================
    # INTERNAL
    # ========================================================================

    def _check_role_manager(self) -> None:
        sender = self._msg_sender()
        if sender != self.owner():
            raise AccessControlUnauthorizedAccount(sender, DEFAULT_ADMIN_ROLE)

    def _require_owner(self, owner: str, token_id: int) -> None:
        current = self._require_owned(token_id)
        if current != owner:
            raise ERC721IncorrectOwner(owner, token_id, current)

    def _update(self, to: str, token_id: int, auth: str) -> str:
        from_ = self._owner_of(token_id)
        if from_ != ZERO_ADDRESS and to != ZERO_ADDRESS:
            # Peer-to-peer transfer: mint and burn are gated in their own entry points
            self._check_role(ADMIN_ROLE)
        return super()._update(to, token_id, auth)

    def _revoke_role(self, role: bytes, account: str) -> bool:
        # DEFAULT_ADMIN_ROLE only leaves the owner through an ownership change
        if role == DEFAULT_ADMIN_ROLE and account == self.owner():
            raise AccessControlEnforcedDefaultAdminRules()
        return super()._revoke_role(role, account)

    def _transfer_ownership(self, new_owner: str) -> None:
        previous = self.owner()
        super()._transfer_ownership(new_owner)
        if previous != ZERO_ADDRESS:
            self._revoke_role(DEFAULT_ADMIN_ROLE, previous)
        if new_owner != ZERO_ADDRESS:
            self._grant_role(DEFAULT_ADMIN_ROLE, new_owner)
