"""Single-owner access control."""

from dataclasses import dataclass

from tokenforge.contracts.base import ZERO_ADDRESS, Address, external, view
from tokenforge.contracts.errors import OwnableInvalidOwner, OwnableUnauthorizedAccount
from tokenforge.contracts.events import OwnershipTransferred
from tokenforge.contracts.initializable import Initializable, only_initializing


@dataclass
class OwnableStorage:
    NAMESPACE = "openzeppelin.storage.Ownable"

    owner: str = ZERO_ADDRESS


class OwnableUpgradeable(Initializable):

    @only_initializing
    def _ownable_init(self, initial_owner: str) -> None:
        if initial_owner == ZERO_ADDRESS:
            raise OwnableInvalidOwner(ZERO_ADDRESS)
        self._transfer_ownership(initial_owner)

    @view
    def owner(self) -> str:
        return self._storage(OwnableStorage).owner

    @external
    def transfer_ownership(self, new_owner: Address) -> None:
        self._check_owner()
        if new_owner == ZERO_ADDRESS:
            raise OwnableInvalidOwner(ZERO_ADDRESS)
        self._transfer_ownership(new_owner)

    @external
    def renounce_ownership(self) -> None:
        self._check_owner()
        self._transfer_ownership(ZERO_ADDRESS)

    def _check_owner(self) -> None:
        if self.owner() != self._msg_sender():
            raise OwnableUnauthorizedAccount(self._msg_sender())

    def _transfer_ownership(self, new_owner: str) -> None:
        state = self._storage(OwnableStorage)
        previous = state.owner
        state.owner = new_owner
        self._emit(OwnershipTransferred(previous, new_owner))
