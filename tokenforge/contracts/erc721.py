"""
ERC-721 non-fungible token with the Metadata and Enumerable extensions.

Every ownership change (mint, burn, transfer) flows through ``_update``,
which subclasses override to add restrictions or bookkeeping.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Set

from loguru import logger

from tokenforge.contracts.base import ZERO_ADDRESS, Address, Uint256, external, view
from tokenforge.contracts.errors import (
    ERC721IncorrectOwner,
    ERC721InsufficientApproval,
    ERC721InvalidApprover,
    ERC721InvalidOperator,
    ERC721InvalidOwner,
    ERC721InvalidReceiver,
    ERC721InvalidSender,
    ERC721NonexistentToken,
    ERC721OutOfBoundsIndex,
)
from tokenforge.contracts.events import Approval, ApprovalForAll, Transfer
from tokenforge.contracts.initializable import only_initializing
from tokenforge.contracts.introspection import ERC165Upgradeable

IERC721_INTERFACE_ID = bytes.fromhex("80ac58cd")
IERC721_METADATA_INTERFACE_ID = bytes.fromhex("5b5e139f")
IERC721_ENUMERABLE_INTERFACE_ID = bytes.fromhex("780e9d63")

# bytes4(keccak256("onERC721Received(address,address,uint256,bytes)"))
ERC721_RECEIVED = bytes.fromhex("150b7a02")


@dataclass
class ERC721Storage:
    NAMESPACE = "openzeppelin.storage.ERC721"

    name: str = ""
    symbol: str = ""
    owners: Dict[int, str] = field(default_factory=dict)
    balances: Dict[str, int] = field(default_factory=dict)
    token_approvals: Dict[int, str] = field(default_factory=dict)
    operator_approvals: Dict[str, Set[str]] = field(default_factory=dict)


@dataclass
class ERC721EnumerableStorage:
    NAMESPACE = "openzeppelin.storage.ERC721Enumerable"

    owned_tokens: Dict[str, List[int]] = field(default_factory=dict)
    owned_tokens_index: Dict[int, int] = field(default_factory=dict)
    all_tokens: List[int] = field(default_factory=list)
    all_tokens_index: Dict[int, int] = field(default_factory=dict)


class ERC721Upgradeable(ERC165Upgradeable):

    @only_initializing
    def _erc721_init(self, name: str, symbol: str) -> None:
        state = self._storage(ERC721Storage)
        state.name = name
        state.symbol = symbol

    # ========================================================================
    # VIEWS
    # ========================================================================

    @view
    def supports_interface(self, interface_id: bytes) -> bool:
        return (
            interface_id in (IERC721_INTERFACE_ID, IERC721_METADATA_INTERFACE_ID)
            or super().supports_interface(interface_id)
        )

    @view
    def name(self) -> str:
        return self._storage(ERC721Storage).name

    @view
    def symbol(self) -> str:
        return self._storage(ERC721Storage).symbol

    @view
    def balance_of(self, owner: Address) -> int:
        if owner == ZERO_ADDRESS:
            raise ERC721InvalidOwner(ZERO_ADDRESS)
        return self._storage(ERC721Storage).balances.get(owner, 0)

    @view
    def owner_of(self, token_id: Uint256) -> str:
        return self._require_owned(token_id)

    @view
    def token_uri(self, token_id: Uint256) -> str:
        self._require_owned(token_id)
        base_uri = self._base_uri()
        return f"{base_uri}{token_id}" if base_uri else ""

    @view
    def get_approved(self, token_id: Uint256) -> str:
        self._require_owned(token_id)
        return self._get_approved(token_id)

    @view
    def is_approved_for_all(self, owner: Address, operator: Address) -> bool:
        return operator in self._storage(ERC721Storage).operator_approvals.get(owner, set())

    # ========================================================================
    # EXTERNAL
    # ========================================================================

    @external
    def approve(self, to: Address, token_id: Uint256) -> None:
        self._approve(to, token_id, self._msg_sender())

    @external
    def set_approval_for_all(self, operator: Address, approved: bool) -> None:
        self._set_approval_for_all(self._msg_sender(), operator, approved)

    @external
    def transfer_from(self, from_: Address, to: Address, token_id: Uint256) -> None:
        if to == ZERO_ADDRESS:
            raise ERC721InvalidReceiver(ZERO_ADDRESS)
        previous_owner = self._update(to, token_id, self._msg_sender())
        if previous_owner != from_:
            raise ERC721IncorrectOwner(from_, token_id, previous_owner)

    @external
    def safe_transfer_from(self, from_: Address, to: Address, token_id: Uint256, data: bytes = b"") -> None:
        self.transfer_from(from_, to, token_id)
        self._check_on_erc721_received(self._msg_sender(), from_, to, token_id, data)

    # ========================================================================
    # INTERNAL
    # ========================================================================

    def _base_uri(self) -> str:
        return ""

    def _owner_of(self, token_id: int) -> str:
        return self._storage(ERC721Storage).owners.get(token_id, ZERO_ADDRESS)

    def _get_approved(self, token_id: int) -> str:
        return self._storage(ERC721Storage).token_approvals.get(token_id, ZERO_ADDRESS)

    def _require_owned(self, token_id: int) -> str:
        owner = self._owner_of(token_id)
        if owner == ZERO_ADDRESS:
            raise ERC721NonexistentToken(token_id)
        return owner

    def _is_authorized(self, owner: str, spender: str, token_id: int) -> bool:
        return spender != ZERO_ADDRESS and (
            owner == spender
            or self.is_approved_for_all(owner, spender)
            or self._get_approved(token_id) == spender
        )

    def _check_authorized(self, owner: str, spender: str, token_id: int) -> None:
        if not self._is_authorized(owner, spender, token_id):
            if owner == ZERO_ADDRESS:
                raise ERC721NonexistentToken(token_id)
            raise ERC721InsufficientApproval(spender, token_id)

    def _update(self, to: str, token_id: int, auth: str) -> str:
        """
        Move ``token_id`` to ``to`` (the zero address burns it).

        Args:
            to: New owner, or the zero address to burn
            token_id: Token being moved
            auth: Account whose authorisation is checked; the zero address skips the check

        Returns:
            The owner before the update (the zero address for a mint)
        """
        state = self._storage(ERC721Storage)
        from_ = self._owner_of(token_id)

        if auth != ZERO_ADDRESS:
            self._check_authorized(from_, auth, token_id)

        if from_ != ZERO_ADDRESS:
            # Clear approval without emitting an Approval event
            self._approve(ZERO_ADDRESS, token_id, ZERO_ADDRESS, emit_event=False)
            state.balances[from_] -= 1
            if state.balances[from_] == 0:
                del state.balances[from_]

        if to != ZERO_ADDRESS:
            state.balances[to] = state.balances.get(to, 0) + 1
            state.owners[token_id] = to
        else:
            state.owners.pop(token_id, None)

        self._emit(Transfer(from_, to, token_id))
        return from_

    def _mint(self, to: str, token_id: int) -> None:
        if to == ZERO_ADDRESS:
            raise ERC721InvalidReceiver(ZERO_ADDRESS)
        previous_owner = self._update(to, token_id, ZERO_ADDRESS)
        if previous_owner != ZERO_ADDRESS:
            raise ERC721InvalidSender(ZERO_ADDRESS)

    def _safe_mint(self, to: str, token_id: int, data: bytes = b"") -> None:
        self._mint(to, token_id)
        self._check_on_erc721_received(self._msg_sender(), ZERO_ADDRESS, to, token_id, data)

    def _burn(self, token_id: int) -> None:
        previous_owner = self._update(ZERO_ADDRESS, token_id, ZERO_ADDRESS)
        if previous_owner == ZERO_ADDRESS:
            raise ERC721NonexistentToken(token_id)

    def _approve(self, to: str, token_id: int, auth: str, emit_event: bool = True) -> None:
        if emit_event or auth != ZERO_ADDRESS:
            owner = self._require_owned(token_id)
            if auth != ZERO_ADDRESS and owner != auth and not self.is_approved_for_all(owner, auth):
                raise ERC721InvalidApprover(auth)
            if emit_event:
                self._emit(Approval(owner, to, token_id))

        approvals = self._storage(ERC721Storage).token_approvals
        if to == ZERO_ADDRESS:
            approvals.pop(token_id, None)
        else:
            approvals[token_id] = to

    def _set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        if operator == ZERO_ADDRESS:
            raise ERC721InvalidOperator(operator)
        operators = self._storage(ERC721Storage).operator_approvals.setdefault(owner, set())
        if approved:
            operators.add(operator)
        else:
            operators.discard(operator)
        self._emit(ApprovalForAll(owner, operator, approved))

    def _check_on_erc721_received(
        self, operator: str, from_: str, to: str, token_id: int, data: bytes
    ) -> None:
        """Reject contract receivers that do not acknowledge the token"""
        if not self._chain.is_contract(to):
            return

        receiver = self._chain.contract_at(to)
        if "on_erc721_received" not in receiver.abi():
            logger.debug(f"Receiver {to} does not implement on_erc721_received")
            raise ERC721InvalidReceiver(to)

        retval = self._chain.message_call(
            self.address, to, "on_erc721_received", operator, from_, token_id, data
        )
        if retval != ERC721_RECEIVED:
            raise ERC721InvalidReceiver(to)


class ERC721EnumerableUpgradeable(ERC721Upgradeable):
    """Adds on-chain enumeration of all tokens and of each owner's tokens"""

    @view
    def supports_interface(self, interface_id: bytes) -> bool:
        return interface_id == IERC721_ENUMERABLE_INTERFACE_ID or super().supports_interface(interface_id)

    @view
    def total_supply(self) -> int:
        return len(self._storage(ERC721EnumerableStorage).all_tokens)

    @view
    def token_by_index(self, index: Uint256) -> int:
        tokens = self._storage(ERC721EnumerableStorage).all_tokens
        if index < 0 or index >= len(tokens):
            raise ERC721OutOfBoundsIndex(ZERO_ADDRESS, index)
        return tokens[index]

    @view
    def token_of_owner_by_index(self, owner: Address, index: Uint256) -> int:
        tokens = self._storage(ERC721EnumerableStorage).owned_tokens.get(owner, [])
        if index < 0 or index >= len(tokens):
            raise ERC721OutOfBoundsIndex(owner, index)
        return tokens[index]

    def _update(self, to: str, token_id: int, auth: str) -> str:
        previous_owner = super()._update(to, token_id, auth)

        if previous_owner == ZERO_ADDRESS:
            self._add_token_to_all_tokens_enumeration(token_id)
        elif previous_owner != to:
            self._remove_token_from_owner_enumeration(previous_owner, token_id)

        if to == ZERO_ADDRESS:
            self._remove_token_from_all_tokens_enumeration(token_id)
        elif previous_owner != to:
            self._add_token_to_owner_enumeration(to, token_id)

        return previous_owner

    def _add_token_to_owner_enumeration(self, to: str, token_id: int) -> None:
        state = self._storage(ERC721EnumerableStorage)
        owned = state.owned_tokens.setdefault(to, [])
        state.owned_tokens_index[token_id] = len(owned)
        owned.append(token_id)

    def _add_token_to_all_tokens_enumeration(self, token_id: int) -> None:
        state = self._storage(ERC721EnumerableStorage)
        state.all_tokens_index[token_id] = len(state.all_tokens)
        state.all_tokens.append(token_id)

    def _remove_token_from_owner_enumeration(self, from_: str, token_id: int) -> None:
        # Swap-and-pop keeps the list dense
        state = self._storage(ERC721EnumerableStorage)
        owned = state.owned_tokens[from_]
        token_index = state.owned_tokens_index.pop(token_id)
        last_token_id = owned.pop()
        if last_token_id != token_id:
            owned[token_index] = last_token_id
            state.owned_tokens_index[last_token_id] = token_index
        if not owned:
            del state.owned_tokens[from_]

    def _remove_token_from_all_tokens_enumeration(self, token_id: int) -> None:
        state = self._storage(ERC721EnumerableStorage)
        token_index = state.all_tokens_index.pop(token_id)
        last_token_id = state.all_tokens.pop()
        if last_token_id != token_id:
            state.all_tokens[token_index] = last_token_id
            state.all_tokens_index[last_token_id] = token_index
