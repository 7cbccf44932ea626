"""
Event types emitted by contracts.

Events are immutable records. ``name`` is the Solidity event name and
``args`` returns the fields in declaration order, which is what receipts
compare against.
"""

from dataclasses import dataclass, fields
from typing import Tuple


@dataclass(frozen=True)
class Event:
    """Base class for all contract events"""

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def args(self) -> Tuple:
        return tuple(getattr(self, f.name) for f in fields(self))


# ERC-721 core
@dataclass(frozen=True)
class Transfer(Event):
    from_: str
    to: str
    token_id: int


@dataclass(frozen=True)
class Approval(Event):
    owner: str
    approved: str
    token_id: int


@dataclass(frozen=True)
class ApprovalForAll(Event):
    owner: str
    operator: str
    approved: bool


# Access control / ownership
@dataclass(frozen=True)
class RoleGranted(Event):
    role: bytes
    account: str
    sender: str


@dataclass(frozen=True)
class RoleRevoked(Event):
    role: bytes
    account: str
    sender: str


@dataclass(frozen=True)
class RoleAdminChanged(Event):
    role: bytes
    previous_admin_role: bytes
    new_admin_role: bytes


@dataclass(frozen=True)
class OwnershipTransferred(Event):
    previous_owner: str
    new_owner: str


# Upgradeability
@dataclass(frozen=True)
class Initialized(Event):
    version: int


@dataclass(frozen=True)
class Upgraded(Event):
    implementation: str


@dataclass(frozen=True)
class AdminChanged(Event):
    previous_admin: str
    new_admin: str


# Token lifecycle
@dataclass(frozen=True)
class Minted(Event):
    to: str
    token_id: int


@dataclass(frozen=True)
class Burned(Event):
    owner: str
    token_id: int


@dataclass(frozen=True)
class AdminTransfer(Event):
    from_: str
    to: str
    token_id: int
