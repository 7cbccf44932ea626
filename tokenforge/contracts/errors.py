"""
Custom errors raised by contracts running on the local chain.

Each class mirrors a Solidity custom error: the class name is the error name,
the positional arguments are the error arguments and ``selector`` is the
first four bytes of keccak256 over the canonical signature. A raised error
reverts the whole transaction.
"""

from typing import Tuple

from eth_utils import keccak


class ContractError(Exception):
    """Base class for contract reverts"""

    signature_types: Tuple[str, ...] = ()

    def __init__(self, *args):
        if len(args) != len(self.signature_types):
            raise TypeError(
                f"{type(self).__name__} expects {len(self.signature_types)} arguments, got {len(args)}"
            )
        super().__init__(*args)

    @property
    def name(self) -> str:
        return type(self).__name__

    @classmethod
    def signature(cls) -> str:
        return f"{cls.__name__}({','.join(cls.signature_types)})"

    @classmethod
    def selector(cls) -> bytes:
        return keccak(text=cls.signature())[:4]

    def __str__(self) -> str:
        rendered = ", ".join(_render(arg) for arg in self.args)
        return f"{self.name}({rendered})"


def _render(value) -> str:
    if isinstance(value, bytes):
        return "0x" + value.hex()
    return repr(value)


# ============================================================================
# ACCESS CONTROL
# ============================================================================

class AccessControlUnauthorizedAccount(ContractError):
    signature_types = ("address", "bytes32")

    @property
    def account(self) -> str:
        return self.args[0]

    @property
    def needed_role(self) -> bytes:
        return self.args[1]


class AccessControlBadConfirmation(ContractError):
    pass


class AccessControlEnforcedDefaultAdminRules(ContractError):
    pass


# ============================================================================
# OWNABLE
# ============================================================================

class OwnableUnauthorizedAccount(ContractError):
    signature_types = ("address",)


class OwnableInvalidOwner(ContractError):
    signature_types = ("address",)


# ============================================================================
# ERC-721
# ============================================================================

class ERC721InvalidOwner(ContractError):
    signature_types = ("address",)


class ERC721NonexistentToken(ContractError):
    signature_types = ("uint256",)

    @property
    def token_id(self) -> int:
        return self.args[0]


class ERC721IncorrectOwner(ContractError):
    signature_types = ("address", "uint256", "address")


class ERC721InvalidSender(ContractError):
    signature_types = ("address",)


class ERC721InvalidReceiver(ContractError):
    signature_types = ("address",)


class ERC721InsufficientApproval(ContractError):
    signature_types = ("address", "uint256")


class ERC721InvalidApprover(ContractError):
    signature_types = ("address",)


class ERC721InvalidOperator(ContractError):
    signature_types = ("address",)


class ERC721OutOfBoundsIndex(ContractError):
    signature_types = ("address", "uint256")


# ============================================================================
# INITIALIZABLE / PROXY
# ============================================================================

class InvalidInitialization(ContractError):
    pass


class NotInitializing(ContractError):
    pass


class ProxyDeniedAdminAccess(ContractError):
    pass


class ERC1967InvalidImplementation(ContractError):
    signature_types = ("address",)
