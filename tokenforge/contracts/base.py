"""
Contract runtime: ABI markers, namespaced storage and the message context.

A contract is a plain Python object whose public surface is declared with
the ``external`` and ``view`` decorators. State lives in ``_namespaces``, one
storage dataclass per mixin, so a proxy can lend its storage to any logic
class without the two knowing each other's layout.
"""

import inspect
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, NewType, Optional, Tuple, Type, TypeVar

from eth_utils import is_address, to_checksum_address

from tokenforge.exceptions import InvalidArgumentError, UnknownFunctionError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
MAX_UINT256 = 2 ** 256 - 1

# ABI parameter types checked when a call crosses into a contract
Address = NewType("Address", str)
Uint256 = NewType("Uint256", int)
Bytes32 = NewType("Bytes32", bytes)

EXTERNAL = "external"
VIEW = "view"

T = TypeVar("T")


def external(fn: Callable) -> Callable:
    """Export a state-changing function"""
    fn.__abi__ = EXTERNAL
    return fn


def view(fn: Callable) -> Callable:
    """Export a read-only function"""
    fn.__abi__ = VIEW
    return fn


@lru_cache(maxsize=None)
def abi_of(cls: type) -> Dict[str, str]:
    """Map every exported function name of ``cls`` to its mutability"""
    abi = {}
    for name in dir(cls):
        kind = getattr(getattr(cls, name, None), "__abi__", None)
        if kind is not None:
            abi[name] = kind
    return abi


class Contract:
    """
    Base class for everything deployable on the local chain.

    The chain fills in ``address`` and ``_chain`` on deployment and sets
    ``_sender`` for the duration of each call.
    """

    def __init__(self):
        self.address: Optional[str] = None
        self._chain = None
        self._namespaces: Dict[str, Any] = {}
        self._sender: Optional[str] = None

    def constructor(self, *args) -> None:
        """Runs once inside the deployment transaction."""

    def abi(self) -> Dict[str, str]:
        return abi_of(type(self))

    def resolve(self, function: str, sender: str, kinds: Iterable[str]) -> Callable:
        """
        Return the bound method that serves ``function`` for ``sender``.

        Raises:
            UnknownFunctionError: if the function is not exported with an allowed mutability
        """
        if self.abi().get(function) not in kinds:
            raise UnknownFunctionError(self.address, function)
        return getattr(self, function)

    @classmethod
    def delegate(cls, storage_owner: "Contract") -> "Contract":
        """Instantiate this logic class on top of another contract's storage"""
        logic = cls.__new__(cls)
        logic.address = storage_owner.address
        logic._chain = storage_owner._chain
        logic._namespaces = storage_owner._namespaces
        logic._sender = None
        return logic

    def _storage(self, layout: Type[T]) -> T:
        key = getattr(layout, "NAMESPACE", layout.__name__)
        slot = self._namespaces.get(key)
        if slot is None:
            slot = layout()
            self._namespaces[key] = slot
        return slot

    def _msg_sender(self) -> str:
        return self._sender

    def _emit(self, event) -> None:
        self._chain.record_log(self.address, event)


@lru_cache(maxsize=None)
def _parameters(fn: Callable) -> Tuple[inspect.Parameter, ...]:
    return tuple(
        parameter for parameter in inspect.signature(fn).parameters.values()
        if parameter.name != "self"
    )


def _encode_value(function: str, parameter: str, kind: Any, value: Any) -> Any:
    if kind is Address:
        if isinstance(value, str) and is_address(value):
            return to_checksum_address(value)
        raise InvalidArgumentError(function, parameter, value, "address")
    if kind is Uint256:
        if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_UINT256:
            return value
        raise InvalidArgumentError(function, parameter, value, "uint256")
    if kind is Bytes32:
        if isinstance(value, bytes) and len(value) == 32:
            return value
        raise InvalidArgumentError(function, parameter, value, "bytes32")
    return value


def encode_arguments(method: Callable, args: Tuple) -> Tuple:
    """
    Check ``args`` against the ABI types ``method`` declares.

    Addresses come back checksummed. Parameters annotated with anything
    other than Address, Uint256 or Bytes32 pass through untouched.

    Raises:
        InvalidArgumentError: if an argument does not fit its parameter type
    """
    fn = getattr(method, "__func__", method)
    encoded = []
    for parameter, value in zip(_parameters(fn), args):
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            break
        encoded.append(_encode_value(fn.__name__, parameter.name, parameter.annotation, value))
    return tuple(encoded) + tuple(args[len(encoded):])
