"""
Initializer guards for contracts deployed behind a proxy.

A proxied contract cannot rely on its constructor, so setup runs in a
function wrapped with ``initializer`` (first deployment) or
``reinitializer(version)`` (later upgrades). Each version can run once.
"""

import functools
from dataclasses import dataclass
from typing import Callable

from tokenforge.contracts.base import Contract
from tokenforge.contracts.errors import InvalidInitialization, NotInitializing
from tokenforge.contracts.events import Initialized

MAX_UINT64 = 2 ** 64 - 1


@dataclass
class InitializableStorage:
    NAMESPACE = "openzeppelin.storage.Initializable"

    initialized: int = 0
    initializing: bool = False


def initializer(fn: Callable) -> Callable:
    """Allow ``fn`` to run once, as version 1"""

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        state = self._storage(InitializableStorage)
        is_top_level = not state.initializing
        if not (state.initialized == 0 and is_top_level):
            raise InvalidInitialization()

        state.initialized = 1
        state.initializing = True
        result = fn(self, *args, **kwargs)
        state.initializing = False
        self._emit(Initialized(1))
        return result

    return wrapper


def reinitializer(version: int) -> Callable[[Callable], Callable]:
    """Allow the decorated function to run once, as ``version``, after lower versions"""

    def decorate(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(self, *args, **kwargs):
            state = self._storage(InitializableStorage)
            if state.initializing or state.initialized >= version:
                raise InvalidInitialization()

            state.initialized = version
            state.initializing = True
            result = fn(self, *args, **kwargs)
            state.initializing = False
            self._emit(Initialized(version))
            return result

        return wrapper

    return decorate


def only_initializing(fn: Callable) -> Callable:
    """Restrict an internal ``_x_init`` helper to initializer scope"""

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        if not self._storage(InitializableStorage).initializing:
            raise NotInitializing()
        return fn(self, *args, **kwargs)

    return wrapper


class Initializable(Contract):

    def _disable_initializers(self) -> None:
        """Lock the contract so that no initializer can ever run on it"""
        state = self._storage(InitializableStorage)
        if state.initializing:
            raise InvalidInitialization()
        if state.initialized != MAX_UINT64:
            state.initialized = MAX_UINT64
            self._emit(Initialized(MAX_UINT64))

    def _get_initialized_version(self) -> int:
        return self._storage(InitializableStorage).initialized
