"""
Non-contract failures: configuration problems and chain/RPC plumbing errors.

Contract reverts live in tokenforge.contracts.errors and never derive from
these classes.
"""


class ConfigurationError(Exception):
    """Raised when settings or network configuration are missing or invalid"""


class NetworkMismatchError(ConfigurationError):
    """Raised when a remote endpoint reports a chain id different from the configured one"""

    def __init__(self, network: str, expected: int, actual: int):
        self.network = network
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Network '{network}' is configured for chain id {expected} but the endpoint reports {actual}"
        )


class ChainError(Exception):
    """Base class for local chain failures that are not contract reverts"""


class UnknownContractError(ChainError):
    """No contract is deployed at the requested address"""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"No contract deployed at {address}")


class UnknownFunctionError(ChainError):
    """The contract does not export the requested function with the requested mutability"""

    def __init__(self, address: str, function: str):
        self.address = address
        self.function = function
        super().__init__(f"Contract at {address} has no callable function '{function}'")


class StaticCallError(ChainError):
    """A view call tried to emit an event or otherwise modify state"""


class RpcError(ChainError):
    """A JSON-RPC endpoint returned an HTTP error or an error object"""


class InvalidArgumentError(ChainError):
    """An argument cannot be encoded as the ABI type its parameter declares"""

    def __init__(self, function: str, parameter: str, value, expected: str):
        self.function = function
        self.parameter = parameter
        self.value = value
        self.expected = expected
        super().__init__(f"{function}: invalid {expected} for '{parameter}': {value!r}")
