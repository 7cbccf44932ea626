"""
In-process EVM-style chain used for development deployments and tests.

It does what a Hardhat node does for a test suite and nothing more:
- deterministic signer accounts
- CREATE address derivation
- one block per successful transaction
- atomic reverts that undo every storage change and drop buffered events
- snapshot/revert for test isolation

Gas, signatures and bytecode are out of scope.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import rlp
from eth_utils import keccak, to_canonical_address, to_checksum_address
from loguru import logger

from tokenforge.chain.signers import DEFAULT_ACCOUNT_COUNT, DEFAULT_MNEMONIC, Signer, derive_signers
from tokenforge.chain.wallet_config import WalletConfig
from tokenforge.contracts.base import EXTERNAL, VIEW, Contract, encode_arguments
from tokenforge.contracts.errors import ContractError
from tokenforge.contracts.events import Event
from tokenforge.core.logging import get_tx_logger
from tokenforge.exceptions import StaticCallError, UnknownContractError, UnknownFunctionError

HARDHAT_CHAIN_ID = 31337

AddressLike = Union[str, Signer]


def to_address(value: AddressLike) -> str:
    """Normalise a signer or hex string to an EIP-55 checksum address"""
    if isinstance(value, Signer):
        return value.address
    return to_checksum_address(value)


@dataclass(frozen=True)
class Log:
    """An event emitted by a contract, as recorded in a receipt"""
    address: str
    event: Event
    block_number: int
    tx_hash: str
    log_index: int

    @property
    def name(self) -> str:
        return self.event.name

    @property
    def args(self) -> Tuple:
        return self.event.args


@dataclass
class TransactionReceipt:
    """Outcome of a mined transaction"""
    tx_hash: str
    block_number: int
    sender: str
    to: Optional[str]
    status: int = 1
    logs: List[Log] = field(default_factory=list)
    contract_address: Optional[str] = None
    return_value: Any = None

    def events(self, name: Optional[str] = None, address: Optional[str] = None) -> List[Event]:
        """Return emitted events, optionally filtered by event name and emitter"""
        return [
            log.event for log in self.logs
            if (name is None or log.name == name) and (address is None or log.address == address)
        ]

    def emitted(self, name: str, *args) -> bool:
        """True if an event called ``name`` was emitted (with exactly ``args`` when given)"""
        return any(not args or event.args == args for event in self.events(name))


@dataclass
class _ChainState:
    contracts: Dict[str, Contract]
    storage: Dict[str, Dict[str, Any]]
    nonces: Dict[str, int]
    block_number: int
    receipt_count: int


class LocalChain:
    """
    Single-process chain that executes contract calls directly.

    Contracts talk back to the chain through ``record_log``, ``create``,
    ``message_call``, ``invoke``, ``is_contract`` and ``contract_at``.
    """

    def __init__(
        self,
        chain_id: int = HARDHAT_CHAIN_ID,
        signers: Optional[Sequence[Signer]] = None,
        mnemonic: str = DEFAULT_MNEMONIC,
        account_count: int = DEFAULT_ACCOUNT_COUNT,
    ):
        self.chain_id = chain_id
        self.signers: List[Signer] = list(signers) if signers else list(derive_signers(mnemonic, account_count))
        self.block_number = 0
        self.receipts: List[TransactionReceipt] = []

        self._nonces: Dict[str, int] = {}
        self._contracts: Dict[str, Contract] = {}
        self._pending_logs: Optional[List[Tuple[str, Event]]] = None
        self._snapshots: Dict[int, _ChainState] = {}
        self._next_snapshot_id = 1
        self._tx_logger = get_tx_logger("LocalChain")

        logger.info(f"LocalChain started - chain id {chain_id}, {len(self.signers)} signers")

    @classmethod
    def from_settings(cls, settings) -> "LocalChain":
        """Build a chain from Settings; a configured deployer key becomes signer 0"""
        signers = list(derive_signers(settings.mnemonic, settings.account_count))
        if settings.secret:
            deployer = WalletConfig.from_key(settings.secret).signer()
            signers = [deployer] + [signer for signer in signers if signer.address != deployer.address]
        return cls(chain_id=settings.chain_id or HARDHAT_CHAIN_ID, signers=signers)

    # ========================================================================
    # ACCOUNTS & STATE QUERIES
    # ========================================================================

    def get_signers(self) -> List[Signer]:
        return list(self.signers)

    def get_nonce(self, address: AddressLike) -> int:
        return self._nonces.get(to_address(address), 0)

    def is_contract(self, address: str) -> bool:
        return address in self._contracts

    def contract_at(self, address: str) -> Contract:
        try:
            return self._contracts[address]
        except KeyError:
            raise UnknownContractError(address) from None

    def get_logs(self, address: Optional[str] = None, event: Optional[str] = None) -> List[Log]:
        return [
            log for receipt in self.receipts for log in receipt.logs
            if (address is None or log.address == address) and (event is None or log.name == event)
        ]

    # ========================================================================
    # TRANSACTIONS
    # ========================================================================

    def deploy(self, sender: AddressLike, contract: Contract, *args) -> TransactionReceipt:
        """
        Deploy ``contract`` from ``sender`` and run its constructor.

        Returns:
            Receipt whose ``contract_address`` is the new address
        """
        sender = to_address(sender)
        receipt = self._run_transaction(
            sender, None, "constructor",
            lambda: self._create(sender, contract, args, bump_nonce=False),
        )
        receipt.contract_address = receipt.return_value
        return receipt

    def transact(self, sender: AddressLike, to: AddressLike, function: str, *args) -> TransactionReceipt:
        """Send a state-changing call; reverts raise the contract's error"""
        sender = to_address(sender)
        to = to_address(to)
        return self._run_transaction(
            sender, to, function,
            lambda: self._execute(sender, to, function, args, (EXTERNAL,)),
        )

    def call(self, sender: AddressLike, to: AddressLike, function: str, *args) -> Any:
        """Evaluate a view function without creating a transaction"""
        return self._execute(to_address(sender), to_address(to), function, args, (VIEW,))

    # ========================================================================
    # CONTRACT-FACING HOOKS
    # ========================================================================

    def record_log(self, address: str, event: Event) -> None:
        if self._pending_logs is None:
            raise StaticCallError(f"{event.name} emitted by {address} outside of a transaction")
        self._pending_logs.append((address, event))

    def create(self, creator: str, contract: Contract, *args) -> str:
        """Deploy a contract from inside a running transaction"""
        return self._create(creator, contract, args, bump_nonce=True)

    def message_call(self, sender: str, to: str, function: str, *args) -> Any:
        """Call another contract from inside a running transaction"""
        return self._execute(sender, to, function, args, (EXTERNAL, VIEW))

    def invoke(self, method: Callable, sender: str, args: Iterable) -> Any:
        """Run a resolved contract method with ``sender`` as msg.sender"""
        args = encode_arguments(method, tuple(args))
        target = method.__self__
        previous = target._sender
        target._sender = sender
        try:
            return method(*args)
        finally:
            target._sender = previous

    # ========================================================================
    # SNAPSHOTS
    # ========================================================================

    def snapshot(self) -> int:
        snapshot_id = self._next_snapshot_id
        self._next_snapshot_id += 1
        self._snapshots[snapshot_id] = self._capture()
        return snapshot_id

    def revert(self, snapshot_id: int) -> bool:
        """Restore a snapshot; it and every later snapshot are consumed"""
        state = self._snapshots.get(snapshot_id)
        if state is None:
            return False
        self._restore(state)
        self._snapshots = {sid: s for sid, s in self._snapshots.items() if sid < snapshot_id}
        return True

    # ========================================================================
    # INTERNAL
    # ========================================================================

    def _create(self, creator: str, contract: Contract, args: Tuple, bump_nonce: bool) -> str:
        nonce = self._nonces.get(creator, 0)
        address = to_checksum_address(keccak(rlp.encode([to_canonical_address(creator), nonce]))[12:])
        if bump_nonce:
            self._nonces[creator] = nonce + 1

        contract.address = address
        contract._chain = self
        self._contracts[address] = contract
        # Contract accounts start at nonce 1 (EIP-161)
        self._nonces[address] = 1

        self.invoke(contract.constructor, creator, args)
        logger.debug(f"Created {type(contract).__name__} at {address} (creator {creator}, nonce {nonce})")
        return address

    def _execute(self, sender: str, to: str, function: str, args: Tuple, kinds: Tuple[str, ...]) -> Any:
        method = self.contract_at(to).resolve(function, sender, kinds)
        return self.invoke(method, sender, args)

    def _run_transaction(
        self, sender: str, to: Optional[str], function: str, work: Callable[[], Any]
    ) -> TransactionReceipt:
        if self._pending_logs is not None:
            raise RuntimeError("Nested top-level transactions are not supported")

        nonce = self._nonces.get(sender, 0)
        before = self._capture()
        self._pending_logs = []
        try:
            result = work()
        except ContractError as exc:
            self._restore(before)
            self._tx_logger.warning(f"Transaction {function} from {sender} to {to} reverted: {exc}")
            raise
        except Exception:
            self._restore(before)
            raise
        finally:
            pending, self._pending_logs = self._pending_logs, None

        self._nonces[sender] = nonce + 1
        self.block_number += 1
        tx_hash = "0x" + keccak(text=f"{self.chain_id}:{sender}:{nonce}:{to}:{function}").hex()
        receipt = TransactionReceipt(
            tx_hash=tx_hash,
            block_number=self.block_number,
            sender=sender,
            to=to,
            logs=[
                Log(address=address, event=event, block_number=self.block_number, tx_hash=tx_hash, log_index=index)
                for index, (address, event) in enumerate(pending)
            ],
            return_value=result,
        )
        self.receipts.append(receipt)
        self._tx_logger.info(
            f"Block {self.block_number}: {function} from {sender} to {to or 'CREATE'} "
            f"({len(receipt.logs)} events)"
        )
        return receipt

    def _capture(self) -> _ChainState:
        return _ChainState(
            contracts=dict(self._contracts),
            storage={address: copy.deepcopy(c._namespaces) for address, c in self._contracts.items()},
            nonces=dict(self._nonces),
            block_number=self.block_number,
            receipt_count=len(self.receipts),
        )

    def _restore(self, state: _ChainState) -> None:
        self._contracts = dict(state.contracts)
        for address, contract in self._contracts.items():
            # Mutate in place: delegated logic objects share this dict
            contract._namespaces.clear()
            contract._namespaces.update(copy.deepcopy(state.storage[address]))
        self._nonces = dict(state.nonces)
        self.block_number = state.block_number
        del self.receipts[state.receipt_count:]


class ContractHandle:
    """
    Bound view of a deployed contract, in the style of an ethers Contract.

    Attribute access resolves against the contract's ABI: view functions
    return their value, external functions send a transaction and return
    the receipt.
    """

    def __init__(self, chain: LocalChain, address: str, signer: Optional[AddressLike] = None):
        self._chain = chain
        self.address = address
        self.signer = signer if signer is not None else chain.signers[0]

    def connect(self, signer: AddressLike) -> "ContractHandle":
        return ContractHandle(self._chain, self.address, signer)

    @property
    def chain(self) -> LocalChain:
        return self._chain

    @property
    def interface(self) -> List[str]:
        return sorted(self._chain.contract_at(self.address).abi())

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        kind = self._chain.contract_at(self.address).abi().get(name)
        if kind == VIEW:
            return lambda *args: self._chain.call(self.signer, self.address, name, *self._encode(args))
        if kind == EXTERNAL:
            return lambda *args: self._chain.transact(self.signer, self.address, name, *self._encode(args))
        raise AttributeError(f"Contract at {self.address} has no function '{name}'")

    @staticmethod
    def _encode(args: Tuple) -> Tuple:
        # Strings go through as given; the chain checks them against the ABI
        return tuple(arg.address if isinstance(arg, Signer) else arg for arg in args)

    def __repr__(self) -> str:
        return f"ContractHandle({self.address}, signer={to_address(self.signer)})"
