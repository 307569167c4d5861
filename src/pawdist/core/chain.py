"""In-process ledger for native currency and contract state.

The ledger mirrors the execution model of an EVM chain closely enough to run
the Distributor against real AMM arithmetic:

- Native balances are plain integers (wei) keyed by checksummed address
- Contracts register themselves and receive plain value transfers
- Every invocation runs inside ``Chain.transaction()``; an exception escaping
  the outermost scope restores balances, contract state and the event log
"""

import copy
import logging
import re
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator

from web3 import Web3

from .errors import InsufficientBalance, InvalidAddress, TransferFailed

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Ethereum address pattern: 0x followed by 40 hex characters
ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def validate_address(address: object) -> bool:
    """Validate Ethereum address format.

    Parameters
    ----------
    address : object
        Address to validate.

    Returns
    -------
    bool
        True if ``address`` is a string in Ethereum address format.
    """
    return isinstance(address, str) and bool(ADDRESS_PATTERN.match(address))


def require_address(address: object, field_name: str | None = None) -> str:
    """Validate a non-zero address and return it checksummed.

    Raises
    ------
    InvalidAddress
        If the address is malformed or the zero address.
    """
    if not validate_address(address) or int(address, 16) == 0:
        raise InvalidAddress(address, field_name)
    return Web3.to_checksum_address(address)


@dataclass(frozen=True)
class Event:
    """A log record emitted by a contract."""

    name: str
    emitter: str
    args: dict[str, Any] = field(default_factory=dict)


class Contract:
    """Base class for contracts living on a :class:`Chain`.

    Subclasses keep their mutable state in plain instance attributes.
    Everything except the chain reference is captured by ``snapshot``.
    """

    _transient = frozenset({"chain"})

    def __init__(self, chain: "Chain"):
        self.chain = chain
        self.address = chain.register(self)

    @property
    def balance(self) -> int:
        """Native balance held by this contract, in wei."""
        return self.chain.balance_of(self.address)

    def receive(self, sender: str, value: int) -> None:
        """Handle a plain native-currency transfer.

        Contracts without a payable fallback reject value.
        """
        raise TransferFailed(self.address, value, "contract has no receive function")

    def emit(self, name: str, **args: Any) -> Event:
        return self.chain.emit(self.address, name, **args)

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(
            {key: value for key, value in vars(self).items() if key not in self._transient}
        )

    def restore(self, state: dict[str, Any]) -> None:
        attributes = vars(self)
        for key in list(attributes):
            if key not in self._transient:
                del attributes[key]
        attributes.update(state)


class Chain:
    """Native-currency ledger with transactional call scopes.

    Parameters
    ----------
    timestamp : int | None
        Block timestamp used for router deadlines. Defaults to now.
    """

    def __init__(self, timestamp: int | None = None):
        self._balances: dict[str, int] = {}
        self._contracts: dict[str, Contract] = {}
        self._rejecting: set[str] = set()
        self._account_count = 0
        self._depth = 0
        self.events: list[Event] = []
        self.timestamp = timestamp if timestamp is not None else int(time.time())

    def _derive_address(self) -> str:
        self._account_count += 1
        digest = Web3.keccak(text=f"pawdist-account-{self._account_count}")
        return Web3.to_checksum_address("0x" + bytes(digest[-20:]).hex())

    def new_account(self, balance: int = 0) -> str:
        """Create an externally owned account, optionally funded."""
        address = self._derive_address()
        self._balances[address] = balance
        return address

    def register(self, contract: Contract) -> str:
        """Assign an address to a contract and track it for snapshots."""
        address = self._derive_address()
        self._contracts[address] = contract
        self._balances.setdefault(address, 0)
        return address

    def contract_at(self, address: str) -> Contract | None:
        """Look up the contract deployed at ``address``, if any."""
        return self._contracts.get(Web3.to_checksum_address(address))

    def balance_of(self, address: str) -> int:
        """Native balance of ``address`` in wei."""
        return self._balances.get(Web3.to_checksum_address(address), 0)

    def fund(self, address: str, amount: int) -> None:
        """Credit ``amount`` wei to ``address`` out of thin air (genesis allocation)."""
        if amount < 0:
            raise ValueError("Funding amount must not be negative")
        address = Web3.to_checksum_address(address)
        self._balances[address] = self._balances.get(address, 0) + amount

    def reject_value(self, address: str, rejecting: bool = True) -> None:
        """Make an account refuse (or accept again) inbound value transfers."""
        address = Web3.to_checksum_address(address)
        if rejecting:
            self._rejecting.add(address)
        else:
            self._rejecting.discard(address)

    def advance(self, seconds: int) -> int:
        """Move the block timestamp forward."""
        self.timestamp += seconds
        return self.timestamp

    @contextmanager
    def transaction(self) -> Iterator["Chain"]:
        """Run a block of calls atomically.

        Nested scopes join the outermost one; only the outermost scope
        snapshots state and restores it on failure.
        """
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        balances = dict(self._balances)
        contracts = dict(self._contracts)
        rejecting = set(self._rejecting)
        event_count = len(self.events)
        states = {address: c.snapshot() for address, c in self._contracts.items()}

        self._depth = 1
        try:
            yield self
        except BaseException:
            dropped = len(self.events) - event_count
            self._balances = balances
            self._contracts = contracts
            self._rejecting = rejecting
            del self.events[event_count:]
            for address, contract in contracts.items():
                contract.restore(states[address])
            logger.debug("Transaction reverted", extra={"events_dropped": dropped})
            raise
        finally:
            self._depth = 0

    def transfer(self, sender: str, to: str, amount: int, *, notify: bool = True) -> None:
        """Move native currency between accounts.

        Parameters
        ----------
        sender : str
            Paying account.
        to : str
            Receiving account.
        amount : int
            Amount in wei.
        notify : bool
            Call the receiving contract's ``receive`` hook. Value attached to
            a payable call is moved with ``notify=False``.

        Raises
        ------
        InsufficientBalance
            If ``sender`` holds less than ``amount``.
        TransferFailed
            If the receiver rejects value.
        """
        if amount < 0:
            raise ValueError("Transfer amount must not be negative")
        sender = Web3.to_checksum_address(sender)
        to = Web3.to_checksum_address(to)

        with self.transaction():
            balance = self._balances.get(sender, 0)
            if balance < amount:
                raise InsufficientBalance(sender, balance, amount)
            if to in self._rejecting:
                raise TransferFailed(to, amount)

            self._balances[sender] = balance - amount
            self._balances[to] = self._balances.get(to, 0) + amount

            contract = self._contracts.get(to)
            if notify and contract is not None:
                contract.receive(sender, amount)

    def send(self, sender: str, to: str, amount: int) -> None:
        """Submit a plain value transfer as its own transaction."""
        self.transfer(sender, to, amount)

    def emit(self, emitter: str, name: str, **args: Any) -> Event:
        event = Event(name=name, emitter=emitter, args=args)
        self.events.append(event)
        return event

    def events_named(self, name: str, emitter: str | None = None) -> list[Event]:
        """Return emitted events matching ``name`` (and ``emitter`` if given)."""
        return [
            event
            for event in self.events
            if event.name == name and (emitter is None or event.emitter == emitter)
        ]
