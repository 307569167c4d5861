"""ERC20-style token collaborator for the ledger model.

Only the surface the Distributor and router consume is implemented:
balances, transfers, and the allowance mechanism the router spends through.
Tax logic lives in the real token contract and is not modelled here.
"""

import logging

from web3 import Web3

from .chain import Chain, Contract, require_address
from .errors import TokenError

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1


class Token(Contract):
    """Fungible token with ERC20 transfer and allowance semantics.

    Parameters
    ----------
    chain : Chain
        Ledger the token lives on.
    holder : str
        Account credited with the initial supply.
    initial_supply : int
        Initial supply in base units.
    symbol : str
        Ticker symbol.
    decimals : int
        Display decimals.
    """

    def __init__(
        self,
        chain: Chain,
        holder: str,
        initial_supply: int,
        symbol: str = "PAWTH",
        decimals: int = 9,
    ):
        super().__init__(chain)
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = initial_supply
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}

        holder = require_address(holder, "holder")
        self._balances[holder] = initial_supply
        self.emit("Transfer", sender=None, to=holder, value=initial_supply)

    def balance_of(self, account: str) -> int:
        return self._balances.get(Web3.to_checksum_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        key = (Web3.to_checksum_address(owner), Web3.to_checksum_address(spender))
        return self._allowances.get(key, 0)

    def approve(self, spender: str, amount: int, *, caller: str) -> bool:
        """Set ``caller``'s allowance for ``spender``."""
        spender = require_address(spender, "spender")
        owner = Web3.to_checksum_address(caller)
        self._allowances[(owner, spender)] = amount
        self.emit("Approval", owner=owner, spender=spender, value=amount)
        return True

    def transfer(self, to: str, amount: int, *, caller: str) -> bool:
        """Move ``amount`` from ``caller`` to ``to``."""
        with self.chain.transaction():
            self._move(Web3.to_checksum_address(caller), to, amount)
        return True

    def transfer_from(self, sender: str, to: str, amount: int, *, caller: str) -> bool:
        """Spend ``caller``'s allowance to move ``amount`` from ``sender`` to ``to``.

        Raises
        ------
        TokenError
            If the allowance or the sender's balance is insufficient.
        """
        sender = Web3.to_checksum_address(sender)
        spender = Web3.to_checksum_address(caller)
        with self.chain.transaction():
            allowed = self._allowances.get((sender, spender), 0)
            if allowed < amount:
                raise TokenError(
                    f"Insufficient allowance: {spender} may spend {allowed} of {sender}, "
                    f"needs {amount}"
                )
            if allowed != MAX_UINT256:
                self._allowances[(sender, spender)] = allowed - amount
            self._move(sender, to, amount)
        return True

    def _move(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise TokenError("Transfer amount must not be negative")
        to = require_address(to, "to")
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise TokenError(f"Insufficient {self.symbol} balance: {balance} < {amount}")
        self._balances[sender] = balance - amount
        self._balances[to] = self._balances.get(to, 0) + amount
        self.emit("Transfer", sender=sender, to=to, value=amount)
