"""Constant-product AMM collaborator (router + token/native pairs).

The arithmetic follows the Uniswap V2 / PancakeSwap contracts the
Distributor is deployed against:

- Swaps charge a 0.3% fee on the input amount
- The first mint issues ``sqrt(x * y) - MINIMUM_LIQUIDITY`` shares and locks
  the minimum to the zero address
- Later mints issue shares proportional to the smaller side of the deposit
- ``add_liquidity_eth`` only consumes the amounts matching the pool ratio and
  refunds unused native currency to the caller
"""

import logging
import math
from abc import ABC, abstractmethod

from web3 import Web3

from .chain import ZERO_ADDRESS, Chain, Contract, require_address
from .errors import RouterError
from .token import Token

logger = logging.getLogger(__name__)

MINIMUM_LIQUIDITY = 1000

# Swap fee as numerator over FEE_DENOMINATOR (0.3%)
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Amount of B worth ``amount_a`` of A at the current reserve ratio."""
    if amount_a <= 0:
        raise RouterError("INSUFFICIENT_AMOUNT")
    if reserve_a <= 0 or reserve_b <= 0:
        raise RouterError("INSUFFICIENT_LIQUIDITY")
    return amount_a * reserve_b // reserve_a


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Maximum output for ``amount_in`` after the swap fee."""
    if amount_in <= 0:
        raise RouterError("INSUFFICIENT_INPUT_AMOUNT")
    if reserve_in <= 0 or reserve_out <= 0:
        raise RouterError("INSUFFICIENT_LIQUIDITY")
    amount_in_with_fee = amount_in * FEE_NUMERATOR
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * FEE_DENOMINATOR + amount_in_with_fee
    return numerator // denominator


class Pair(Contract):
    """Token/native liquidity pool issuing pool shares.

    Native currency is held as the pair's own ledger balance; the token side
    is held in the token contract under the pair's address.
    """

    def __init__(self, chain: Chain, token: Token):
        super().__init__(chain)
        self.token = token.address
        self.reserve_token = 0
        self.reserve_native = 0
        self.total_supply = 0
        self._shares: dict[str, int] = {}

    def _token(self) -> Token:
        return self.chain.contract_at(self.token)

    def balance_of(self, account: str) -> int:
        """Pool shares held by ``account``."""
        return self._shares.get(Web3.to_checksum_address(account), 0)

    def get_reserves(self) -> tuple[int, int]:
        """Return ``(reserve_token, reserve_native)``."""
        return self.reserve_token, self.reserve_native

    def _mint_shares(self, to: str, amount: int) -> None:
        self._shares[to] = self._shares.get(to, 0) + amount
        self.total_supply += amount

    def _sync(self) -> None:
        self.reserve_token = self._token().balance_of(self.address)
        self.reserve_native = self.balance

    def mint(self, to: str) -> int:
        """Issue shares for tokens and native currency sent since the last sync.

        Raises
        ------
        RouterError
            If the deposit is too small to mint any shares.
        """
        to = require_address(to, "to")
        amount_token = self._token().balance_of(self.address) - self.reserve_token
        amount_native = self.balance - self.reserve_native

        if self.total_supply == 0:
            liquidity = math.isqrt(amount_token * amount_native) - MINIMUM_LIQUIDITY
            if liquidity > 0:
                self._mint_shares(ZERO_ADDRESS, MINIMUM_LIQUIDITY)
        else:
            liquidity = min(
                amount_token * self.total_supply // self.reserve_token,
                amount_native * self.total_supply // self.reserve_native,
            )
        if liquidity <= 0:
            raise RouterError("INSUFFICIENT_LIQUIDITY_MINTED")

        self._mint_shares(to, liquidity)
        self._sync()
        self.emit("Mint", to=to, amount_token=amount_token, amount_native=amount_native)
        return liquidity

    def swap(self, amount_token_out: int, amount_native_out: int, to: str) -> None:
        """Send out the requested amounts and enforce the fee-adjusted invariant."""
        if amount_token_out <= 0 and amount_native_out <= 0:
            raise RouterError("INSUFFICIENT_OUTPUT_AMOUNT")
        if amount_token_out >= self.reserve_token or amount_native_out >= self.reserve_native:
            raise RouterError("INSUFFICIENT_LIQUIDITY")

        with self.chain.transaction():
            self._settle_swap(amount_token_out, amount_native_out, to)

    def _settle_swap(self, amount_token_out: int, amount_native_out: int, to: str) -> None:
        if amount_token_out:
            self._token().transfer(to, amount_token_out, caller=self.address)
        if amount_native_out:
            self.chain.transfer(self.address, to, amount_native_out)

        balance_token = self._token().balance_of(self.address)
        balance_native = self.balance
        token_in = max(balance_token - (self.reserve_token - amount_token_out), 0)
        native_in = max(balance_native - (self.reserve_native - amount_native_out), 0)
        if token_in <= 0 and native_in <= 0:
            raise RouterError("INSUFFICIENT_INPUT_AMOUNT")

        fee_gap = FEE_DENOMINATOR - FEE_NUMERATOR
        adjusted_token = balance_token * FEE_DENOMINATOR - token_in * fee_gap
        adjusted_native = balance_native * FEE_DENOMINATOR - native_in * fee_gap
        if adjusted_token * adjusted_native < (
            self.reserve_token * self.reserve_native * FEE_DENOMINATOR**2
        ):
            raise RouterError("K")

        self._sync()
        self.emit(
            "Swap",
            to=to,
            token_in=token_in,
            native_in=native_in,
            token_out=amount_token_out,
            native_out=amount_native_out,
        )


class Router(ABC):
    """Liquidity and swap capability consumed by the Distributor."""

    address: str

    @abstractmethod
    def get_reserves(self, token: str) -> tuple[int, int]:
        """Return ``(reserve_token, reserve_native)`` of the pool for ``token``.

        Both are zero while no pool exists.
        """
        ...

    @abstractmethod
    def add_liquidity_eth(
        self,
        token: str,
        amount_token_desired: int,
        amount_token_min: int,
        amount_eth_min: int,
        to: str,
        deadline: int,
        *,
        value: int,
        caller: str,
    ) -> tuple[int, int, int]:
        """Pair tokens with native currency and mint pool shares to ``to``.

        Returns
        -------
        tuple[int, int, int]
            ``(amount_token, amount_eth, liquidity)`` actually consumed/minted.
        """
        ...

    @abstractmethod
    def swap_exact_eth_for_tokens(
        self,
        amount_out_min: int,
        token: str,
        to: str,
        deadline: int,
        *,
        value: int,
        caller: str,
    ) -> int:
        """Swap all of ``value`` for tokens delivered to ``to``."""
        ...


class ConstantProductRouter(Contract, Router):
    """Router creating and trading against token/native :class:`Pair` pools."""

    def __init__(self, chain: Chain):
        super().__init__(chain)
        self._pairs: dict[str, str] = {}

    def receive(self, sender: str, value: int) -> None:
        # Only pools may send native currency back to the router
        if Web3.to_checksum_address(sender) not in self._pairs.values():
            super().receive(sender, value)

    def get_pair(self, token: str) -> Pair | None:
        """Return the pool for ``token``, if one exists."""
        pair_address = self._pairs.get(Web3.to_checksum_address(token))
        if pair_address is None:
            return None
        return self.chain.contract_at(pair_address)

    def get_reserves(self, token: str) -> tuple[int, int]:
        pair = self.get_pair(token)
        if pair is None:
            return 0, 0
        return pair.get_reserves()

    def _get_or_create_pair(self, token: str) -> Pair:
        pair = self.get_pair(token)
        if pair is None:
            token_contract = self._resolve_token(token)
            pair = Pair(self.chain, token_contract)
            self._pairs[token_contract.address] = pair.address
            self.emit("PairCreated", token=token_contract.address, pair=pair.address)
        return pair

    def _resolve_token(self, token: str) -> Token:
        token = require_address(token, "token")
        contract = self.chain.contract_at(token)
        if not isinstance(contract, Token):
            raise RouterError(f"No token contract at {token}")
        return contract

    def _ensure(self, deadline: int) -> None:
        if deadline < self.chain.timestamp:
            raise RouterError("EXPIRED")

    def _optimal_amounts(
        self,
        pair: Pair,
        amount_token_desired: int,
        amount_eth_desired: int,
        amount_token_min: int,
        amount_eth_min: int,
    ) -> tuple[int, int]:
        reserve_token, reserve_native = pair.get_reserves()
        if reserve_token == 0 and reserve_native == 0:
            return amount_token_desired, amount_eth_desired

        token_optimal = quote(amount_eth_desired, reserve_native, reserve_token)
        if token_optimal <= amount_token_desired:
            if token_optimal < amount_token_min:
                raise RouterError("INSUFFICIENT_TOKEN_AMOUNT")
            return token_optimal, amount_eth_desired

        eth_optimal = quote(amount_token_desired, reserve_token, reserve_native)
        if eth_optimal < amount_eth_min:
            raise RouterError("INSUFFICIENT_ETH_AMOUNT")
        return amount_token_desired, eth_optimal

    def add_liquidity_eth(
        self,
        token: str,
        amount_token_desired: int,
        amount_token_min: int,
        amount_eth_min: int,
        to: str,
        deadline: int,
        *,
        value: int,
        caller: str,
    ) -> tuple[int, int, int]:
        with self.chain.transaction():
            self._ensure(deadline)
            self.chain.transfer(caller, self.address, value, notify=False)

            pair = self._get_or_create_pair(token)
            amount_token, amount_eth = self._optimal_amounts(
                pair, amount_token_desired, value, amount_token_min, amount_eth_min
            )

            token_contract = self._resolve_token(token)
            token_contract.transfer_from(caller, pair.address, amount_token, caller=self.address)
            self.chain.transfer(self.address, pair.address, amount_eth, notify=False)
            liquidity = pair.mint(to)

            refund = value - amount_eth
            if refund > 0:
                self.chain.transfer(self.address, caller, refund)

        logger.debug(
            "Liquidity added",
            extra={
                "pair": pair.address,
                "amount_token": amount_token,
                "amount_eth": amount_eth,
                "liquidity": liquidity,
                "refund": refund,
            },
        )
        return amount_token, amount_eth, liquidity

    def swap_exact_eth_for_tokens(
        self,
        amount_out_min: int,
        token: str,
        to: str,
        deadline: int,
        *,
        value: int,
        caller: str,
    ) -> int:
        with self.chain.transaction():
            self._ensure(deadline)
            pair = self.get_pair(token)
            if pair is None:
                raise RouterError("PAIR_NOT_FOUND")

            reserve_token, reserve_native = pair.get_reserves()
            amount_out = get_amount_out(value, reserve_native, reserve_token)
            if amount_out < amount_out_min:
                raise RouterError("INSUFFICIENT_OUTPUT_AMOUNT")

            self.chain.transfer(caller, pair.address, value, notify=False)
            pair.swap(amount_out, 0, to)
        return amount_out
