"""Tax-proceeds Distributor.

Native currency pushed into the Distributor is split three ways on every
``distribute_eth`` call:

- One third is added to the token's liquidity pool, selling part of it for
  tokens where the held balance cannot pair it all; the pool shares go
  straight to the LP token holder
- One third goes to recipient 1
- One third goes to recipient 2

The owner may reconfigure the five references and sweep stranded native
currency with ``rescue_eth``. Every call runs in a single ledger transaction:
it either completes or leaves no trace.
"""

import functools
import logging
import time
from dataclasses import dataclass
from enum import Enum

from web3 import Web3

from pawdist.observability.metrics import (
    CONFIG_CHANGES,
    DISTRIBUTION_DURATION,
    DISTRIBUTIONS,
    LP_MINTED,
    NATIVE_BALANCE,
    NATIVE_DISTRIBUTED,
    RESCUES,
)

from .chain import ZERO_ADDRESS, Chain, Contract, require_address, validate_address
from .errors import (
    DistributorError,
    LiquidityAdditionFailed,
    RouterError,
    TokenError,
    Unauthorized,
)
from .router import Router, get_amount_out
from .token import MAX_UINT256, Token

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_SECONDS = 300

# Number of equal parts the native balance is split into
SHARE_COUNT = 3


class LiquidityStrategy(str, Enum):
    """How the liquidity third is turned into a pool deposit."""

    ADD_HELD_TOKENS = "add_held_tokens"  # pair held tokens, sell only what they cannot pair
    SWAP_HALF = "swap_half"  # sell half the third first, then pair


@dataclass(frozen=True)
class DistributorConfiguration:
    """Snapshot of the owner-controlled references."""

    token_address: str
    uniswap_router: str
    recipient1: str
    recipient2: str
    lp_token_holder: str


@dataclass(frozen=True)
class DistributionPlan:
    """Amounts staged before any external call is made."""

    balance: int
    share: int
    remainder: int
    token_balance: int


@dataclass
class DistributionResult:
    """Outcome of a completed distribution, all amounts in base units."""

    balance: int
    share: int
    remainder: int
    liquidity_eth_used: int
    swapped_eth: int
    token_bought: int
    token_used: int
    liquidity_minted: int
    lp_token_holder: str

    @property
    def liquidity_eth(self) -> int:
        """Native currency that entered the pool, sold or paired."""
        return self.swapped_eth + self.liquidity_eth_used

    @property
    def total_disbursed(self) -> int:
        """Native currency that left the Distributor for the three destinations."""
        return 2 * self.share + self.liquidity_eth


def native_to_sell(amount: int, token_balance: int, reserve_token: int, reserve_native: int) -> int:
    """Smallest part of ``amount`` to sell so the held tokens pair the rest.

    Selling native currency both buys tokens and moves the pool price towards
    the held tokens, so whether the rest pairs only improves as more is sold
    and the amount is found by bisection. Without a pool nothing is sold; if
    no part of ``amount`` buys a single token, all of it is returned and the
    swap is left to fail.
    """
    if reserve_token <= 0 or reserve_native <= 0:
        return 0

    def pairs_rest(sold: int) -> bool:
        bought = get_amount_out(sold, reserve_native, reserve_token) if sold else 0
        if sold and not bought:
            return False
        pairable = (token_balance + bought) * (reserve_native + sold) // (reserve_token - bought)
        return pairable >= amount - sold

    if pairs_rest(0):
        return 0
    low, high = 1, amount
    while low < high:
        mid = (low + high) // 2
        if pairs_rest(mid):
            high = mid
        else:
            low = mid + 1
    return low


def only_owner(method):
    """Reject callers other than the current owner, then run atomically."""

    @functools.wraps(method)
    def wrapper(self, *args, caller: str, **kwargs):
        if not validate_address(caller) or Web3.to_checksum_address(caller) != self.owner:
            raise Unauthorized(str(caller), method.__name__)
        with self.chain.transaction():
            return method(self, *args, **kwargs)

    return wrapper


class Distributor(Contract):
    """Owner-configured splitter recycling proceeds into liquidity.

    Parameters
    ----------
    chain : Chain
        Ledger the Distributor is deployed on.
    recipient1 : str
        First beneficiary.
    recipient2 : str
        Second beneficiary.
    token_address : str
        Token whose pool receives liquidity.
    lp_token_holder : str
        Account credited with minted pool shares.
    uniswap_router : str
        Router providing add-liquidity and swap.
    owner : str
        Initial owner (the deployer).
    strategy : LiquidityStrategy
        How the liquidity third is deposited.
    deadline_seconds : int
        Router deadline window relative to the current block timestamp.

    Raises
    ------
    InvalidAddress
        If any reference is malformed or the zero address.
    """

    def __init__(
        self,
        chain: Chain,
        recipient1: str,
        recipient2: str,
        token_address: str,
        lp_token_holder: str,
        uniswap_router: str,
        *,
        owner: str,
        strategy: LiquidityStrategy = LiquidityStrategy.SWAP_HALF,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
    ):
        if deadline_seconds <= 0:
            raise ValueError("Deadline window must be positive")
        owner = require_address(owner, "owner")
        recipient1 = require_address(recipient1, "recipient1")
        recipient2 = require_address(recipient2, "recipient2")
        token_address = require_address(token_address, "token_address")
        lp_token_holder = require_address(lp_token_holder, "lp_token_holder")
        uniswap_router = require_address(uniswap_router, "uniswap_router")

        super().__init__(chain)
        self.owner = owner
        self.recipient1 = recipient1
        self.recipient2 = recipient2
        self.token_address = token_address
        self.lp_token_holder = lp_token_holder
        self.uniswap_router = uniswap_router
        self.strategy = LiquidityStrategy(strategy)
        self.deadline_seconds = deadline_seconds

        self.emit("OwnershipTransferred", previous_owner=ZERO_ADDRESS, new_owner=self.owner)

    @property
    def configuration(self) -> DistributorConfiguration:
        return DistributorConfiguration(
            token_address=self.token_address,
            uniswap_router=self.uniswap_router,
            recipient1=self.recipient1,
            recipient2=self.recipient2,
            lp_token_holder=self.lp_token_holder,
        )

    def receive(self, sender: str, value: int) -> None:
        # Tax proceeds and any other deposit are accepted without bookkeeping
        logger.debug("Native currency received", extra={"sender": sender, "value": value})

    # Access control

    @only_owner
    def transfer_ownership(self, new_owner: str) -> None:
        new_owner = require_address(new_owner, "new_owner")
        previous = self.owner
        self.owner = new_owner
        self.emit("OwnershipTransferred", previous_owner=previous, new_owner=new_owner)
        CONFIG_CHANGES.labels(field="owner").inc()
        logger.info("Ownership transferred", extra={"previous": previous, "owner": new_owner})

    # Configuration

    @only_owner
    def update_recipients(self, recipient1: str, recipient2: str) -> None:
        self.recipient1 = require_address(recipient1, "recipient1")
        self.recipient2 = require_address(recipient2, "recipient2")
        self.emit("RecipientsUpdated", recipient1=self.recipient1, recipient2=self.recipient2)
        CONFIG_CHANGES.labels(field="recipients").inc()
        logger.info(
            "Recipients updated",
            extra={"recipient1": self.recipient1, "recipient2": self.recipient2},
        )

    @only_owner
    def update_token_address(self, token_address: str) -> None:
        self.token_address = require_address(token_address, "token_address")
        self.emit("TokenAddressUpdated", token_address=self.token_address)
        CONFIG_CHANGES.labels(field="token_address").inc()
        logger.info("Token address updated", extra={"token_address": self.token_address})

    @only_owner
    def update_uniswap_router(self, uniswap_router: str) -> None:
        self.uniswap_router = require_address(uniswap_router, "uniswap_router")
        self.emit("UniswapRouterUpdated", uniswap_router=self.uniswap_router)
        CONFIG_CHANGES.labels(field="uniswap_router").inc()
        logger.info("Router updated", extra={"uniswap_router": self.uniswap_router})

    @only_owner
    def update_lp_token_holder(self, lp_token_holder: str) -> None:
        self.lp_token_holder = require_address(lp_token_holder, "lp_token_holder")
        self.emit("LpTokenHolderUpdated", lp_token_holder=self.lp_token_holder)
        CONFIG_CHANGES.labels(field="lp_token_holder").inc()
        logger.info("LP token holder updated", extra={"lp_token_holder": self.lp_token_holder})

    # Distribution

    def _token(self) -> Token:
        contract = self.chain.contract_at(self.token_address)
        if not isinstance(contract, Token):
            raise LiquidityAdditionFailed(f"No token contract at {self.token_address}")
        return contract

    def _router(self) -> Router:
        contract = self.chain.contract_at(self.uniswap_router)
        if not isinstance(contract, Router):
            raise LiquidityAdditionFailed(f"No router contract at {self.uniswap_router}")
        return contract

    def token_balance(self) -> int:
        """Live token balance held by the Distributor."""
        return self._token().balance_of(self.address)

    def preview_distribution(self) -> DistributionPlan:
        """Stage the split of the current native balance without executing it."""
        balance = self.balance
        share = balance // SHARE_COUNT
        return DistributionPlan(
            balance=balance,
            share=share,
            remainder=balance - share * SHARE_COUNT,
            token_balance=self.token_balance(),
        )

    def _sell_native(self, router: Router, token: Token, amount: int, deadline: int) -> int:
        return router.swap_exact_eth_for_tokens(
            0, token.address, self.address, deadline, value=amount, caller=self.address
        )

    def _add_liquidity(self, plan: DistributionPlan) -> tuple[int, int, int, int, int]:
        token = self._token()
        router = self._router()
        deadline = self.chain.timestamp + self.deadline_seconds

        swapped_eth = 0
        token_bought = 0
        try:
            if self.strategy is LiquidityStrategy.SWAP_HALF and plan.share // 2:
                swapped_eth = plan.share // 2
                token_bought = self._sell_native(router, token, swapped_eth, deadline)

            reserve_token, reserve_native = router.get_reserves(token.address)
            top_up = native_to_sell(
                plan.share - swapped_eth,
                token.balance_of(self.address),
                reserve_token,
                reserve_native,
            )
            if top_up:
                token_bought += self._sell_native(router, token, top_up, deadline)
                swapped_eth += top_up

            token_amount = token.balance_of(self.address)
            if token.allowance(self.address, router.address) < token_amount:
                token.approve(router.address, MAX_UINT256, caller=self.address)

            token_used, eth_used, minted = router.add_liquidity_eth(
                token.address,
                token_amount,
                0,
                0,
                self.lp_token_holder,
                deadline,
                value=plan.share - swapped_eth,
                caller=self.address,
            )
        except (RouterError, TokenError) as e:
            raise LiquidityAdditionFailed(f"Router rejected liquidity addition: {e}") from e

        unpaired = plan.share - swapped_eth - eth_used
        if unpaired:
            raise LiquidityAdditionFailed(f"Router returned {unpaired} wei of the liquidity share")

        return swapped_eth, token_bought, token_used, eth_used, minted

    def distribute_eth(self, *, caller: str) -> DistributionResult:
        """Split the native balance between the pool and the two recipients.

        Parameters
        ----------
        caller : str
            Account triggering the distribution; anyone may call.

        Returns
        -------
        DistributionResult
            Amounts moved by the distribution.

        Raises
        ------
        LiquidityAdditionFailed
            If the router rejects a swap or the liquidity addition, or hands
            back part of the liquidity share.
        TransferFailed
            If a recipient rejects its share.
        """
        start = time.monotonic()
        try:
            with self.chain.transaction():
                plan = self.preview_distribution()
                swapped_eth, token_bought, token_used, eth_used, minted = self._add_liquidity(plan)

                self.chain.transfer(self.address, self.recipient1, plan.share)
                self.chain.transfer(self.address, self.recipient2, plan.share)

                result = DistributionResult(
                    balance=plan.balance,
                    share=plan.share,
                    remainder=plan.remainder,
                    liquidity_eth_used=eth_used,
                    swapped_eth=swapped_eth,
                    token_bought=token_bought,
                    token_used=token_used,
                    liquidity_minted=minted,
                    lp_token_holder=self.lp_token_holder,
                )
                self.emit(
                    "ETHDistributed",
                    caller=caller,
                    recipient1=self.recipient1,
                    recipient2=self.recipient2,
                    balance=plan.balance,
                    amount_each=plan.share,
                    liquidity_eth=result.liquidity_eth,
                    liquidity_eth_used=eth_used,
                    swapped_eth=swapped_eth,
                    token_used=token_used,
                    liquidity_minted=minted,
                    remainder=plan.remainder,
                )
        except DistributorError as e:
            DISTRIBUTIONS.labels(status=type(e).__name__).inc()
            logger.error(
                "Distribution failed",
                extra={"caller": caller, "error": str(e)},
                exc_info=True,
            )
            raise

        DISTRIBUTIONS.labels(status="success").inc()
        DISTRIBUTION_DURATION.observe(time.monotonic() - start)
        NATIVE_DISTRIBUTED.labels(destination="recipient1").inc(plan.share)
        NATIVE_DISTRIBUTED.labels(destination="recipient2").inc(plan.share)
        NATIVE_DISTRIBUTED.labels(destination="liquidity").inc(result.liquidity_eth)
        LP_MINTED.inc(minted)
        NATIVE_BALANCE.set(self.balance)

        logger.info(
            "ETH distributed",
            extra={
                "balance": plan.balance,
                "share": plan.share,
                "liquidity_minted": minted,
                "lp_token_holder": self.lp_token_holder,
                "swapped_eth": swapped_eth,
            },
        )
        return result

    # Rescue

    @only_owner
    def rescue_eth(self) -> int:
        """Sweep the whole native balance to the owner.

        Returns
        -------
        int
            Amount rescued in wei.
        """
        amount = self.balance
        self.chain.transfer(self.address, self.owner, amount)
        self.emit("ETHRescued", to=self.owner, amount=amount)

        RESCUES.inc()
        NATIVE_BALANCE.set(0)
        logger.warning("ETH rescued", extra={"to": self.owner, "amount": amount})
        return amount
