"""Ready-made ledger world for dry runs of the Distributor.

Deploys a token, a constant-product router with a seeded token/native pool,
and a Distributor owned by the deployer, mirroring a fresh deployment of the
real contracts.
"""

from dataclasses import dataclass

from web3 import Web3

from .chain import Chain
from .distributor import DEFAULT_DEADLINE_SECONDS, Distributor, LiquidityStrategy
from .router import ConstantProductRouter, Pair
from .token import MAX_UINT256, Token

TOKEN_DECIMALS = 9
DEFAULT_SUPPLY = 1_000_000_000 * 10**TOKEN_DECIMALS
DEFAULT_POOL_TOKENS = 1_000_000 * 10**TOKEN_DECIMALS
DEFAULT_POOL_NATIVE = Web3.to_wei(100, "ether")
DEPLOYER_FUNDS = Web3.to_wei(10_000, "ether")


@dataclass
class Sandbox:
    """Handles to every account and contract of a sandbox deployment."""

    chain: Chain
    deployer: str
    recipient1: str
    recipient2: str
    lp_token_holder: str
    token: Token
    router: ConstantProductRouter
    pair: Pair
    distributor: Distributor

    def deposit(self, amount: int, sender: str | None = None) -> None:
        """Push native currency into the Distributor (e.g. forwarded tax)."""
        sender = sender or self.deployer
        self.chain.send(sender, self.distributor.address, amount)

    def credit_tokens(self, amount: int) -> None:
        """Move held-token proceeds from the deployer to the Distributor."""
        self.token.transfer(self.distributor.address, amount, caller=self.deployer)


def deploy_sandbox(
    pool_native: int = DEFAULT_POOL_NATIVE,
    pool_tokens: int = DEFAULT_POOL_TOKENS,
    strategy: LiquidityStrategy = LiquidityStrategy.SWAP_HALF,
    deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
    timestamp: int | None = None,
) -> Sandbox:
    """Deploy and seed a sandbox world.

    Parameters
    ----------
    pool_native : int
        Native currency seeded into the pool, in wei.
    pool_tokens : int
        Tokens seeded into the pool, in base units.
    strategy : LiquidityStrategy
        Liquidity strategy for the Distributor.
    deadline_seconds : int
        Router deadline window for the Distributor.
    timestamp : int | None
        Initial block timestamp.

    Returns
    -------
    Sandbox
        The deployed world.
    """
    chain = Chain(timestamp=timestamp)
    deployer = chain.new_account(balance=DEPLOYER_FUNDS)
    recipient1 = chain.new_account()
    recipient2 = chain.new_account()
    lp_token_holder = chain.new_account()

    token = Token(chain, deployer, DEFAULT_SUPPLY, decimals=TOKEN_DECIMALS)
    router = ConstantProductRouter(chain)

    token.approve(router.address, MAX_UINT256, caller=deployer)
    router.add_liquidity_eth(
        token.address,
        pool_tokens,
        0,
        0,
        deployer,
        chain.timestamp + deadline_seconds,
        value=pool_native,
        caller=deployer,
    )

    distributor = Distributor(
        chain,
        recipient1,
        recipient2,
        token.address,
        lp_token_holder,
        router.address,
        owner=deployer,
        strategy=strategy,
        deadline_seconds=deadline_seconds,
    )

    return Sandbox(
        chain=chain,
        deployer=deployer,
        recipient1=recipient1,
        recipient2=recipient2,
        lp_token_holder=lp_token_holder,
        token=token,
        router=router,
        pair=router.get_pair(token.address),
        distributor=distributor,
    )
