"""Tests for the Distributor engine, access control and rescue."""

import pytest
from web3 import Web3

from pawdist.core.chain import ZERO_ADDRESS
from pawdist.core.distributor import (
    DistributionResult,
    Distributor,
    DistributorConfiguration,
    LiquidityStrategy,
    native_to_sell,
)
from pawdist.core.errors import (
    InvalidAddress,
    LiquidityAdditionFailed,
    TransferFailed,
    Unauthorized,
)
from pawdist.core.router import ConstantProductRouter, get_amount_out, quote
from pawdist.core.sandbox import TOKEN_DECIMALS, deploy_sandbox
from pawdist.core.token import MAX_UINT256

ETHER = Web3.to_wei(1, "ether")
TOKEN_UNIT = 10**TOKEN_DECIMALS


class HalfPairingRouter(ConstantProductRouter):
    """Router that only ever pairs half the native currency it is sent."""

    def _optimal_amounts(self, pair, amount_token_desired, amount_eth_desired, *minimums):
        return super()._optimal_amounts(
            pair, amount_token_desired, amount_eth_desired // 2, *minimums
        )


class TestDeployment:
    """Tests for Distributor construction."""

    def test_sets_recipients(self, sandbox):
        """Constructor stores both recipients."""
        assert sandbox.distributor.recipient1 == sandbox.recipient1
        assert sandbox.distributor.recipient2 == sandbox.recipient2

    def test_sets_references(self, sandbox):
        """Constructor stores token, router and LP holder."""
        assert sandbox.distributor.configuration == DistributorConfiguration(
            token_address=sandbox.token.address,
            uniswap_router=sandbox.router.address,
            recipient1=sandbox.recipient1,
            recipient2=sandbox.recipient2,
            lp_token_holder=sandbox.lp_token_holder,
        )

    def test_owner_is_deployer(self, sandbox):
        """Deployer becomes the owner and the transfer is logged."""
        assert sandbox.distributor.owner == sandbox.deployer
        events = sandbox.chain.events_named("OwnershipTransferred", sandbox.distributor.address)
        assert events[0].args == {"previous_owner": ZERO_ADDRESS, "new_owner": sandbox.deployer}

    def test_rejects_zero_recipient(self, sandbox):
        """Zero address in the constructor raises InvalidAddress."""
        with pytest.raises(InvalidAddress):
            Distributor(
                sandbox.chain,
                ZERO_ADDRESS,
                sandbox.recipient2,
                sandbox.token.address,
                sandbox.lp_token_holder,
                sandbox.router.address,
                owner=sandbox.deployer,
            )

    def test_rejects_non_positive_deadline(self, sandbox):
        """Deadline window must be positive."""
        with pytest.raises(ValueError):
            Distributor(
                sandbox.chain,
                sandbox.recipient1,
                sandbox.recipient2,
                sandbox.token.address,
                sandbox.lp_token_holder,
                sandbox.router.address,
                owner=sandbox.deployer,
                deadline_seconds=0,
            )

    def test_accepts_deposits(self, sandbox):
        """Plain value transfers increase the native balance."""
        sandbox.deposit(2 * ETHER)
        sandbox.deposit(1 * ETHER)

        assert sandbox.distributor.balance == 3 * ETHER


class TestOwnerOnly:
    """Tests for owner-gated configuration."""

    def test_owner_updates_recipients(self, sandbox):
        """Owner can replace both recipients."""
        new_recipient = sandbox.chain.new_account()

        sandbox.distributor.update_recipients(
            sandbox.recipient1, new_recipient, caller=sandbox.deployer
        )

        assert sandbox.distributor.recipient1 == sandbox.recipient1
        assert sandbox.distributor.recipient2 == new_recipient
        event = sandbox.chain.events_named("RecipientsUpdated")[-1]
        assert event.args == {"recipient1": sandbox.recipient1, "recipient2": new_recipient}

    def test_non_owner_cannot_update_recipients(self, sandbox):
        """Non-owner update fails with Unauthorized and changes nothing."""
        new_recipient = sandbox.chain.new_account()

        with pytest.raises(Unauthorized):
            sandbox.distributor.update_recipients(
                sandbox.recipient1, new_recipient, caller=sandbox.recipient1
            )

        assert sandbox.distributor.recipient2 == sandbox.recipient2
        assert sandbox.chain.events_named("RecipientsUpdated") == []

    def test_duplicate_recipients_allowed(self, sandbox):
        """Recipients may be the same account."""
        sandbox.distributor.update_recipients(
            sandbox.recipient1, sandbox.recipient1, caller=sandbox.deployer
        )

        assert sandbox.distributor.recipient2 == sandbox.recipient1

    @pytest.mark.parametrize(
        "method,field",
        [
            ("update_token_address", "token_address"),
            ("update_uniswap_router", "uniswap_router"),
            ("update_lp_token_holder", "lp_token_holder"),
        ],
    )
    def test_owner_updates_reference(self, sandbox, method, field):
        """Each setter overwrites exactly its field."""
        new_address = sandbox.chain.new_account()
        before = sandbox.distributor.configuration

        getattr(sandbox.distributor, method)(new_address, caller=sandbox.deployer)

        after = sandbox.distributor.configuration
        assert getattr(after, field) == new_address
        for other in ("token_address", "uniswap_router", "recipient1", "recipient2"):
            if other != field:
                assert getattr(after, other) == getattr(before, other)

    @pytest.mark.parametrize(
        "method",
        ["update_token_address", "update_uniswap_router", "update_lp_token_holder"],
    )
    def test_non_owner_cannot_update_reference(self, sandbox, method):
        """Setters reject non-owners with Unauthorized."""
        before = sandbox.distributor.configuration
        intruder = sandbox.chain.new_account()

        with pytest.raises(Unauthorized):
            getattr(sandbox.distributor, method)(intruder, caller=intruder)

        assert sandbox.distributor.configuration == before

    @pytest.mark.parametrize(
        "method",
        ["update_token_address", "update_uniswap_router", "update_lp_token_holder"],
    )
    def test_setter_rejects_zero_address(self, sandbox, method):
        """Setters reject the zero address."""
        before = sandbox.distributor.configuration

        with pytest.raises(InvalidAddress):
            getattr(sandbox.distributor, method)(ZERO_ADDRESS, caller=sandbox.deployer)

        assert sandbox.distributor.configuration == before

    def test_setter_rejects_malformed_address(self, sandbox):
        """Malformed addresses raise InvalidAddress."""
        with pytest.raises(InvalidAddress):
            sandbox.distributor.update_recipients("0x123", sandbox.recipient2, caller=sandbox.deployer)

    def test_failed_recipient_update_is_atomic(self, sandbox):
        """A bad second recipient leaves the first one untouched."""
        new_recipient = sandbox.chain.new_account()

        with pytest.raises(InvalidAddress):
            sandbox.distributor.update_recipients(
                new_recipient, ZERO_ADDRESS, caller=sandbox.deployer
            )

        assert sandbox.distributor.recipient1 == sandbox.recipient1

    def test_malformed_caller_is_unauthorized(self, sandbox):
        """Garbage caller strings are rejected as unauthorized."""
        with pytest.raises(Unauthorized):
            sandbox.distributor.rescue_eth(caller="not-an-address")


class TestTransferOwnership:
    """Tests for ownership transfer."""

    def test_transfer_ownership(self, sandbox):
        """New owner gains and old owner loses configuration rights."""
        new_owner = sandbox.chain.new_account()

        sandbox.distributor.transfer_ownership(new_owner, caller=sandbox.deployer)

        assert sandbox.distributor.owner == new_owner
        sandbox.distributor.update_lp_token_holder(new_owner, caller=new_owner)
        with pytest.raises(Unauthorized):
            sandbox.distributor.update_lp_token_holder(sandbox.deployer, caller=sandbox.deployer)

    def test_transfer_ownership_emits_event(self, sandbox):
        """Ownership transfer is logged with both owners."""
        new_owner = sandbox.chain.new_account()

        sandbox.distributor.transfer_ownership(new_owner, caller=sandbox.deployer)

        event = sandbox.chain.events_named("OwnershipTransferred")[-1]
        assert event.args == {"previous_owner": sandbox.deployer, "new_owner": new_owner}

    def test_transfer_to_zero_address(self, sandbox):
        """Zero new owner raises InvalidAddress."""
        with pytest.raises(InvalidAddress):
            sandbox.distributor.transfer_ownership(ZERO_ADDRESS, caller=sandbox.deployer)

        assert sandbox.distributor.owner == sandbox.deployer

    def test_non_owner_cannot_transfer(self, sandbox):
        """Non-owner transfer raises Unauthorized."""
        with pytest.raises(Unauthorized):
            sandbox.distributor.transfer_ownership(sandbox.recipient1, caller=sandbox.recipient1)

        assert sandbox.distributor.owner == sandbox.deployer


class TestDistributeETH:
    """Tests for distribute_eth."""

    def test_default_distribution_without_held_tokens(self, sandbox):
        """9 units and no tokens: +3 to each recipient and exactly +3 to the pool."""
        sandbox.deposit(9 * ETHER)
        _, native_before = sandbox.pair.get_reserves()
        shares_before = sandbox.pair.balance_of(sandbox.lp_token_holder)

        result = sandbox.distributor.distribute_eth(caller=sandbox.deployer)

        assert sandbox.chain.balance_of(sandbox.recipient1) == 3 * ETHER
        assert sandbox.chain.balance_of(sandbox.recipient2) == 3 * ETHER
        _, native_after = sandbox.pair.get_reserves()
        assert native_after - native_before == 3 * ETHER
        assert sandbox.pair.balance_of(sandbox.lp_token_holder) > shares_before
        assert sandbox.distributor.balance == 0
        assert result.total_disbursed == 9 * ETHER

    def test_total_disbursed_counts_what_moved(self):
        """The disbursed total is built from the amounts actually sent."""
        result = DistributionResult(
            balance=10,
            share=3,
            remainder=1,
            liquidity_eth_used=1,
            swapped_eth=1,
            token_bought=5,
            token_used=5,
            liquidity_minted=2,
            lp_token_holder=ZERO_ADDRESS,
        )

        assert result.liquidity_eth == 2
        assert result.total_disbursed == 8

    def test_distributes_nine_units(self, funded):
        """9 units: each recipient +3, pool native reserve +3, LP holder gains shares."""
        _, native_before = funded.pair.get_reserves()

        result = funded.distributor.distribute_eth(caller=funded.deployer)

        assert funded.chain.balance_of(funded.recipient1) == 3 * ETHER
        assert funded.chain.balance_of(funded.recipient2) == 3 * ETHER
        _, native_after = funded.pair.get_reserves()
        assert native_after - native_before == 3 * ETHER
        assert funded.pair.balance_of(funded.lp_token_holder) > 0
        assert result.liquidity_minted == funded.pair.balance_of(funded.lp_token_holder)

    def test_result_amounts(self, funded):
        """Result reports the staged split and what the router consumed."""
        result = funded.distributor.distribute_eth(caller=funded.deployer)

        assert isinstance(result, DistributionResult)
        assert result.balance == 9 * ETHER
        assert result.share == 3 * ETHER
        assert result.remainder == 0
        assert result.swapped_eth == 0
        assert result.liquidity_eth_used == 3 * ETHER
        # Pool ratio is 1M tokens per 100 native units
        assert result.token_used == 30_000 * TOKEN_UNIT
        assert result.total_disbursed == 9 * ETHER

    def test_token_balance_decreases_by_consumed_amount(self, funded):
        """Only the ratio-matching token amount leaves the Distributor."""
        result = funded.distributor.distribute_eth(caller=funded.deployer)

        assert funded.distributor.token_balance() == 100_000 * TOKEN_UNIT - result.token_used
        assert funded.pair.balance_of(funded.distributor.address) == 0

    def test_native_balance_emptied(self, funded):
        """Nothing is retained when the balance divides by three."""
        funded.distributor.distribute_eth(caller=funded.deployer)

        assert funded.distributor.balance == 0

    def test_anyone_can_distribute(self, funded):
        """distribute_eth is not owner-gated."""
        stranger = funded.chain.new_account()

        funded.distributor.distribute_eth(caller=stranger)

        assert funded.chain.balance_of(funded.recipient1) == 3 * ETHER

    def test_emits_distribution_event(self, funded):
        """ETHDistributed records the amounts sent."""
        funded.distributor.distribute_eth(caller=funded.deployer)

        event = funded.chain.events_named("ETHDistributed", funded.distributor.address)[-1]
        assert event.args["amount_each"] == 3 * ETHER
        assert event.args["liquidity_eth"] == 3 * ETHER
        assert event.args["remainder"] == 0
        assert event.args["recipient1"] == funded.recipient1

    def test_remainder_stays_in_distributor(self, sandbox):
        """The balance mod 3 remainder is retained for the next call."""
        sandbox.deposit(10 * ETHER + 1)
        sandbox.credit_tokens(100_000 * TOKEN_UNIT)

        result = sandbox.distributor.distribute_eth(caller=sandbox.deployer)

        assert result.share == 3_333_333_333_333_333_333
        assert result.remainder == 2
        assert sandbox.distributor.balance == 2

    def test_remainder_swept_next_time(self, sandbox):
        """A retained remainder is part of the next distribution."""
        sandbox.credit_tokens(100_000 * TOKEN_UNIT)
        sandbox.deposit(10 * ETHER + 1)
        sandbox.distributor.distribute_eth(caller=sandbox.deployer)

        sandbox.deposit(10 * ETHER + 1)
        result = sandbox.distributor.distribute_eth(caller=sandbox.deployer)

        assert result.balance == 10 * ETHER + 3
        assert result.remainder == 0
        assert sandbox.distributor.balance == 0

    @pytest.mark.parametrize(
        "strategy", [LiquidityStrategy.SWAP_HALF, LiquidityStrategy.ADD_HELD_TOKENS]
    )
    @pytest.mark.parametrize(
        "tokens", [0, 1, 1 * TOKEN_UNIT, 10_000 * TOKEN_UNIT, 100_000 * TOKEN_UNIT]
    )
    @pytest.mark.parametrize(
        "balance",
        [3 * ETHER, 9 * ETHER + 1, 10 * ETHER + 2, 7_777_777_777_777_777_777],
    )
    def test_conservation_and_equal_split(self, strategy, tokens, balance):
        """Recipients and the pool account for the whole balance but the remainder."""
        sb = deploy_sandbox(strategy=strategy, timestamp=1_700_000_000)
        sb.deposit(balance)
        if tokens:
            sb.credit_tokens(tokens)
        _, pool_before = sb.pair.get_reserves()

        result = sb.distributor.distribute_eth(caller=sb.deployer)

        received1 = sb.chain.balance_of(sb.recipient1)
        received2 = sb.chain.balance_of(sb.recipient2)
        _, pool_after = sb.pair.get_reserves()
        assert received1 == received2 == result.share
        assert pool_after - pool_before == result.share
        assert received1 + received2 + (pool_after - pool_before) == balance - result.remainder
        assert sb.distributor.balance == result.remainder <= 2
        assert result.total_disbursed == balance - result.remainder

    def test_new_lp_holder_receives_shares(self, funded):
        """After update_lp_token_holder, shares go to the new holder only."""
        new_holder = funded.chain.new_account()
        funded.distributor.update_lp_token_holder(new_holder, caller=funded.deployer)

        funded.distributor.distribute_eth(caller=funded.deployer)

        assert funded.pair.balance_of(new_holder) > 0
        assert funded.pair.balance_of(funded.lp_token_holder) == 0

    def test_duplicate_recipients_receive_both_shares(self, funded):
        """A recipient configured twice receives two shares."""
        funded.distributor.update_recipients(
            funded.recipient1, funded.recipient1, caller=funded.deployer
        )

        funded.distributor.distribute_eth(caller=funded.deployer)

        assert funded.chain.balance_of(funded.recipient1) == 6 * ETHER

    def test_short_tokens_sell_native_first(self, held_sandbox):
        """Native currency the held tokens cannot pair is sold, not kept."""
        held_sandbox.deposit(9 * ETHER)
        # Enough tokens for only one native unit at the 1M:100 ratio
        held_sandbox.credit_tokens(10_000 * TOKEN_UNIT)
        _, native_before = held_sandbox.pair.get_reserves()

        result = held_sandbox.distributor.distribute_eth(caller=held_sandbox.deployer)

        assert 0 < result.swapped_eth < 2 * ETHER
        assert result.swapped_eth + result.liquidity_eth_used == 3 * ETHER
        assert result.total_disbursed == 9 * ETHER
        assert held_sandbox.distributor.balance == 0
        _, native_after = held_sandbox.pair.get_reserves()
        assert native_after - native_before == 3 * ETHER
        assert held_sandbox.chain.balance_of(held_sandbox.recipient1) == 3 * ETHER

    def test_no_tokens_held_strategy_still_adds_liquidity(self, held_sandbox):
        """With nothing held, the held-token strategy buys what it pairs."""
        held_sandbox.deposit(9 * ETHER)

        result = held_sandbox.distributor.distribute_eth(caller=held_sandbox.deployer)

        assert result.swapped_eth > 0
        assert result.liquidity_minted > 0
        assert held_sandbox.distributor.balance == 0

    def test_approves_router_once(self, funded):
        """The router allowance is set on first use and reused afterwards."""
        funded.distributor.distribute_eth(caller=funded.deployer)
        approvals = funded.chain.events_named("Approval", funded.token.address)

        funded.deposit(3 * ETHER)
        funded.distributor.distribute_eth(caller=funded.deployer)

        assert funded.chain.events_named("Approval", funded.token.address) == approvals


class TestDistributeETHFailures:
    """Tests for all-or-nothing failure handling."""

    def _state(self, sandbox):
        return (
            sandbox.distributor.balance,
            sandbox.distributor.token_balance(),
            sandbox.chain.balance_of(sandbox.recipient1),
            sandbox.chain.balance_of(sandbox.recipient2),
            sandbox.pair.get_reserves(),
            sandbox.pair.balance_of(sandbox.lp_token_holder),
            len(sandbox.chain.events),
        )

    def test_rejecting_recipient_reverts_everything(self, funded):
        """A recipient refusing value aborts liquidity and the other payment too."""
        funded.chain.reject_value(funded.recipient2)
        before = self._state(funded)

        with pytest.raises(TransferFailed):
            funded.distributor.distribute_eth(caller=funded.deployer)

        assert self._state(funded) == before

    def test_router_handing_back_native_reverts(self, funded):
        """A router returning part of the liquidity third aborts the whole call."""
        router = HalfPairingRouter(funded.chain)
        funded.token.approve(router.address, MAX_UINT256, caller=funded.deployer)
        router.add_liquidity_eth(
            funded.token.address,
            1_000_000 * TOKEN_UNIT,
            0,
            0,
            funded.deployer,
            funded.chain.timestamp + 60,
            value=100 * ETHER,
            caller=funded.deployer,
        )
        funded.distributor.update_uniswap_router(router.address, caller=funded.deployer)
        reserves = router.get_reserves(funded.token.address)
        before = self._state(funded)

        with pytest.raises(LiquidityAdditionFailed, match="returned"):
            funded.distributor.distribute_eth(caller=funded.deployer)

        assert self._state(funded) == before
        assert router.get_reserves(funded.token.address) == reserves

    def test_zero_native_balance_fails(self, sandbox):
        """Nothing to distribute is a liquidity failure."""
        sandbox.credit_tokens(100_000 * TOKEN_UNIT)

        with pytest.raises(LiquidityAdditionFailed):
            sandbox.distributor.distribute_eth(caller=sandbox.deployer)

    def test_token_address_not_a_token(self, funded):
        """A token reference without a contract fails as a liquidity error."""
        funded.distributor.update_token_address(funded.recipient1, caller=funded.deployer)

        with pytest.raises(LiquidityAdditionFailed):
            funded.distributor.distribute_eth(caller=funded.deployer)

        assert funded.distributor.balance == 9 * ETHER

    def test_router_address_not_a_router(self, funded):
        """A router reference without a contract fails as a liquidity error."""
        funded.distributor.update_uniswap_router(funded.recipient1, caller=funded.deployer)
        before = self._state(funded)

        with pytest.raises(LiquidityAdditionFailed):
            funded.distributor.distribute_eth(caller=funded.deployer)

        assert self._state(funded) == before

    def test_failure_chains_router_error(self, sandbox):
        """The router's reason is kept as the exception cause."""
        # A one-wei third buys no tokens
        sandbox.deposit(3)

        with pytest.raises(LiquidityAdditionFailed) as exc_info:
            sandbox.distributor.distribute_eth(caller=sandbox.deployer)

        assert "INSUFFICIENT_OUTPUT_AMOUNT" in str(exc_info.value)
        assert exc_info.value.__cause__ is not None

    def test_distribution_works_after_failure(self, funded):
        """A reverted call leaves the Distributor usable."""
        funded.chain.reject_value(funded.recipient1)
        with pytest.raises(TransferFailed):
            funded.distributor.distribute_eth(caller=funded.deployer)

        funded.chain.reject_value(funded.recipient1, rejecting=False)
        funded.distributor.distribute_eth(caller=funded.deployer)

        assert funded.chain.balance_of(funded.recipient1) == 3 * ETHER


class TestSwapHalfStrategy:
    """Tests for the swap-before-liquidity strategy."""

    def test_swaps_half_then_adds_liquidity(self, sandbox):
        """Half the liquidity third buys tokens, the other half is paired."""
        sandbox.deposit(9 * ETHER)
        _, native_before = sandbox.pair.get_reserves()

        result = sandbox.distributor.distribute_eth(caller=sandbox.deployer)

        assert sandbox.distributor.strategy is LiquidityStrategy.SWAP_HALF
        assert result.swapped_eth == 3 * ETHER // 2
        assert result.token_bought > 0
        assert result.liquidity_eth_used == 3 * ETHER // 2
        _, native_after = sandbox.pair.get_reserves()
        assert native_after - native_before == 3 * ETHER

    def test_recipients_paid_in_full(self, sandbox):
        """Recipients receive a full third each under the swap strategy."""
        sandbox.deposit(9 * ETHER)

        sandbox.distributor.distribute_eth(caller=sandbox.deployer)

        assert sandbox.chain.balance_of(sandbox.recipient1) == 3 * ETHER
        assert sandbox.chain.balance_of(sandbox.recipient2) == 3 * ETHER
        assert sandbox.pair.balance_of(sandbox.lp_token_holder) > 0
        assert sandbox.distributor.balance == 0

    def test_leftover_tokens_stay(self, sandbox):
        """Bought tokens not matched by the pool ratio remain held."""
        sandbox.deposit(9 * ETHER)

        result = sandbox.distributor.distribute_eth(caller=sandbox.deployer)

        assert sandbox.distributor.token_balance() == result.token_bought - result.token_used
        assert result.token_used <= result.token_bought

    def test_swap_failure_reverts(self, sandbox):
        """A one-wei third cannot be swapped; nothing moves."""
        sandbox.deposit(3)

        with pytest.raises(LiquidityAdditionFailed):
            sandbox.distributor.distribute_eth(caller=sandbox.deployer)

        assert sandbox.distributor.balance == 3


class TestNativeToSell:
    """Tests for sizing the native sale ahead of the liquidity addition."""

    POOL_TOKENS = 1_000_000 * TOKEN_UNIT
    POOL_NATIVE = 100 * ETHER

    def _pairs_rest(self, amount, tokens, sold):
        bought = get_amount_out(sold, self.POOL_NATIVE, self.POOL_TOKENS)
        return quote(tokens + bought, self.POOL_TOKENS - bought, self.POOL_NATIVE + sold) >= (
            amount - sold
        )

    def test_enough_tokens_sells_nothing(self):
        sold = native_to_sell(3 * ETHER, 100_000 * TOKEN_UNIT, self.POOL_TOKENS, self.POOL_NATIVE)

        assert sold == 0

    def test_no_pool_sells_nothing(self):
        assert native_to_sell(3 * ETHER, 0, 0, 0) == 0

    @pytest.mark.parametrize("tokens", [0, 1, 10_000 * TOKEN_UNIT])
    def test_sells_smallest_sufficient_amount(self, tokens):
        """The returned sale pairs the rest and one wei less would not."""
        sold = native_to_sell(3 * ETHER, tokens, self.POOL_TOKENS, self.POOL_NATIVE)

        assert 0 < sold < 3 * ETHER
        assert self._pairs_rest(3 * ETHER, tokens, sold)
        assert not self._pairs_rest(3 * ETHER, tokens, sold - 1)

    def test_dust_returns_whole_amount(self):
        """An amount that buys no token at all is returned whole."""
        assert native_to_sell(1, 0, self.POOL_TOKENS, self.POOL_NATIVE) == 1


class TestPreview:
    """Tests for preview_distribution."""

    def test_preview_does_not_move_funds(self, funded):
        """Preview stages amounts without side effects."""
        plan = funded.distributor.preview_distribution()

        assert plan.balance == 9 * ETHER
        assert plan.share == 3 * ETHER
        assert plan.remainder == 0
        assert plan.token_balance == 100_000 * TOKEN_UNIT
        assert funded.distributor.balance == 9 * ETHER


class TestRescueETH:
    """Tests for rescue_eth."""

    def test_owner_rescues_balance(self, sandbox):
        """Owner receives the whole native balance."""
        sandbox.deposit(9 * ETHER)
        owner_before = sandbox.chain.balance_of(sandbox.deployer)

        rescued = sandbox.distributor.rescue_eth(caller=sandbox.deployer)

        assert rescued == 9 * ETHER
        assert sandbox.distributor.balance == 0
        assert sandbox.chain.balance_of(sandbox.deployer) - owner_before == 9 * ETHER

    def test_rescue_leaves_tokens(self, funded):
        """Rescue does not touch the token balance."""
        funded.distributor.rescue_eth(caller=funded.deployer)

        assert funded.distributor.token_balance() == 100_000 * TOKEN_UNIT

    def test_rescue_emits_event(self, funded):
        """ETHRescued records destination and amount."""
        funded.distributor.rescue_eth(caller=funded.deployer)

        event = funded.chain.events_named("ETHRescued")[-1]
        assert event.args == {"to": funded.deployer, "amount": 9 * ETHER}

    def test_non_owner_cannot_rescue(self, funded):
        """Non-owner rescue raises Unauthorized and keeps the balance."""
        with pytest.raises(Unauthorized):
            funded.distributor.rescue_eth(caller=funded.recipient1)

        assert funded.distributor.balance == 9 * ETHER

    def test_rescue_to_rejecting_owner(self, funded):
        """An owner refusing value makes rescue fail with TransferFailed."""
        funded.chain.reject_value(funded.deployer)

        with pytest.raises(TransferFailed):
            funded.distributor.rescue_eth(caller=funded.deployer)

        assert funded.distributor.balance == 9 * ETHER
        assert funded.chain.events_named("ETHRescued") == []

    def test_rescue_goes_to_current_owner(self, funded):
        """After an ownership transfer the new owner receives the sweep."""
        new_owner = funded.chain.new_account()
        funded.distributor.transfer_ownership(new_owner, caller=funded.deployer)

        funded.distributor.rescue_eth(caller=new_owner)

        assert funded.chain.balance_of(new_owner) == 9 * ETHER
