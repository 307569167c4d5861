"""CLI subcommands for PAWDIST operations.

Provides command-line interface for:
- Wallet operations (address)
- Distributor operations (status, distribute, rescue)
- Owner configuration (recipients, token, router, lp-holder, owner)
- Sandbox simulation of a distribution on the in-process ledger
"""

import argparse
import json
import sys
import uuid
from decimal import Decimal, InvalidOperation

from web3 import Web3

from pawdist.blockchain.client import DistributorClient
from pawdist.config import PawdistConfig
from pawdist.core.distributor import LiquidityStrategy
from pawdist.core.sandbox import (
    DEFAULT_POOL_NATIVE,
    DEFAULT_POOL_TOKENS,
    TOKEN_DECIMALS,
    deploy_sandbox,
)
from pawdist.core.wallet import EnvironmentWallet
from pawdist.observability.logging import clear_operation_id, set_operation_id

# Short CLI names for the liquidity strategies
STRATEGY_CHOICES = {
    "add": LiquidityStrategy.ADD_HELD_TOKENS,
    "swap": LiquidityStrategy.SWAP_HALF,
}

# Owner setters: CLI name -> (client method, argument names)
CONFIG_SETTERS = {
    "recipients": ("update_recipients", ("recipient1", "recipient2")),
    "token": ("update_token_address", ("address",)),
    "router": ("update_uniswap_router", ("address",)),
    "lp-holder": ("update_lp_token_holder", ("address",)),
    "owner": ("transfer_ownership", ("address",)),
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="pawdist",
        description="PAWDIST - tax proceeds distributor operations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would happen without executing",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Wallet subcommand
    wallet_parser = subparsers.add_parser("wallet", help="Wallet operations")
    wallet_sub = wallet_parser.add_subparsers(dest="wallet_command")
    wallet_sub.add_parser("address", help="Show wallet address")

    # Distributor subcommand
    dist_parser = subparsers.add_parser("distributor", help="Distributor operations")
    dist_sub = dist_parser.add_subparsers(dest="distributor_command")
    dist_sub.add_parser("status", help="Show configuration and balances")
    dist_sub.add_parser("distribute", help="Distribute the native balance")
    dist_sub.add_parser("rescue", help="Sweep the native balance to the owner")

    # Config subcommand (owner only)
    config_parser = subparsers.add_parser("config", help="Owner configuration")
    config_sub = config_parser.add_subparsers(dest="config_command")

    recipients_parser = config_sub.add_parser("recipients", help="Set both recipients")
    recipients_parser.add_argument("recipient1", type=str, help="First recipient address")
    recipients_parser.add_argument("recipient2", type=str, help="Second recipient address")

    for name, help_text in (
        ("token", "Set the token address"),
        ("router", "Set the router address"),
        ("lp-holder", "Set the LP token holder address"),
        ("owner", "Transfer ownership"),
    ):
        setter_parser = config_sub.add_parser(name, help=help_text)
        setter_parser.add_argument("address", type=str, help="New address")

    # Simulate subcommand (in-process ledger)
    sim_parser = subparsers.add_parser("simulate", help="Simulate a distribution in a sandbox")
    sim_parser.add_argument(
        "--balance", type=str, default="9", help="Native balance to distribute (default: 9)"
    )
    sim_parser.add_argument(
        "--token-balance",
        type=str,
        default="100000",
        help="Tokens held by the Distributor (default: 100000)",
    )
    sim_parser.add_argument(
        "--pool-native",
        type=str,
        default=str(Web3.from_wei(DEFAULT_POOL_NATIVE, "ether")),
        help="Native currency seeded into the pool",
    )
    sim_parser.add_argument(
        "--pool-tokens",
        type=str,
        default=str(DEFAULT_POOL_TOKENS // 10**TOKEN_DECIMALS),
        help="Tokens seeded into the pool",
    )
    sim_parser.add_argument(
        "--strategy",
        choices=sorted(STRATEGY_CHOICES),
        default=None,
        help="Liquidity strategy (default: PAWDIST_LIQUIDITY_STRATEGY)",
    )

    return parser


def explorer_url(base_url: str | None, kind: str, value: str) -> str | None:
    """Build a block explorer link, if an explorer is configured."""
    if base_url:
        return f"{base_url.rstrip('/')}/{kind}/{value}"
    return None


class CLIContext:
    """Shared context for CLI commands."""

    def __init__(self, config: PawdistConfig, dry_run: bool = False, json_output: bool = False):
        self.config = config
        self.dry_run = dry_run
        self.json_output = json_output
        self._wallet: EnvironmentWallet | None = None
        self._client: DistributorClient | None = None

    @property
    def wallet(self) -> EnvironmentWallet:
        """Get wallet (lazy loaded)."""
        if self._wallet is None:
            self._wallet = EnvironmentWallet(
                private_key=self.config.wallet_private_key,
                private_key_file=self.config.wallet_private_key_file,
            )
        return self._wallet

    @property
    def client(self) -> DistributorClient:
        """Get Distributor client (lazy loaded)."""
        if self._client is None:
            if not self.config.distributor_address:
                raise ValueError("No distributor configured. Set PAWDIST_DISTRIBUTOR_ADDRESS")
            self._client = DistributorClient(
                self.config.rpc_endpoint,
                self.wallet,
                self.config.distributor_address,
                gas_limit=self.config.gas_limit,
            )
        return self._client

    def output(self, data: dict) -> None:
        """Output data in the appropriate format."""
        if self.json_output:

            def decimal_default(obj):
                if isinstance(obj, Decimal):
                    return str(obj)
                raise TypeError(f"Object of type {type(obj)} is not JSON serializable")

            print(json.dumps(data, default=decimal_default, indent=2))
        else:
            self._print_formatted(data)

    def _print_formatted(self, data: dict, indent: int = 0) -> None:
        """Print data in human-readable format."""
        prefix = "  " * indent
        for key, value in data.items():
            if isinstance(value, dict):
                print(f"{prefix}{key}:")
                self._print_formatted(value, indent + 1)
            else:
                print(f"{prefix}{key}: {value}")

    def tx_output(self, action: str, tx_hash: str, **fields) -> dict:
        data = {"success": True, "action": action, **fields, "tx_hash": tx_hash}
        link = explorer_url(self.config.block_explorer_url, "tx", tx_hash)
        if link:
            data["explorer"] = link
        return data


# Wallet commands


def cmd_wallet_address(ctx: CLIContext) -> int:
    """Show wallet address."""
    try:
        ctx.output({"address": ctx.wallet.address})
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


# Distributor commands


def cmd_distributor_status(ctx: CLIContext) -> int:
    """Show Distributor configuration and balances."""
    try:
        if not ctx.client.connected:
            ctx.output({"error": "Not connected to RPC endpoint"})
            return 1

        configuration = ctx.client.configuration()
        ctx.output(
            {
                "distributor": ctx.client.address,
                "owner": ctx.client.owner(),
                "recipient1": configuration.recipient1,
                "recipient2": configuration.recipient2,
                "token_address": configuration.token_address,
                "uniswap_router": configuration.uniswap_router,
                "lp_token_holder": configuration.lp_token_holder,
                "native_balance": ctx.client.native_balance(),
                "token_balance": ctx.client.token_balance(),
                "chain_id": ctx.client.chain_id,
            }
        )
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def cmd_distributor_distribute(ctx: CLIContext) -> int:
    """Distribute the Distributor's native balance."""
    try:
        if ctx.dry_run:
            balance = ctx.client.native_balance()
            share = Web3.from_wei(Web3.to_wei(balance, "ether") // 3, "ether")
            ctx.output(
                {
                    "dry_run": True,
                    "action": "distribute_eth",
                    "native_balance": balance,
                    "share_each": share,
                    "message": f"Would send {share} to each recipient and to liquidity",
                }
            )
            return 0

        tx_hash = ctx.client.distribute_eth()
        ctx.output(ctx.tx_output("distribute_eth", tx_hash))
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def cmd_distributor_rescue(ctx: CLIContext) -> int:
    """Sweep the native balance to the owner."""
    try:
        if ctx.dry_run:
            balance = ctx.client.native_balance()
            ctx.output(
                {
                    "dry_run": True,
                    "action": "rescue_eth",
                    "native_balance": balance,
                    "message": f"Would send {balance} to the owner",
                }
            )
            return 0

        tx_hash = ctx.client.rescue_eth()
        ctx.output(ctx.tx_output("rescue_eth", tx_hash))
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


# Config commands


def cmd_config_set(ctx: CLIContext, setting: str, values: list[str]) -> int:
    """Run one of the owner-only setters."""
    method_name, argument_names = CONFIG_SETTERS[setting]
    fields = dict(zip(argument_names, values))
    try:
        for value in values:
            if not Web3.is_address(value):
                ctx.output({"error": f"Invalid address: {value}"})
                return 1

        if ctx.dry_run:
            ctx.output(
                {
                    "dry_run": True,
                    "action": method_name,
                    **fields,
                    "message": f"Would call {method_name}({', '.join(values)})",
                }
            )
            return 0

        tx_hash = getattr(ctx.client, method_name)(*values)
        ctx.output(ctx.tx_output(method_name, tx_hash, **fields))
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


# Simulation


def cmd_simulate(
    ctx: CLIContext,
    balance_str: str,
    token_balance_str: str,
    pool_native_str: str,
    pool_tokens_str: str,
    strategy: str | None,
) -> int:
    """Run one distribution against a freshly seeded sandbox ledger."""
    try:
        balance = Decimal(balance_str)
        token_balance = Decimal(token_balance_str)
        pool_native = Decimal(pool_native_str)
        pool_tokens = Decimal(pool_tokens_str)
        if balance < 0 or token_balance < 0 or pool_native <= 0 or pool_tokens <= 0:
            ctx.output({"error": "Amounts must not be negative and pool reserves must be positive"})
            return 1

        sandbox = deploy_sandbox(
            pool_native=Web3.to_wei(pool_native, "ether"),
            pool_tokens=int(pool_tokens * 10**TOKEN_DECIMALS),
            strategy=STRATEGY_CHOICES[strategy] if strategy else ctx.config.liquidity_strategy,
            deadline_seconds=ctx.config.deadline_seconds,
        )
        sandbox.deposit(Web3.to_wei(balance, "ether"))
        if token_balance:
            sandbox.credit_tokens(int(token_balance * 10**TOKEN_DECIMALS))

        reserves_before = sandbox.pair.get_reserves()
        result = sandbox.distributor.distribute_eth(caller=sandbox.deployer)
        reserves_after = sandbox.pair.get_reserves()

        ctx.output(
            {
                "strategy": sandbox.distributor.strategy.value,
                "balance": Web3.from_wei(result.balance, "ether"),
                "recipient1_received": Web3.from_wei(result.share, "ether"),
                "recipient2_received": Web3.from_wei(result.share, "ether"),
                "liquidity": {
                    "native_sent": Web3.from_wei(result.liquidity_eth, "ether"),
                    "native_swapped": Web3.from_wei(result.swapped_eth, "ether"),
                    "native_paired": Web3.from_wei(result.liquidity_eth_used, "ether"),
                    "tokens_paired": result.token_used,
                    "pool_shares_minted": result.liquidity_minted,
                    "pool_native_increase": Web3.from_wei(
                        reserves_after[1] - reserves_before[1], "ether"
                    ),
                },
                "retained": {
                    "remainder_wei": result.remainder,
                    "native_balance_after": Web3.from_wei(sandbox.distributor.balance, "ether"),
                },
            }
        )
        return 0
    except InvalidOperation:
        ctx.output({"error": "Invalid amount"})
        return 1
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def run_cli(args: argparse.Namespace) -> int:
    """Execute CLI command based on parsed arguments.

    Returns
    -------
    int
        Exit code: 0 for success, positive for error, -1 signals caller
        to show help (no CLI command specified).
    """
    try:
        config = PawdistConfig()
    except Exception as e:
        if args.json:
            print(json.dumps({"error": f"Configuration error: {e}"}))
        else:
            print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    ctx = CLIContext(config, dry_run=args.dry_run, json_output=args.json)

    set_operation_id(uuid.uuid4().hex[:12])
    try:
        return _dispatch(ctx, args)
    finally:
        clear_operation_id()


def _dispatch(ctx: CLIContext, args: argparse.Namespace) -> int:
    if args.command == "wallet":
        if args.wallet_command == "address":
            return cmd_wallet_address(ctx)
        print("Usage: pawdist wallet [address]", file=sys.stderr)
        return 1

    elif args.command == "distributor":
        if args.distributor_command == "status":
            return cmd_distributor_status(ctx)
        elif args.distributor_command == "distribute":
            return cmd_distributor_distribute(ctx)
        elif args.distributor_command == "rescue":
            return cmd_distributor_rescue(ctx)
        print("Usage: pawdist distributor [status|distribute|rescue]", file=sys.stderr)
        return 1

    elif args.command == "config":
        if args.config_command == "recipients":
            return cmd_config_set(ctx, "recipients", [args.recipient1, args.recipient2])
        elif args.config_command in CONFIG_SETTERS:
            return cmd_config_set(ctx, args.config_command, [args.address])
        print("Usage: pawdist config [recipients|token|router|lp-holder|owner]", file=sys.stderr)
        return 1

    elif args.command == "simulate":
        return cmd_simulate(
            ctx,
            args.balance,
            args.token_balance,
            args.pool_native,
            args.pool_tokens,
            args.strategy,
        )

    return -1  # Signal to caller to show help
