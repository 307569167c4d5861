"""Distributor core: ledger model, collaborators and the distribution engine."""

from .chain import ZERO_ADDRESS, Chain, Contract, Event, require_address, validate_address
from .distributor import (
    DistributionPlan,
    DistributionResult,
    Distributor,
    DistributorConfiguration,
    LiquidityStrategy,
)
from .errors import (
    DistributorError,
    InsufficientBalance,
    InvalidAddress,
    LiquidityAdditionFailed,
    RouterError,
    TokenError,
    TransferFailed,
    Unauthorized,
)
from .router import ConstantProductRouter, Pair, Router
from .token import Token
from .wallet import EnvironmentWallet, WalletProvider

__all__ = [
    "Chain",
    "ConstantProductRouter",
    "Contract",
    "DistributionPlan",
    "DistributionResult",
    "Distributor",
    "DistributorConfiguration",
    "DistributorError",
    "EnvironmentWallet",
    "Event",
    "InsufficientBalance",
    "InvalidAddress",
    "LiquidityAdditionFailed",
    "LiquidityStrategy",
    "Pair",
    "Router",
    "RouterError",
    "Token",
    "TokenError",
    "TransferFailed",
    "Unauthorized",
    "WalletProvider",
    "ZERO_ADDRESS",
    "require_address",
    "validate_address",
]
