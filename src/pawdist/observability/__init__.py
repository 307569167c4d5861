"""Observability module for the Distributor."""

from .logging import clear_operation_id, configure_logging, get_logger, set_operation_id
from .metrics import (
    CONFIG_CHANGES,
    DISTRIBUTION_DURATION,
    DISTRIBUTIONS,
    LP_MINTED,
    NATIVE_BALANCE,
    NATIVE_DISTRIBUTED,
    RESCUES,
)

__all__ = [
    # Logging
    "clear_operation_id",
    "configure_logging",
    "get_logger",
    "set_operation_id",
    # Metrics
    "CONFIG_CHANGES",
    "DISTRIBUTION_DURATION",
    "DISTRIBUTIONS",
    "LP_MINTED",
    "NATIVE_BALANCE",
    "NATIVE_DISTRIBUTED",
    "RESCUES",
]
