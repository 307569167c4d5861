"""Error taxonomy for the Distributor and its collaborators.

Every failure aborts the whole invocation. The ledger restores the state
captured at the start of the outermost transaction before the exception
reaches the caller.
"""


class DistributorError(Exception):
    """Base class for all Distributor failures."""


class Unauthorized(DistributorError):
    """Caller lacks the privilege required by the operation."""

    def __init__(self, caller: str, operation: str):
        self.caller = caller
        self.operation = operation
        super().__init__(f"Caller {caller} is not the owner, cannot {operation}")


class InvalidAddress(DistributorError):
    """A zero or malformed address was supplied."""

    def __init__(self, address: object, field: str | None = None):
        self.address = address
        self.field = field
        label = f" for {field}" if field else ""
        super().__init__(f"Invalid address{label}: {address!r}")


class TransferFailed(DistributorError):
    """A native-currency transfer was rejected by its receiver."""

    def __init__(
        self,
        to: str | None = None,
        amount: int | None = None,
        reason: str = "receiver rejected value",
    ):
        self.to = to
        self.amount = amount
        self.reason = reason
        if to is None:
            # Receiver and amount are unknown when decoded from a revert reason
            super().__init__(f"Transfer failed: {reason}")
        else:
            super().__init__(f"Transfer of {amount} wei to {to} failed: {reason}")


class LiquidityAdditionFailed(DistributorError):
    """The router rejected the add-liquidity (or pre-liquidity swap) call."""


class InsufficientBalance(DistributorError):
    """An account tried to send more native currency than it holds."""

    def __init__(self, account: str, balance: int, amount: int):
        self.account = account
        self.balance = balance
        self.amount = amount
        super().__init__(f"Insufficient balance in {account}: {balance} < {amount}")


class TokenError(DistributorError):
    """Token collaborator rejected a transfer or allowance spend."""


class RouterError(DistributorError):
    """Router or pair collaborator rejected a swap or liquidity call."""
