"""Web3 client for a deployed Distributor contract."""

import logging
from decimal import Decimal

from web3 import Web3
from web3.exceptions import ContractLogicError
from web3.types import TxReceipt

from pawdist.core.chain import require_address
from pawdist.core.distributor import DistributorConfiguration
from pawdist.core.errors import (
    DistributorError,
    InvalidAddress,
    LiquidityAdditionFailed,
    TransferFailed,
    Unauthorized,
)
from pawdist.core.wallet import WalletProvider

from .abi import DISTRIBUTOR_ABI, ERC20_BALANCE_ABI

logger = logging.getLogger(__name__)

# Revert reason fragments, checked in order
ROUTER_REVERT_MARKERS = ("PancakeRouter", "UniswapV2", "Pancake:", "TransferHelper", "INSUFFICIENT_")
OWNER_REVERT_MARKERS = ("caller is not the owner", "OwnableUnauthorizedAccount")
ZERO_ADDRESS_REVERT_MARKERS = ("zero address", "OwnableInvalidOwner", "Invalid address")
TRANSFER_REVERT_MARKERS = ("transfer failed", "Transfer failed")


def map_revert(reason: str, operation: str, caller: str) -> DistributorError:
    """Translate a revert reason into the Distributor error taxonomy.

    Parameters
    ----------
    reason : str
        Revert message reported by the node.
    operation : str
        Contract function that reverted.
    caller : str
        Account the call was simulated from.

    Returns
    -------
    DistributorError
        The most specific matching error.
    """
    if any(marker in reason for marker in ROUTER_REVERT_MARKERS):
        return LiquidityAdditionFailed(f"{operation} reverted in router: {reason}")
    if any(marker in reason for marker in OWNER_REVERT_MARKERS):
        return Unauthorized(caller, operation)
    if any(marker in reason for marker in ZERO_ADDRESS_REVERT_MARKERS):
        return InvalidAddress(reason, operation)
    if any(marker in reason for marker in TRANSFER_REVERT_MARKERS):
        return TransferFailed(reason=f"{operation} reverted: {reason}")
    return DistributorError(f"{operation} reverted: {reason}")


class DistributorClient:
    """Operate a deployed Distributor through a signing wallet.

    Parameters
    ----------
    rpc_endpoint : str
        JSON-RPC endpoint URL.
    wallet : WalletProvider
        Wallet signing transactions (the owner, for owner-only calls).
    contract_address : str
        Address of the deployed Distributor.
    gas_limit : int
        Gas limit for submitted transactions.
    """

    def __init__(
        self,
        rpc_endpoint: str,
        wallet: WalletProvider,
        contract_address: str,
        gas_limit: int = 500_000,
    ):
        self._w3 = Web3(Web3.HTTPProvider(rpc_endpoint))
        self._wallet = wallet
        self._gas_limit = gas_limit
        self._address = Web3.to_checksum_address(contract_address)
        self._contract = self._w3.eth.contract(address=self._address, abi=DISTRIBUTOR_ABI)

    @property
    def connected(self) -> bool:
        return self._w3.is_connected()

    @property
    def chain_id(self) -> int:
        return self._w3.eth.chain_id

    @property
    def address(self) -> str:
        """Checksummed Distributor address."""
        return self._address

    @property
    def wallet_address(self) -> str:
        return self._wallet.address

    # Reads

    def owner(self) -> str:
        return self._contract.functions.owner().call()

    def recipients(self) -> tuple[str, str]:
        return (
            self._contract.functions.recipient1().call(),
            self._contract.functions.recipient2().call(),
        )

    def token_address(self) -> str:
        return self._contract.functions.tokenAddress().call()

    def uniswap_router(self) -> str:
        return self._contract.functions.uniswapRouter().call()

    def lp_token_holder(self) -> str:
        return self._contract.functions.lpTokenHolder().call()

    def configuration(self) -> DistributorConfiguration:
        """Read all five references in one go."""
        recipient1, recipient2 = self.recipients()
        return DistributorConfiguration(
            token_address=self.token_address(),
            uniswap_router=self.uniswap_router(),
            recipient1=recipient1,
            recipient2=recipient2,
            lp_token_holder=self.lp_token_holder(),
        )

    def native_balance(self) -> Decimal:
        """Native balance held by the Distributor, in ether units."""
        wei = self._w3.eth.get_balance(self._address)
        return Decimal(str(self._w3.from_wei(wei, "ether")))

    def token_balance(self) -> int:
        """Token balance held by the Distributor, in base units."""
        token = self._w3.eth.contract(address=self.token_address(), abi=ERC20_BALANCE_ABI)
        return token.functions.balanceOf(self._address).call()

    # Transactions

    def _send(self, operation: str, *args: str) -> str:
        """Simulate, sign and submit a Distributor call.

        Returns
        -------
        str
            The transaction hash.

        Raises
        ------
        DistributorError
            If the simulated call reverts.
        """
        sender = self._wallet.address
        fn = getattr(self._contract.functions, operation)(*args)

        try:
            fn.call({"from": sender})
        except ContractLogicError as e:
            reason = str(e.message or e)
            logger.warning(
                "Distributor call would revert",
                extra={"operation": operation, "reason": reason},
            )
            raise map_revert(reason, operation, sender) from e

        tx = fn.build_transaction(
            {
                "from": sender,
                "gas": self._gas_limit,
                "gasPrice": self._w3.eth.gas_price,
                "nonce": self._w3.eth.get_transaction_count(sender),
                "chainId": self._w3.eth.chain_id,
            }
        )
        signed = self._wallet.sign_transaction(tx)
        tx_hash = Web3.to_hex(self._w3.eth.send_raw_transaction(signed.raw_transaction))

        logger.info(
            "Distributor transaction submitted",
            extra={"operation": operation, "tx_hash": tx_hash, "distributor": self._address},
        )
        return tx_hash

    def distribute_eth(self) -> str:
        return self._send("distributeETH")

    def rescue_eth(self) -> str:
        return self._send("rescueETH")

    def transfer_ownership(self, new_owner: str) -> str:
        return self._send("transferOwnership", require_address(new_owner, "new_owner"))

    def update_recipients(self, recipient1: str, recipient2: str) -> str:
        return self._send(
            "updateRecipients",
            require_address(recipient1, "recipient1"),
            require_address(recipient2, "recipient2"),
        )

    def update_token_address(self, token_address: str) -> str:
        return self._send("updateTokenAddress", require_address(token_address, "token_address"))

    def update_uniswap_router(self, uniswap_router: str) -> str:
        return self._send(
            "updateUniswapRouter", require_address(uniswap_router, "uniswap_router")
        )

    def update_lp_token_holder(self, lp_token_holder: str) -> str:
        return self._send(
            "updateLpTokenHolder", require_address(lp_token_holder, "lp_token_holder")
        )

    def wait_for_receipt(self, tx_hash: str, timeout: int = 120) -> TxReceipt:
        """Wait for a transaction receipt.

        Raises
        ------
        DistributorError
            If the transaction reverted on-chain.
        TimeoutError
            If the transaction is not mined within the timeout.
        """
        receipt = self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        if receipt["status"] != 1:
            raise DistributorError(f"Transaction {tx_hash} reverted")
        return receipt
