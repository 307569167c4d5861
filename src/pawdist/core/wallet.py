"""Wallet providers for signing Distributor transactions."""

from abc import ABC, abstractmethod
from pathlib import Path

from eth_account import Account
from eth_account.datastructures import SignedTransaction
from eth_account.signers.local import LocalAccount
from pydantic import SecretStr


class WalletProvider(ABC):
    """Source of the account that owns or operates a Distributor."""

    @abstractmethod
    def get_account(self) -> LocalAccount:
        """Return the signing account."""
        ...

    @property
    def address(self) -> str:
        """Checksummed address of the signing account."""
        return self.get_account().address

    def sign_transaction(self, tx: dict) -> SignedTransaction:
        """Sign a fully built transaction dict."""
        return self.get_account().sign_transaction(tx)


class EnvironmentWallet(WalletProvider):
    """Wallet whose private key comes from the environment or a key file.

    Parameters
    ----------
    private_key : SecretStr, optional
        Hex private key (from ``PAWDIST_WALLET_PRIVATE_KEY``).
    private_key_file : str, optional
        Path to a file holding the hex private key.

    Raises
    ------
    ValueError
        If neither source is given, or the key cannot be parsed.
    FileNotFoundError
        If ``private_key_file`` does not exist.
    """

    def __init__(
        self,
        private_key: SecretStr | None = None,
        private_key_file: str | None = None,
    ):
        if private_key is not None:
            key = private_key.get_secret_value()
        elif private_key_file is not None:
            key_path = Path(private_key_file).expanduser()
            if not key_path.exists():
                raise FileNotFoundError(f"Private key file not found: {private_key_file}")
            key = key_path.read_text().strip()
        else:
            raise ValueError(
                "No wallet configured. "
                "Set PAWDIST_WALLET_PRIVATE_KEY or PAWDIST_WALLET_PRIVATE_KEY_FILE"
            )

        try:
            self._account: LocalAccount = Account.from_key(key)
        except Exception as e:
            # Never echo the key material back
            raise ValueError("Wallet private key is not a valid secp256k1 key") from e

    def get_account(self) -> LocalAccount:
        return self._account
