"""
Grapevine Client - Wallet Adapters

A wallet adapter is anything that can report an address and a chain
id, and sign a message on behalf of that address.

Two variants ship with the SDK:

- ``PrivateKeyAdapter`` holds a raw private key and signs locally.
- ``ExternalWalletAdapter`` wraps a signing client owned elsewhere
  (a browser bridge, a hardware wallet daemon, a remote signer) and
  delegates every signature to it.

Usage:
    adapter = PrivateKeyAdapter("0x...", is_testnet=True)
    signature = await adapter.sign_message("hello")
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

from .exceptions import AdapterUnavailableError, InvalidPrivateKeyError, SigningError

logger = logging.getLogger("grapevine")


# =============================================================================
# CHAINS
# =============================================================================


@dataclass(frozen=True)
class Chain:
    """A network the SDK can authenticate against."""

    id: int
    name: str
    network: str
    rpc_url: str


BASE = Chain(id=8453, name="Base", network="base", rpc_url="https://mainnet.base.org")
BASE_SEPOLIA = Chain(
    id=84532,
    name="Base Sepolia",
    network="base-sepolia",
    rpc_url="https://sepolia.base.org",
)


def chain_for(is_testnet: bool) -> Chain:
    """Pick Base Sepolia for testnet, Base otherwise."""
    return BASE_SEPOLIA if is_testnet else BASE


# =============================================================================
# SIGNING CLIENTS
# =============================================================================


class WalletClient(Protocol):
    """
    Shape of a signing client an ``ExternalWalletAdapter`` can wrap.

    ``account`` must expose ``address``, ``chain`` must expose ``id``.
    ``sign_message`` may be a coroutine function or a plain callable.
    """

    account: Any
    chain: Any

    def sign_message(self, *, message: str, account: Any) -> Any: ...


@dataclass(frozen=True)
class RemoteAccount:
    """Minimal account descriptor for signers that hold the key themselves."""

    address: str
    type: str = "json-rpc"


class LocalWalletClient:
    """
    Signing client bound to a local account and a chain.

    Returned by ``PrivateKeyAdapter.get_wallet_client()`` for callers
    that need the account, the chain, or the RPC endpoint directly.
    """

    def __init__(self, account: LocalAccount, chain: Chain, transport_url: str | None = None) -> None:
        self.account = account
        self.chain = chain
        self.transport_url = transport_url or chain.rpc_url

    async def sign_message(self, *, message: str, account: Any = None) -> str:
        """Sign an EIP-191 personal message over the UTF-8 bytes of ``message``."""
        signed = self.account.sign_message(encode_defunct(text=message))
        return "0x" + bytes(signed.signature).hex()

    def __repr__(self) -> str:
        return f"LocalWalletClient(address={self.account.address!r}, chain={self.chain.name!r})"


# =============================================================================
# ADAPTERS
# =============================================================================


class WalletAdapter(ABC):
    """Common contract for every wallet backend the SDK can sign with."""

    @abstractmethod
    def get_address(self) -> str:
        """Return the wallet's public address."""

    @abstractmethod
    async def sign_message(self, message: str) -> str:
        """
        Sign ``message`` exactly as given.

        Raises:
            SigningError: If the signer errors or the user declines.
        """

    @abstractmethod
    def get_chain_id(self) -> str:
        """Return the numeric chain id as a string."""

    @abstractmethod
    def get_wallet_client(self) -> Any:
        """Return the underlying signing client (shared, not transferred)."""

    @property
    def address(self) -> str:
        return self.get_address()

    @property
    def chain_id(self) -> str:
        return self.get_chain_id()


class PrivateKeyAdapter(WalletAdapter):
    """
    Adapter backed by a raw private key.

    The address is derived from the key, and the chain is Base Sepolia
    (``84532``) on testnet or Base (``8453``) on mainnet. Signing never
    touches the network.
    """

    def __init__(self, private_key: str, is_testnet: bool) -> None:
        """
        Initialize the adapter.

        Args:
            private_key: 0x-prefixed hex private key.
            is_testnet: Bind to Base Sepolia instead of Base mainnet.

        Raises:
            InvalidPrivateKeyError: If the key is missing the 0x prefix or
                cannot be decoded into an account.
        """
        if not isinstance(private_key, str) or not private_key.startswith("0x"):
            raise InvalidPrivateKeyError(private_key if isinstance(private_key, str) else None)

        try:
            self._account: LocalAccount = Account.from_key(private_key)
        except Exception as e:
            raise InvalidPrivateKeyError(private_key) from e

        chain = chain_for(is_testnet)
        self._chain_id = str(chain.id)
        self._wallet_client = LocalWalletClient(self._account, chain)

    def get_address(self) -> str:
        return self._account.address

    async def sign_message(self, message: str) -> str:
        try:
            return await self._wallet_client.sign_message(message=message)
        except Exception as e:
            raise SigningError(f"Local signing failed: {e}", reason="signer_error") from e

    def get_chain_id(self) -> str:
        return self._chain_id

    def get_wallet_client(self) -> LocalWalletClient:
        return self._wallet_client

    def __repr__(self) -> str:
        return f"PrivateKeyAdapter(address={self.get_address()!r}, chain_id={self._chain_id!r})"


class ExternalWalletAdapter(WalletAdapter):
    """
    Adapter that delegates signing to an externally owned client.

    Address and chain id are read once at construction. Signing may
    wait on out-of-process approval (a wallet popup, a hardware
    confirmation); this adapter imposes no deadline of its own, use
    ``AuthManager(signing_timeout=...)`` to bound it.
    """

    def __init__(self, wallet_client: WalletClient | None) -> None:
        """
        Initialize the adapter.

        Args:
            wallet_client: Connected signing client.

        Raises:
            AdapterUnavailableError: If the client is missing, or has no
                account address or chain id.
        """
        if wallet_client is None:
            raise AdapterUnavailableError("Wallet client is required", missing="wallet_client")

        address = getattr(getattr(wallet_client, "account", None), "address", None)
        if not address:
            raise AdapterUnavailableError(
                "Wallet address not available from wallet client account",
                missing="address",
            )

        chain_id = getattr(getattr(wallet_client, "chain", None), "id", None)
        if not chain_id:
            raise AdapterUnavailableError(
                "Chain ID not available from wallet client",
                missing="chain_id",
            )

        self._wallet_client = wallet_client
        self._address = str(address)
        self._chain_id = str(chain_id)

    def get_address(self) -> str:
        return self._address

    async def sign_message(self, message: str) -> str:
        # Connectors may drop the account object after connect; sign as our address anyway.
        account = getattr(self._wallet_client, "account", None) or RemoteAccount(self._address)

        sign = self._wallet_client.sign_message
        try:
            if inspect.iscoroutinefunction(sign):
                result = await sign(message=message, account=account)
            else:
                # Blocking signers run off the loop so deadlines and other callers keep working.
                result = await asyncio.to_thread(sign, message=message, account=account)
                if inspect.isawaitable(result):
                    result = await result
        except SigningError:
            raise
        except Exception as e:
            logger.debug(f"External wallet declined or failed to sign: {e}")
            raise SigningError(f"External wallet failed to sign: {e}", reason="rejected") from e

        if isinstance(result, str):
            return result
        if isinstance(result, (bytes, bytearray)):
            return "0x" + bytes(result).hex()
        raise SigningError(
            f"External wallet returned an invalid signature of type {type(result).__name__}",
            reason="invalid_signature",
        )

    def get_chain_id(self) -> str:
        return self._chain_id

    def get_wallet_client(self) -> WalletClient:
        return self._wallet_client

    def __repr__(self) -> str:
        return f"ExternalWalletAdapter(address={self._address!r}, chain_id={self._chain_id!r})"
