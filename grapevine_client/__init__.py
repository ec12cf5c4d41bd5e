"""
Grapevine Client - Wallet-Authenticated Python SDK

Authenticate against the Grapevine API by signing a one-time nonce
with your wallet, then call public and authenticated endpoints.

Quick Start:
    from grapevine_client import GrapevineClient

    async with GrapevineClient(private_key="0x...", network="testnet") as client:
        # Fresh, single-use auth headers
        headers = await client.get_auth_headers()

        # Authenticated profile update
        me = await client.wallets.get_me()
        await client.wallets.update(me.id, username="alice")

External wallets:
    adapter = ExternalWalletAdapter(wallet_client)
    auth = AuthManager(adapter, "https://api.grapevine.markets", signing_timeout=60)
    headers = await auth.get_auth_headers()

Configuration:
    Set these environment variables or pass to constructor:
    - GRAPEVINE_NETWORK: testnet (default) or mainnet
    - GRAPEVINE_API_URL: Override the API base URL
    - GRAPEVINE_TIMEOUT: Request timeout in seconds
    - GRAPEVINE_SIGNING_TIMEOUT: Signing deadline in seconds
    - GRAPEVINE_DEBUG: Log every request
"""

from .adapters import (
    BASE,
    BASE_SEPOLIA,
    Chain,
    ExternalWalletAdapter,
    LocalWalletClient,
    PrivateKeyAdapter,
    RemoteAccount,
    WalletAdapter,
    WalletClient,
)
from .auth import AuthManager
from .core import (
    CategoriesInterface,
    GrapevineClient,
    GrapevineConfig,
    SyncGrapevineClient,
    WalletsInterface,
    create_client,
)
from .exceptions import (
    AdapterUnavailableError,
    ApiError,
    ApiUnavailableError,
    AuthError,
    ConfigurationError,
    GrapevineError,
    InvalidPrivateKeyError,
    NetworkError,
    NonceRequestFailedError,
    NoWalletError,
    SigningError,
    ValidationError,
)
from .utils import (
    AuthHeaders,
    AuthLogger,
    Category,
    CategoryPage,
    Wallet,
    WalletStats,
)

__version__ = "0.1.0"
__all__ = [
    # Version
    "__version__",
    # Main client
    "GrapevineClient",
    "GrapevineConfig",
    "SyncGrapevineClient",
    "create_client",
    # Interfaces
    "CategoriesInterface",
    "WalletsInterface",
    # Authentication
    "AuthManager",
    "WalletAdapter",
    "WalletClient",
    "PrivateKeyAdapter",
    "ExternalWalletAdapter",
    "LocalWalletClient",
    "RemoteAccount",
    "Chain",
    "BASE",
    "BASE_SEPOLIA",
    # Data models
    "AuthHeaders",
    "Category",
    "CategoryPage",
    "Wallet",
    "WalletStats",
    # Exceptions
    "GrapevineError",
    "ConfigurationError",
    "AuthError",
    "InvalidPrivateKeyError",
    "AdapterUnavailableError",
    "NonceRequestFailedError",
    "SigningError",
    "NoWalletError",
    "NetworkError",
    "ApiError",
    "ApiUnavailableError",
    "ValidationError",
    # Utilities
    "AuthLogger",
]
