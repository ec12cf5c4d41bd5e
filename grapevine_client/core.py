"""
Grapevine Client - Core Module

The main GrapevineClient implementation providing:
- Network selection (Base mainnet or Base Sepolia testnet)
- Wallet configuration via private key or wallet adapter
- Authenticated requests with fresh nonce signatures
- Category and wallet resource interfaces

Usage:
    from grapevine_client import GrapevineClient

    async with GrapevineClient(private_key="0x...") as client:
        categories = await client.categories.list()
        me = await client.wallets.get_me()
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx

from .adapters import WalletAdapter
from .auth import AuthManager
from .exceptions import (
    ApiError,
    ApiUnavailableError,
    ConfigurationError,
    InvalidPrivateKeyError,
    NoWalletError,
)
from .utils import (
    AuthHeaders,
    Category,
    CategoryPage,
    Wallet,
    WalletStats,
    is_private_key,
    validate_api_url,
    validate_optional_string,
    validate_optional_url,
    validate_required_string,
    validate_wallet_address,
)

logger = logging.getLogger("grapevine")

T = TypeVar("T")

API_URLS = {
    "mainnet": "https://api.grapevine.fyi",
    "testnet": "https://api.grapevine.markets",
}


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class GrapevineConfig:
    """
    Configuration for the GrapevineClient.

    Can be set via constructor arguments or environment variables.

    Environment Variables:
        GRAPEVINE_NETWORK: testnet (default) or mainnet
        GRAPEVINE_API_URL: Override the network's API base URL
        GRAPEVINE_TIMEOUT: Request timeout in seconds
        GRAPEVINE_SIGNING_TIMEOUT: Signing deadline in seconds (0 = none)
        GRAPEVINE_DEBUG: Log every request (true/false)
    """

    network: str = field(
        default_factory=lambda: os.environ.get("GRAPEVINE_NETWORK", "testnet").lower()
    )
    api_url: str | None = field(
        default_factory=lambda: os.environ.get("GRAPEVINE_API_URL") or None
    )
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("GRAPEVINE_TIMEOUT", "30.0"))
    )
    signing_timeout: float = field(
        default_factory=lambda: float(os.environ.get("GRAPEVINE_SIGNING_TIMEOUT", "0"))
    )
    debug: bool = field(
        default_factory=lambda: os.environ.get("GRAPEVINE_DEBUG", "").lower()
        in ("true", "1", "yes")
    )

    def __post_init__(self) -> None:
        """Validate configuration and resolve the API URL."""
        if self.network not in API_URLS:
            raise ConfigurationError(
                f"Unknown network {self.network!r}; expected 'testnet' or 'mainnet'",
                config_key="network",
            )
        try:
            self.api_url = validate_api_url(self.api_url or API_URLS[self.network])
        except ValueError as e:
            raise ConfigurationError(str(e), config_key="api_url") from e

    @property
    def is_testnet(self) -> bool:
        return self.network == "testnet"

    @property
    def network_name(self) -> str:
        """Chain network name ("base" or "base-sepolia")."""
        return "base-sepolia" if self.is_testnet else "base"


# =============================================================================
# RESOURCE INTERFACES
# =============================================================================


class CategoriesInterface:
    """Feed categories. Public, no authentication required."""

    def __init__(self, client: GrapevineClient) -> None:
        self._client = client

    async def list(
        self,
        *,
        page_size: int | None = None,
        page_token: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> CategoryPage:
        """
        List one page of categories.

        Args:
            page_size: Number of categories per page.
            page_token: Token from a previous page.
            is_active: Filter on active state.
            search: Free-text filter.

        Returns:
            CategoryPage with the categories and the next page token.
        """
        params: dict[str, Any] = {}
        if page_size:
            params["page_size"] = page_size
        if validate_optional_string("page_token", page_token):
            params["page_token"] = page_token
        if is_active is not None:
            params["is_active"] = str(is_active).lower()
        if validate_optional_string("search", search):
            params["search"] = search

        response = await self._client.request("GET", "/v1/categories", params=params or None)
        return CategoryPage.from_api_response(response.json())

    async def get(self, category_id: str) -> Category:
        """Get a single category by ID."""
        validate_required_string("category_id", category_id)
        response = await self._client.request("GET", f"/v1/categories/{category_id}")
        return Category.model_validate(response.json())


class WalletsInterface:
    """Wallet profiles and statistics."""

    def __init__(self, client: GrapevineClient) -> None:
        self._client = client

    async def get(self, wallet_id: str) -> Wallet:
        """Get a wallet by ID."""
        validate_required_string("wallet_id", wallet_id)
        response = await self._client.request("GET", f"/v1/wallets/{wallet_id}")
        return Wallet.model_validate(response.json())

    async def get_by_address(self, address: str) -> Wallet:
        """
        Get a wallet by its on-chain address.

        Raises:
            ValidationError: If the address is not 0x + 40 hex characters.
        """
        validate_wallet_address(address)
        response = await self._client.request("GET", f"/v1/wallets/address/{address}")
        return Wallet.model_validate(response.json())

    async def get_stats(self, wallet_id: str) -> WalletStats:
        """Get aggregated statistics for a wallet."""
        validate_required_string("wallet_id", wallet_id)
        response = await self._client.request("GET", f"/v1/wallets/{wallet_id}/stats")
        return WalletStats.model_validate(response.json())

    async def update(
        self,
        wallet_id: str,
        *,
        username: str | None = None,
        picture_url: str | None = None,
    ) -> Wallet:
        """
        Update the wallet profile. Requires authentication as its owner.

        Args:
            wallet_id: Wallet to update.
            username: New username.
            picture_url: New http(s) avatar URL.

        Returns:
            The updated wallet.
        """
        validate_required_string("wallet_id", wallet_id)

        username = validate_optional_string("username", username)
        picture_url = validate_optional_url("picture_url", picture_url)

        payload: dict[str, str] = {}
        if username is not None:
            payload["username"] = username
        if picture_url is not None:
            payload["picture_url"] = picture_url

        response = await self._client.request(
            "PATCH",
            f"/v1/wallets/{wallet_id}",
            json=payload,
            requires_auth=True,
        )
        return Wallet.model_validate(response.json())

    async def get_me(self) -> Wallet:
        """Get the profile of the configured wallet."""
        return await self.get_by_address(self._client.get_wallet_address())


# =============================================================================
# MAIN CLIENT
# =============================================================================


class GrapevineClient:
    """
    Async client for the Grapevine API.

    Without a wallet only public endpoints work. With a private key or
    a wallet adapter, authenticated calls carry a freshly signed nonce.

    Usage:
        # Async context manager (recommended)
        async with GrapevineClient(private_key="0x...") as client:
            headers = await client.get_auth_headers()

        # Manual lifecycle
        client = GrapevineClient(wallet_adapter=adapter, network="mainnet")
        await client.connect()
        try:
            # ... use client ...
        finally:
            await client.close()
    """

    def __init__(
        self,
        network: str | None = None,
        *,
        api_url: str | None = None,
        private_key: str | None = None,
        wallet_adapter: WalletAdapter | None = None,
        timeout: float | None = None,
        signing_timeout: float | None = None,
        debug: bool | None = None,
    ) -> None:
        """
        Initialize the Grapevine client.

        Args:
            network: "testnet" or "mainnet" (or use GRAPEVINE_NETWORK).
            api_url: Override the network's API base URL.
            private_key: 0x-prefixed private key to authenticate with.
            wallet_adapter: Adapter to authenticate with instead of a key.
            timeout: Request timeout in seconds.
            signing_timeout: Signing deadline in seconds.
            debug: Log every request.

        Raises:
            ConfigurationError: If both a key and an adapter are given.
            InvalidPrivateKeyError: If the private key is malformed.
        """
        overrides: dict[str, Any] = {}
        if network is not None:
            overrides["network"] = network.lower()
        if api_url is not None:
            overrides["api_url"] = api_url
        if timeout is not None:
            overrides["timeout"] = timeout
        if signing_timeout is not None:
            overrides["signing_timeout"] = signing_timeout
        if debug is not None:
            overrides["debug"] = debug
        self._config = GrapevineConfig(**overrides)

        if private_key and wallet_adapter:
            raise ConfigurationError(
                "Cannot provide both private_key and wallet_adapter",
                config_key="private_key",
            )

        self._http_client: httpx.AsyncClient | None = None
        self._auth: AuthManager | None = None

        if private_key:
            if not is_private_key(private_key):
                raise InvalidPrivateKeyError(private_key)
            self._auth = AuthManager.from_private_key(
                private_key,
                self._config.api_url,  # type: ignore[arg-type]
                self._config.is_testnet,
                **self._auth_options(),
            )
        elif wallet_adapter is not None:
            self.set_wallet_adapter(wallet_adapter)

        # Public interfaces
        self.categories = CategoriesInterface(self)
        self.wallets = WalletsInterface(self)

        if self._config.debug:
            logger.debug(
                f"GrapevineClient initialized for {self._config.network_name} "
                f"at {self._config.api_url}"
            )

    async def __aenter__(self) -> GrapevineClient:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def connect(self) -> None:
        """Open the shared HTTP client."""
        if self._http_client is not None:
            return

        self._http_client = httpx.AsyncClient(
            base_url=self._config.api_url,  # type: ignore[arg-type]
            timeout=httpx.Timeout(self._config.timeout, connect=5.0),
        )
        if self._auth is not None:
            self._auth = self._rebind_auth(self._auth.get_wallet_adapter())

    async def close(self) -> None:
        """Close the shared HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        if self._auth is not None:
            self._auth = self._rebind_auth(self._auth.get_wallet_adapter())

    # =========================================================================
    # WALLET MANAGEMENT
    # =========================================================================

    @property
    def auth(self) -> AuthManager | None:
        return self._auth

    @property
    def network(self) -> str:
        """Chain network name ("base" or "base-sepolia")."""
        return self._config.network_name

    @property
    def is_testnet(self) -> bool:
        return self._config.is_testnet

    @property
    def api_url(self) -> str:
        return self._config.api_url  # type: ignore[return-value]

    def set_wallet_adapter(self, wallet_adapter: WalletAdapter) -> None:
        """Authenticate with ``wallet_adapter`` from now on."""
        self._auth = self._rebind_auth(wallet_adapter)
        if self._config.debug:
            logger.debug(f"Wallet configured: {wallet_adapter.get_address()}")

    def has_wallet(self) -> bool:
        return self._auth is not None

    def clear_wallet(self) -> None:
        """Forget the configured wallet (public endpoints keep working)."""
        self._auth = None
        if self._config.debug:
            logger.debug("Wallet configuration cleared")

    def get_wallet_address(self) -> str:
        """
        Address of the configured wallet.

        Raises:
            NoWalletError: If no wallet is configured.
        """
        if self._auth is None:
            raise NoWalletError()
        return self._auth.wallet_address

    async def get_auth_headers(self, timeout: float | None = None) -> AuthHeaders:
        """
        Sign a fresh nonce and return the auth headers.

        Raises:
            NoWalletError: If no wallet is configured.
        """
        if self._auth is None:
            raise NoWalletError()
        return await self._auth.get_auth_headers(timeout=timeout)

    # =========================================================================
    # REQUESTS
    # =========================================================================

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        requires_auth: bool = False,
    ) -> httpx.Response:
        """
        Make a request to the Grapevine API.

        Args:
            method: HTTP method.
            path: Path below the API base URL.
            json: Optional JSON body.
            params: Optional query parameters.
            requires_auth: Attach freshly signed auth headers.

        Returns:
            The HTTP response.

        Raises:
            ConfigurationError: If the client is not connected.
            NoWalletError: If auth is required but no wallet is configured.
            ApiError: If the API answers with a non-success status.
            ApiUnavailableError: If the API cannot be reached.
        """
        if self._http_client is None:
            raise ConfigurationError("Client not connected. Call connect() first.")

        headers = {"Content-Type": "application/json"}
        if requires_auth:
            auth_headers = await self.get_auth_headers()
            headers.update(auth_headers.to_headers())

        if self._config.debug:
            logger.debug(f"Request: {method} {self._config.api_url}{path}")

        try:
            response = await self._http_client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.RequestError as e:
            raise ApiUnavailableError(self._config.api_url) from e  # type: ignore[arg-type]

        if not response.is_success and response.status_code != 204:
            raise ApiError(
                response.status_code,
                response.text,
                url=f"{self._config.api_url}{path}",
            )

        return response

    async def get_categories(self) -> list[Category]:
        """First page of categories."""
        page = await self.categories.list()
        return page.data

    # =========================================================================
    # INTERNAL METHODS
    # =========================================================================

    def _auth_options(self) -> dict[str, Any]:
        return {
            "http_client": self._http_client,
            "timeout": self._config.timeout,
            "signing_timeout": self._config.signing_timeout or None,
        }

    def _rebind_auth(self, wallet_adapter: WalletAdapter) -> AuthManager:
        """Build an AuthManager for ``wallet_adapter`` on the current HTTP client."""
        return AuthManager(
            wallet_adapter,
            self._config.api_url,  # type: ignore[arg-type]
            **self._auth_options(),
        )


# =============================================================================
# SYNCHRONOUS WRAPPER
# =============================================================================


class SyncGrapevineClient:
    """
    Synchronous wrapper around GrapevineClient.

    For callers that don't use async/await. Signing with an external
    wallet still blocks until the wallet answers.

    Usage:
        with SyncGrapevineClient(private_key="0x...") as client:
            headers = client.get_auth_headers()
            categories = client.categories.list()
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Initialize the sync client (same args as GrapevineClient)."""
        self._async_client = GrapevineClient(*args, **kwargs)
        self._loop: asyncio.AbstractEventLoop | None = None

    def __enter__(self) -> SyncGrapevineClient:
        """Sync context manager entry."""
        self._loop = asyncio.new_event_loop()
        self._loop.run_until_complete(self._async_client.connect())
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Sync context manager exit."""
        if self._loop:
            self._loop.run_until_complete(self._async_client.close())
            self._loop.close()
            self._loop = None

    def _run(self, coro: Awaitable[T]) -> T:
        """Run a coroutine synchronously."""
        if not self._loop:
            raise ConfigurationError("Client not connected. Use with statement.")
        return self._loop.run_until_complete(coro)

    def get_wallet_address(self) -> str:
        return self._async_client.get_wallet_address()

    def get_auth_headers(self, timeout: float | None = None) -> AuthHeaders:
        """Sign a fresh nonce (blocking)."""
        return self._run(self._async_client.get_auth_headers(timeout=timeout))

    @property
    def categories(self) -> SyncCategoriesInterface:
        """Get the sync categories interface."""
        return SyncCategoriesInterface(self)

    @property
    def wallets(self) -> SyncWalletsInterface:
        """Get the sync wallets interface."""
        return SyncWalletsInterface(self)


class SyncCategoriesInterface:
    """Synchronous categories interface."""

    def __init__(self, client: SyncGrapevineClient) -> None:
        self._client = client

    def list(self, **kwargs: Any) -> CategoryPage:
        """List one page of categories (blocking)."""
        return self._client._run(self._client._async_client.categories.list(**kwargs))

    def get(self, category_id: str) -> Category:
        """Get a category (blocking)."""
        return self._client._run(self._client._async_client.categories.get(category_id))


class SyncWalletsInterface:
    """Synchronous wallets interface."""

    def __init__(self, client: SyncGrapevineClient) -> None:
        self._client = client

    def get(self, wallet_id: str) -> Wallet:
        """Get a wallet (blocking)."""
        return self._client._run(self._client._async_client.wallets.get(wallet_id))

    def get_by_address(self, address: str) -> Wallet:
        """Get a wallet by address (blocking)."""
        return self._client._run(self._client._async_client.wallets.get_by_address(address))

    def get_stats(self, wallet_id: str) -> WalletStats:
        """Get wallet statistics (blocking)."""
        return self._client._run(self._client._async_client.wallets.get_stats(wallet_id))

    def update(
        self,
        wallet_id: str,
        *,
        username: str | None = None,
        picture_url: str | None = None,
    ) -> Wallet:
        """Update the wallet profile (blocking)."""
        return self._client._run(
            self._client._async_client.wallets.update(
                wallet_id, username=username, picture_url=picture_url
            )
        )

    def get_me(self) -> Wallet:
        """Get the configured wallet's profile (blocking)."""
        return self._client._run(self._client._async_client.wallets.get_me())


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


@asynccontextmanager
async def create_client(
    private_key: str | None = None,
    wallet_adapter: WalletAdapter | None = None,
    **kwargs: Any,
) -> AsyncIterator[GrapevineClient]:
    """
    Convenience function to create a connected GrapevineClient.

    Args:
        private_key: 0x-prefixed private key.
        wallet_adapter: Adapter to use instead of a private key.
        **kwargs: Additional GrapevineClient arguments.

    Yields:
        Connected GrapevineClient.

    Usage:
        async with create_client(private_key="0x...") as client:
            me = await client.wallets.get_me()
    """
    client = GrapevineClient(
        private_key=private_key,
        wallet_adapter=wallet_adapter,
        **kwargs,
    )
    try:
        await client.connect()
        yield client
    finally:
        await client.close()
