"""
Grapevine Client - Wallet Authentication

``AuthManager`` proves wallet control to the Grapevine API with a
challenge-response handshake:

1. POST the wallet address to ``/v1/auth/nonce``
2. Sign the returned challenge with the wallet adapter
3. Package address, signature, challenge, timestamp and chain id
   into ``x-*`` request headers

Every call runs the whole handshake. Nonces are single-use on the
server, so nothing is cached between calls.

Usage:
    auth = AuthManager(PrivateKeyAdapter(key, is_testnet=True), api_url)
    headers = await auth.get_auth_headers()
    response = await http.get(url, headers=headers.to_headers())
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from .adapters import PrivateKeyAdapter, WalletAdapter
from .exceptions import (
    ApiUnavailableError,
    ConfigurationError,
    GrapevineError,
    NonceRequestFailedError,
    SigningError,
)
from .utils import AuthHeaders, AuthLogger, validate_api_url

NONCE_PATH = "/v1/auth/nonce"


class AuthManager:
    """
    Runs the nonce/signature handshake for one wallet adapter.

    Construct with an adapter, or with a raw private key through
    ``AuthManager.from_private_key`` (passing the key string as the
    first positional argument works too).

    Concurrent ``get_auth_headers()`` calls are safe: each fetches its
    own nonce and nothing on the manager is written after construction.
    """

    def __init__(
        self,
        wallet_adapter: WalletAdapter | str,
        api_url: str,
        is_testnet: bool | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        signing_timeout: float | None = None,
    ) -> None:
        """
        Initialize the auth manager.

        Args:
            wallet_adapter: Adapter to sign with, or a 0x private key.
            api_url: Grapevine API base URL.
            is_testnet: Required when ``wallet_adapter`` is a private key.
            http_client: Shared client for nonce requests. Not closed here.
            timeout: Timeout for nonce requests made with a private client.
            signing_timeout: Default deadline for signing, in seconds.

        Raises:
            ConfigurationError: If the URL is invalid, or a private key is
                given without ``is_testnet``.
            InvalidPrivateKeyError: If the private key is malformed.
        """
        try:
            self._api_url = validate_api_url(api_url)
        except ValueError as e:
            raise ConfigurationError(str(e), config_key="api_url") from e

        if isinstance(wallet_adapter, str):
            if is_testnet is None:
                raise ConfigurationError(
                    "is_testnet is required when authenticating with a private key",
                    config_key="is_testnet",
                )
            wallet_adapter = PrivateKeyAdapter(wallet_adapter, is_testnet)
        elif not isinstance(wallet_adapter, WalletAdapter):
            raise ConfigurationError(
                f"Expected a WalletAdapter or private key, got {type(wallet_adapter).__name__}",
                config_key="wallet_adapter",
            )

        self._wallet_adapter = wallet_adapter
        self._http_client = http_client
        self._timeout = timeout
        self._signing_timeout = signing_timeout
        self._auth_logger = AuthLogger()

    @classmethod
    def from_private_key(
        cls,
        private_key: str,
        api_url: str,
        is_testnet: bool | None = None,
        **kwargs: Any,
    ) -> AuthManager:
        """
        Build a manager around a ``PrivateKeyAdapter``.

        Raises:
            ConfigurationError: If ``is_testnet`` is omitted.
            InvalidPrivateKeyError: If the key is malformed.
        """
        if is_testnet is None:
            raise ConfigurationError(
                "is_testnet is required when authenticating with a private key",
                config_key="is_testnet",
            )
        return cls(PrivateKeyAdapter(private_key, is_testnet), api_url, **kwargs)

    @property
    def api_url(self) -> str:
        return self._api_url

    @property
    def wallet_address(self) -> str:
        """Address of the wallet being authenticated."""
        return self._wallet_adapter.get_address()

    def get_wallet_client(self) -> Any:
        """Underlying signing client of the adapter."""
        return self._wallet_adapter.get_wallet_client()

    def get_wallet_adapter(self) -> WalletAdapter:
        return self._wallet_adapter

    async def get_auth_headers(self, timeout: float | None = None) -> AuthHeaders:
        """
        Run one full handshake and return fresh auth headers.

        Args:
            timeout: Signing deadline in seconds for this call. Falls back
                to the manager's ``signing_timeout``; ``None`` waits forever.

        Returns:
            AuthHeaders for a single request.

        Raises:
            NonceRequestFailedError: If the nonce endpoint fails or omits
                the challenge.
            ApiUnavailableError: If the API cannot be reached.
            SigningError: If the wallet declines, errors or times out.
        """
        wallet_address = self._wallet_adapter.get_address()
        message = await self._request_nonce(wallet_address)
        signature = await self._sign(wallet_address, message, timeout)

        chain_id = self._wallet_adapter.get_chain_id()
        self._auth_logger.log_signed(wallet_address, chain_id, message)

        return AuthHeaders(
            wallet_address=wallet_address,
            signature=signature,
            message=message,
            timestamp=int(time.time()),
            chain_id=chain_id,
        )

    # =========================================================================
    # INTERNAL METHODS
    # =========================================================================

    async def _request_nonce(self, wallet_address: str) -> str:
        """POST the wallet address and return the challenge to sign."""
        url = f"{self._api_url}{NONCE_PATH}"
        self._auth_logger.log_nonce_request(self._api_url, wallet_address)

        try:
            if self._http_client is not None:
                response = await self._post_nonce(self._http_client, url, wallet_address)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await self._post_nonce(client, url, wallet_address)
        except httpx.RequestError as e:
            raise ApiUnavailableError(self._api_url) from e

        if not response.is_success:
            self._auth_logger.log_nonce_failure(wallet_address, response.status_code)
            raise NonceRequestFailedError(response.status_code, response=response.text)

        try:
            body = response.json()
        except ValueError:
            body = None

        message = body.get("message") if isinstance(body, dict) else None
        if not isinstance(message, str) or not message:
            self._auth_logger.log_nonce_failure(
                wallet_address, response.status_code, reason="missing_message"
            )
            raise NonceRequestFailedError(
                response.status_code,
                reason="missing_message",
                response=response.text,
            )

        return message

    @staticmethod
    async def _post_nonce(
        client: httpx.AsyncClient, url: str, wallet_address: str
    ) -> httpx.Response:
        return await client.post(
            url,
            json={"wallet_address": wallet_address},
            headers={"Content-Type": "application/json"},
        )

    async def _sign(self, wallet_address: str, message: str, timeout: float | None) -> str:
        """Sign the challenge, bounded by the effective deadline if any."""
        deadline = timeout if timeout is not None else self._signing_timeout

        try:
            if deadline:
                return await asyncio.wait_for(
                    self._wallet_adapter.sign_message(message), deadline
                )
            return await self._wallet_adapter.sign_message(message)
        except asyncio.TimeoutError as e:
            self._auth_logger.log_signing_failure(wallet_address, "timeout")
            raise SigningError(
                f"Signing timed out after {deadline}s", reason="timeout"
            ) from e
        except GrapevineError as e:
            self._auth_logger.log_signing_failure(wallet_address, e.message)
            raise
        except Exception as e:
            self._auth_logger.log_signing_failure(wallet_address, str(e))
            raise SigningError(f"Wallet failed to sign: {e}", reason="signer_error") from e
