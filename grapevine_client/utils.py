"""
Grapevine Client - Utility Functions

Helper functions for:
- Auth header and API response models
- Input validation
- Logging utilities
"""

import logging
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ValidationError

logger = logging.getLogger("grapevine")

WALLET_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
PRIVATE_KEY_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")


# =============================================================================
# DATA MODELS
# =============================================================================


class AuthHeaders(BaseModel):
    """
    Proof of wallet control for a single authenticated API call.

    Built fresh by ``AuthManager.get_auth_headers()``. The server treats
    each nonce as single-use, so instances must not be reused across
    requests.
    """

    wallet_address: str = Field(alias="x-wallet-address")
    signature: str = Field(alias="x-signature")
    message: str = Field(alias="x-message", description="The exact challenge signed")
    timestamp: int = Field(alias="x-timestamp", description="Unix seconds at assembly")
    chain_id: str = Field(alias="x-chain-id")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_headers(self) -> dict[str, str]:
        """Render as HTTP headers (all values strings)."""
        return {
            "x-wallet-address": self.wallet_address,
            "x-signature": self.signature,
            "x-message": self.message,
            "x-timestamp": str(self.timestamp),
            "x-chain-id": self.chain_id,
        }


class Category(BaseModel):
    """A feed category."""

    id: str
    name: str
    description: str | None = None
    icon_url: str | None = None
    is_active: bool = True
    created_at: int
    updated_at: int


class CategoryPage(BaseModel):
    """One page of categories."""

    data: list[Category] = Field(default_factory=list)
    next_page_token: str | None = None
    has_more: bool = False

    @classmethod
    def from_api_response(cls, body: dict[str, Any]) -> "CategoryPage":
        """
        Build a page from the API's ``{data, pagination}`` envelope.

        Args:
            body: The parsed JSON response body.

        Returns:
            Parsed CategoryPage.
        """
        pagination = body.get("pagination") or {}
        return cls(
            data=body.get("data") or [],
            next_page_token=pagination.get("next_page_token") or None,
            has_more=bool(pagination.get("has_more", False)),
        )


class Wallet(BaseModel):
    """A wallet profile."""

    id: str
    wallet_address: str
    wallet_address_network: str
    username: str | None = None
    picture_url: str | None = None
    created_at: int
    updated_at: int


class WalletStats(BaseModel):
    """Aggregated statistics for a wallet."""

    wallet_id: str
    total_feeds_created: int = 0
    total_entries_published: int = 0
    total_revenue_earned: str = "0"
    total_items_sold: int = 0
    unique_buyers_count: int = 0
    total_purchases_made: int = 0
    total_amount_spent: str = "0"
    unique_feeds_purchased_from: int = 0
    revenue_rank: int | None = None
    purchases_rank: int | None = None
    last_calculated_at: int
    created_at: int
    updated_at: int


# =============================================================================
# LOGGING UTILITIES
# =============================================================================


class AuthLogger:
    """
    Structured logger for the authentication handshake.

    Wallet addresses are shortened and challenge messages truncated.
    Key material is never passed here.
    """

    def __init__(self, logger_name: str = "grapevine.auth") -> None:
        self.logger = logging.getLogger(logger_name)

    def log_nonce_request(self, api_url: str, wallet_address: str) -> None:
        """Log a nonce request."""
        self.logger.debug(
            "Requesting auth nonce",
            extra={
                "event": "nonce_request",
                "api_url": api_url,
                "wallet": redact_address(wallet_address),
            },
        )

    def log_nonce_failure(
        self,
        wallet_address: str,
        status: int,
        reason: str | None = None,
    ) -> None:
        """Log a failed nonce request."""
        self.logger.warning(
            "Nonce request failed",
            extra={
                "event": "nonce_failure",
                "wallet": redact_address(wallet_address),
                "status": status,
                "reason": reason,
            },
        )

    def log_signed(self, wallet_address: str, chain_id: str, message: str) -> None:
        """Log a completed challenge signature."""
        self.logger.debug(
            "Challenge signed",
            extra={
                "event": "challenge_signed",
                "wallet": redact_address(wallet_address),
                "chain_id": chain_id,
                "challenge": message[:16] + "..." if len(message) > 16 else message,
            },
        )

    def log_signing_failure(self, wallet_address: str, error: str) -> None:
        """Log a signing failure."""
        self.logger.warning(
            "Challenge signing failed",
            extra={
                "event": "signing_failure",
                "wallet": redact_address(wallet_address),
                "error": error,
            },
        )


def redact_address(address: str) -> str:
    """Shorten a wallet address to ``0x1234...abcd`` for logs."""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


# =============================================================================
# VALIDATION UTILITIES
# =============================================================================


def validate_api_url(url: str) -> str:
    """
    Validate and normalize an API base URL.

    Args:
        url: The API base URL to validate.

    Returns:
        Normalized URL.

    Raises:
        ValueError: If URL is invalid.
    """
    if not url:
        raise ValueError("API URL cannot be empty")

    url = url.rstrip("/")

    if not url.startswith(("http://", "https://")):
        raise ValueError(f"Invalid URL scheme: {url}")

    return url


def is_private_key(value: str) -> bool:
    """Check for a 0x-prefixed 32-byte hex key."""
    return bool(PRIVATE_KEY_RE.match(value))


def validate_required_string(field: str, value: Any) -> str:
    """Require a non-empty string."""
    if not isinstance(value, str) or not value:
        raise ValidationError(field, value, "non-empty string")
    return value


def validate_optional_string(field: str, value: Any) -> str | None:
    """Allow ``None``; otherwise require a non-empty string."""
    if value is None:
        return None
    if value == "":
        raise ValidationError(
            field,
            value,
            "non-empty string or None",
            "Pass None instead of an empty string",
        )
    if not isinstance(value, str):
        raise ValidationError(field, value, "string")
    return value


def validate_optional_url(field: str, value: Any) -> str | None:
    """Allow ``None``; otherwise require an http(s) URL."""
    value = validate_optional_string(field, value)
    if value is not None and not re.match(r"^https?://.+", value):
        raise ValidationError(
            field, value, "http(s) URL", "URLs must start with http:// or https://"
        )
    return value


def validate_wallet_address(address: Any) -> str:
    """Require a 0x-prefixed 20-byte hex address."""
    address = validate_required_string("address", address)
    if not WALLET_ADDRESS_RE.match(address):
        raise ValidationError(
            "address", address, "0x followed by 40 hex characters"
        )
    return address
