"""Tests for utility functions and data models."""

import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from grapevine_client.exceptions import ValidationError
from grapevine_client.utils import (
    AuthHeaders,
    AuthLogger,
    CategoryPage,
    Wallet,
    WalletStats,
    is_private_key,
    redact_address,
    validate_api_url,
    validate_optional_string,
    validate_optional_url,
    validate_required_string,
    validate_wallet_address,
)

ADDRESS = "0x" + "ab" * 20


# =============================================================================
# AuthHeaders Tests
# =============================================================================


class TestAuthHeaders:
    """Tests for the AuthHeaders model."""

    def test_to_headers(self):
        """Test rendering as HTTP headers."""
        headers = AuthHeaders(
            wallet_address=ADDRESS,
            signature="0xsig",
            message="nonce-1",
            timestamp=1700000000,
            chain_id="8453",
        )

        assert headers.to_headers() == {
            "x-wallet-address": ADDRESS,
            "x-signature": "0xsig",
            "x-message": "nonce-1",
            "x-timestamp": "1700000000",
            "x-chain-id": "8453",
        }

    def test_parse_from_header_names(self):
        """Test parsing from the x-* header names."""
        headers = AuthHeaders.model_validate(
            {
                "x-wallet-address": ADDRESS,
                "x-signature": "0xsig",
                "x-message": "nonce-1",
                "x-timestamp": "1700000000",
                "x-chain-id": "84532",
            }
        )

        assert headers.timestamp == 1700000000
        assert headers.chain_id == "84532"

    def test_is_immutable(self):
        """Test instances cannot be modified."""
        headers = AuthHeaders(
            wallet_address=ADDRESS,
            signature="0xsig",
            message="nonce-1",
            timestamp=1,
            chain_id="8453",
        )

        with pytest.raises(PydanticValidationError):
            headers.signature = "0xother"


# =============================================================================
# Resource Model Tests
# =============================================================================


class TestCategoryPage:
    """Tests for CategoryPage."""

    def test_from_api_response(self):
        """Test parsing the paginated envelope."""
        page = CategoryPage.from_api_response(
            {
                "data": [
                    {
                        "id": "cat-1",
                        "name": "Alpha",
                        "description": None,
                        "icon_url": None,
                        "is_active": True,
                        "created_at": 1,
                        "updated_at": 2,
                    }
                ],
                "pagination": {"page_size": 20, "next_page_token": "tok", "has_more": True},
            }
        )

        assert page.data[0].name == "Alpha"
        assert page.next_page_token == "tok"
        assert page.has_more is True

    def test_missing_pagination(self):
        """Test defaults when pagination is absent."""
        page = CategoryPage.from_api_response({"data": []})

        assert page.data == []
        assert page.next_page_token is None
        assert page.has_more is False


class TestWalletModels:
    """Tests for wallet models."""

    def test_wallet(self):
        """Test parsing a wallet response."""
        wallet = Wallet.model_validate(
            {
                "id": "w-1",
                "wallet_address": ADDRESS,
                "wallet_address_network": "base-sepolia",
                "username": "alice",
                "picture_url": None,
                "created_at": 1,
                "updated_at": 2,
            }
        )

        assert wallet.username == "alice"
        assert wallet.wallet_address_network == "base-sepolia"

    def test_wallet_stats(self):
        """Test parsing wallet statistics."""
        stats = WalletStats.model_validate(
            {
                "wallet_id": "w-1",
                "total_feeds_created": 3,
                "total_revenue_earned": "12.5",
                "last_calculated_at": 5,
                "created_at": 1,
                "updated_at": 2,
            }
        )

        assert stats.total_feeds_created == 3
        assert stats.total_revenue_earned == "12.5"
        assert stats.revenue_rank is None


# =============================================================================
# Logging Tests
# =============================================================================


class TestAuthLogger:
    """Tests for AuthLogger."""

    def test_redact_address(self):
        """Test address shortening."""
        assert redact_address(ADDRESS) == "0xabab...abab"
        assert redact_address("0x1234") == "0x1234"

    def test_nonce_failure_logged(self, caplog):
        """Test nonce failures are logged with redacted addresses."""
        auth_logger = AuthLogger()

        with caplog.at_level(logging.WARNING, logger="grapevine.auth"):
            auth_logger.log_nonce_failure(ADDRESS, 500)

        record = caplog.records[0]
        assert record.event == "nonce_failure"
        assert record.status == 500
        assert record.wallet == "0xabab...abab"

    def test_signed_truncates_challenge(self, caplog):
        """Test long challenges are truncated."""
        auth_logger = AuthLogger()

        with caplog.at_level(logging.DEBUG, logger="grapevine.auth"):
            auth_logger.log_signed(ADDRESS, "8453", "Sign this message to authenticate: nonce-1")

        assert caplog.records[0].challenge == "Sign this messag..."


# =============================================================================
# Validation Tests
# =============================================================================


class TestValidateApiUrl:
    """Tests for validate_api_url."""

    def test_valid_https(self):
        """Test valid HTTPS URL."""
        assert validate_api_url("https://api.grapevine.fyi") == "https://api.grapevine.fyi"

    def test_strips_trailing_slash(self):
        """Test trailing slash removal."""
        assert validate_api_url("http://localhost:8080/") == "http://localhost:8080"

    def test_empty_raises(self):
        """Test empty URL raises."""
        with pytest.raises(ValueError, match="empty"):
            validate_api_url("")

    def test_invalid_scheme_raises(self):
        """Test invalid scheme raises."""
        with pytest.raises(ValueError, match="scheme"):
            validate_api_url("ws://api.grapevine.fyi")


class TestValidators:
    """Tests for argument validators."""

    def test_is_private_key(self):
        """Test private key shape check."""
        assert is_private_key("0x" + "ab" * 32) is True
        assert is_private_key("ab" * 32) is False
        assert is_private_key("0x1234") is False

    def test_required_string(self):
        """Test required strings."""
        assert validate_required_string("wallet_id", "w-1") == "w-1"

        with pytest.raises(ValidationError) as exc:
            validate_required_string("wallet_id", "")

        assert exc.value.field == "wallet_id"

    def test_optional_string(self):
        """Test optional strings."""
        assert validate_optional_string("search", None) is None
        assert validate_optional_string("search", "news") == "news"

        with pytest.raises(ValidationError, match="Pass None"):
            validate_optional_string("search", "")

        with pytest.raises(ValidationError):
            validate_optional_string("search", 42)

    def test_optional_url(self):
        """Test optional URLs."""
        assert validate_optional_url("picture_url", "https://x.io/a.png") == "https://x.io/a.png"

        with pytest.raises(ValidationError, match="http"):
            validate_optional_url("picture_url", "ftp://x.io/a.png")

    def test_wallet_address(self):
        """Test wallet address shape check."""
        assert validate_wallet_address(ADDRESS) == ADDRESS

        with pytest.raises(ValidationError):
            validate_wallet_address("0x1234")
