"""
Grapevine Client - Exception Classes

Typed exceptions for wallet authentication and API access.

Every error carries a human-readable message plus a structured
``details`` dict so callers can decide whether to retry (fetch a
fresh nonce) or abort.
"""

from typing import Any


class GrapevineError(Exception):
    """Base exception for all Grapevine SDK errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Optional structured details for debugging.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(GrapevineError):
    """
    Raised when the client or auth manager is misconfigured.

    Check constructor arguments and GRAPEVINE_* environment variables.
    """

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize with configuration context.

        Args:
            message: Description of the configuration issue.
            config_key: The problematic configuration key.
            details: Optional additional details.
        """
        self.config_key = config_key
        full_details = details or {}
        if config_key:
            full_details["config_key"] = config_key
        super().__init__(message, full_details)


# =============================================================================
# AUTHENTICATION & WALLET ERRORS
# =============================================================================


class AuthError(GrapevineError):
    """Base class for wallet and authentication errors."""

    pass


class InvalidPrivateKeyError(AuthError):
    """
    Raised when a private key is malformed.

    Keys must be 0x-prefixed hex (66 characters in total). Only a
    redacted prefix of the offending key is kept in ``details``.
    """

    def __init__(
        self,
        key: str | None = None,
        message: str = "Invalid private key format. Expected 0x followed by 64 hex characters.",
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if key:
            full_details["provided_key"] = f"{key[:6]}..." if len(key) > 6 else "..."
        super().__init__(message, full_details)


class AdapterUnavailableError(AuthError):
    """
    Raised when an external wallet client cannot back an adapter.

    Happens at construction when the client is missing, or exposes
    no account address or no chain id.
    """

    def __init__(
        self,
        message: str,
        missing: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.missing = missing
        full_details = details or {}
        if missing:
            full_details["missing"] = missing
        super().__init__(message, full_details)


class NonceRequestFailedError(AuthError):
    """
    Raised when the nonce endpoint does not hand out a challenge.

    Either the response status was outside the success range, or the
    body carried no ``message`` to sign. Nothing is retried.
    """

    def __init__(
        self,
        status: int,
        reason: str | None = None,
        response: str | None = None,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize with the nonce response context.

        Args:
            status: HTTP status code of the nonce response.
            reason: Short machine-readable reason, if not a status failure.
            response: Raw response body (truncated in details).
            message: Optional custom message.
            details: Optional additional details.
        """
        self.status = status
        self.reason = reason
        self.response = response
        default_msg = f"Nonce request failed: {status}"
        if reason:
            default_msg = f"{default_msg} ({reason})"
        full_details = details or {}
        full_details["status"] = status
        if reason:
            full_details["reason"] = reason
        if response:
            full_details["response"] = response[:200]
        super().__init__(message or default_msg, full_details)


class SigningError(AuthError):
    """
    Raised when a wallet fails to sign a challenge.

    Covers signer errors, user rejection in an external wallet, and
    an expired signing deadline (``reason == "timeout"``).
    """

    def __init__(
        self,
        message: str = "Failed to sign message.",
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.reason = reason
        full_details = details or {}
        if reason:
            full_details["reason"] = reason
        super().__init__(message, full_details)


class NoWalletError(AuthError):
    """Raised when an authenticated call is made without a wallet."""

    def __init__(
        self,
        message: str = "No wallet configured for authentication.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)


# =============================================================================
# NETWORK & API ERRORS
# =============================================================================


class NetworkError(GrapevineError):
    """Base class for network-related errors."""

    pass


class ApiUnavailableError(NetworkError):
    """Raised when the Grapevine API cannot be reached."""

    def __init__(
        self,
        url: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.url = url
        full_details = details or {}
        full_details["url"] = url
        super().__init__(message or f"Grapevine API unavailable at {url}", full_details)


class ApiError(NetworkError):
    """Raised when the API answers with a non-success status."""

    def __init__(
        self,
        status: int,
        response: str = "",
        url: str | None = None,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize with response information.

        Args:
            status: HTTP status code.
            response: Raw response body.
            url: Requested URL.
            message: Optional custom message.
            details: Optional additional details.
        """
        self.status = status
        self.response = response
        self.url = url
        full_details = details or {}
        full_details["status"] = status
        full_details["url"] = url or "unknown"
        full_details["response"] = (
            response[:200] + "..." if len(response) > 200 else response
        )
        super().__init__(
            message or f"API request failed with status {status}", full_details
        )

    @property
    def suggestion(self) -> str:
        """Hint for the most likely fix, keyed on status."""
        if self.status >= 500:
            return "This is a server error. Try again later."
        if self.status == 401:
            return "Authentication failed. Check your wallet connection or private key."
        if self.status == 402:
            return "Payment required for this operation."
        if self.status == 404:
            return "The requested resource was not found. Check the IDs you passed."
        return "Check your request parameters and try again."


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(GrapevineError):
    """Raised when a resource call receives an invalid argument."""

    def __init__(
        self,
        field: str,
        value: Any,
        expected: str,
        suggestion: str | None = None,
    ) -> None:
        self.field = field
        self.value = value
        message = f"Invalid {field}: expected {expected}, got {value!r}"
        if suggestion:
            message = f"{message}. {suggestion}"
        super().__init__(message, {"field": field, "expected": expected})
