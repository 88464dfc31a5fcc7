"""Vault PKI API exceptions."""

from __future__ import annotations


class VaultError(Exception):
    """Base exception for Vault errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message.
            details: Additional details (usually the raw response body).
        """
        super().__init__(message)
        self.message = message
        self.details = details


class VaultConnectionError(VaultError):
    """Raised when Vault cannot be reached or the request times out."""


class VaultAuthError(VaultError):
    """Raised when the token is missing, invalid or lacks the policy for the role."""


class VaultAPIError(VaultError):
    """Raised when Vault answers with an error status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
