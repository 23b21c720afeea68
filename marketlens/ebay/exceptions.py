"""
Exceptions raised by the eBay search client.
"""

from typing import Dict, Optional


class EbayApiError(Exception):
    """Base exception for eBay API errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict] = None):
        """
        Initialize eBay API error.

        Args:
            message: Error message
            error_code: eBay error code, if available
            details: Additional error details
        """
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(EbayApiError):
    """Exception for missing credentials or an unknown environment."""
    pass


class AuthenticationError(EbayApiError):
    """Exception for authentication failures."""
    pass


class InvalidClientError(AuthenticationError):
    """eBay explicitly rejected the key pair as unknown or malformed."""
    pass


class BothEnvironmentsRejectedError(AuthenticationError):
    """Neither Production nor Sandbox accepted the key pair."""
    pass


class TransportError(EbayApiError):
    """Exception for connection and timeout errors."""
    pass


class InvalidRequestError(EbayApiError):
    """Exception for invalid request errors."""
    pass


class SearchError(EbayApiError):
    """Exception for a failed search call."""
    pass
