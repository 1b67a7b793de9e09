"""
Shared error handling for 254Carbon Access Layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for Access Layer services."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class AuthenticationError(AccessLayerException):
    """Authentication-related errors."""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class TokenVerificationError(AuthenticationError):
    """A signed token could not be parsed or its signature did not verify."""

    def __init__(self, message: str = "Token verification failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.code = "TOKEN_VERIFICATION_ERROR"


class ConfigurationError(AccessLayerException):
    """Missing or invalid startup configuration."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ExternalServiceError(AccessLayerException):
    """External service errors."""

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)


class AccountStoreError(ExternalServiceError):
    """The account store could not be queried or updated."""

    def __init__(self, message: str = "Account store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("account-store", message, details)
