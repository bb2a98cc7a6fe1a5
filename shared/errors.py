"""
Shared error handling for the enterprise auth service.

Token and input errors are caller-safe and are reported verbatim. Exchange,
directory and internal errors are redacted in production: the caller only
receives an error id, the full context goes to the operational log.
"""

import time
import uuid
from typing import Dict, Any, Optional

from pydantic import BaseModel, Field


def generate_error_id() -> str:
    """Generate a short opaque error identifier."""
    return uuid.uuid4().hex[:8]


class ErrorBody(BaseModel):
    """Error detail block of the response envelope."""

    code: str
    message: str
    error_id: str
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    details: Dict[str, Any] = {}


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = False
    error: ErrorBody


def success_response(data: Any) -> Dict[str, Any]:
    """Wrap a payload in the success envelope."""
    return {"success": True, "data": data}


class AccessLayerException(Exception):
    """Base exception for the service."""

    status_code: int = 400
    # Whether message and details may be shown to callers in production.
    exposed: bool = True

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, error_id: str, redact: bool = False) -> ErrorResponse:
        """Convert to error response."""
        if redact and not self.exposed:
            return ErrorResponse(
                error=ErrorBody(
                    code=self.code,
                    message=redacted_message(error_id),
                    error_id=error_id,
                )
            )

        return ErrorResponse(
            error=ErrorBody(
                code=self.code,
                message=self.message,
                error_id=error_id,
                details=self.details,
            )
        )


def redacted_message(error_id: str) -> str:
    return f"An unexpected error occurred. Please contact support with Error ID: {error_id}"


class ConfigurationError(AccessLayerException):
    """Fatal startup misconfiguration."""

    status_code = 500
    exposed = False

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


# Token layer

class AuthenticationError(AccessLayerException):
    """Authentication-related errors."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None,
                 code: str = "AUTHENTICATION_ERROR"):
        super().__init__(code, message, details)


class MalformedTokenError(AuthenticationError):
    """Token is missing or not three non-empty segments."""

    def __init__(self, message: str = "Malformed token", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="MALFORMED_TOKEN")


class BadSignatureError(AuthenticationError):
    """Token signature does not match."""

    def __init__(self, message: str = "Invalid token signature", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="BAD_SIGNATURE")


class TokenExpiredError(AuthenticationError):
    """Token is past its expiry plus skew buffer."""

    def __init__(self, message: str = "Token expired", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="TOKEN_EXPIRED")


# Caller input

class ValidationError(AccessLayerException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None,
                 code: str = "VALIDATION_ERROR"):
        super().__init__(code, message, details)


class InvalidArgumentError(ValidationError, ValueError):
    """Invalid argument passed to an operation."""

    def __init__(self, message: str = "Invalid argument", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="INVALID_ARGUMENT")


class NotFoundError(AccessLayerException):
    """Unknown route or resource."""

    status_code = 404

    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("RESOURCE_NOT_FOUND", message, details)


# Gateway exchange

class ExchangeError(AccessLayerException):
    """Cryptographic or transport failure during the gateway exchange."""

    status_code = 500
    exposed = False


class EncryptionFailedError(ExchangeError):
    def __init__(self, message: str = "Sensitive data encryption failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("ENCRYPTION_FAILED", message, details)


class SigningFailedError(ExchangeError):
    def __init__(self, message: str = "Request signing failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("SIGNING_FAILED", message, details)


class SignatureVerificationFailedError(ExchangeError):
    def __init__(self, message: str = "Signature verification failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("SIGNATURE_VERIFICATION_FAILED", message, details)


class DecryptionFailedError(ExchangeError):
    def __init__(self, message: str = "Failed to decrypt sensitive data", details: Optional[Dict[str, Any]] = None):
        super().__init__("DECRYPTION_FAILED", message, details)


class GatewayHttpError(ExchangeError):
    """Gateway returned a non-200 status or could not be reached."""

    def __init__(self, message: str = "Gateway request failed", status: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("status_code", status)
        details.setdefault("retryable", status is None or status >= 500)
        self.status = status
        super().__init__("GATEWAY_HTTP_ERROR", message, details)

    @property
    def retryable(self) -> bool:
        return bool(self.details.get("retryable"))


class GatewayResponseError(ExchangeError):
    """Verified gateway reply could not be decoded into a result."""

    def __init__(self, message: str = "Invalid gateway response", details: Optional[Dict[str, Any]] = None):
        super().__init__("GATEWAY_RESPONSE_ERROR", message, details)


# Directory cache

class SourceNotFoundError(AccessLayerException):
    """Backing file of a directory cache is missing."""

    status_code = 500
    exposed = False

    def __init__(self, message: str = "Directory source not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("SOURCE_NOT_FOUND", message, details)


class DirectoryLoadError(AccessLayerException):
    """Backing file exists but could not be read or parsed."""

    status_code = 500
    exposed = False

    def __init__(self, message: str = "Failed to load directory source", details: Optional[Dict[str, Any]] = None):
        super().__init__("DIRECTORY_LOAD_ERROR", message, details)
