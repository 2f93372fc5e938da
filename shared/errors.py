"""
Shared error handling for the Varnish Cache purge service.
"""

from enum import Enum
from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class VarnishCacheException(Exception):
    """Base exception for the Varnish Cache service."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class AuthenticationError(VarnishCacheException):
    """Authentication-related errors."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class AuthorizationError(VarnishCacheException):
    """Authorization-related errors."""

    status_code = 403

    def __init__(self, message: str = "Authorization failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHORIZATION_ERROR", message, details)


class InvalidNonceError(VarnishCacheException):
    """Anti-forgery token missing, expired, reused or issued for another action."""

    status_code = 403

    def __init__(self, message: str = "Security check failed.", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_NONCE", message, details)


class ValidationError(VarnishCacheException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class HostUndeterminedError(VarnishCacheException):
    """No host could be resolved for a purge."""

    def __init__(self, message: str = "Failed to determine current host.", details: Optional[Dict[str, Any]] = None):
        super().__init__("HOST_UNDETERMINED", message, details)


class StorageErrorKind(str, Enum):
    """Reasons a settings write can fail."""

    PERMISSION_DENIED = "permission_denied"
    IO_ERROR = "io_error"


class StorageError(VarnishCacheException):
    """Settings document could not be written."""

    status_code = 500

    def __init__(self, kind: StorageErrorKind, message: str, details: Optional[Dict[str, Any]] = None):
        self.kind = kind
        super().__init__("CONFIG_WRITE_FAILED", message, {"kind": kind.value, **(details or {})})
