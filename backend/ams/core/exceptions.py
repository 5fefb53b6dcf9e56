"""Custom exceptions for application-specific error handling."""

from __future__ import annotations

from typing import Any, Dict, Optional


class AMSException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class NotFoundError(AMSException):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "not_found", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="NOT_FOUND", details=details, status_code=404)


class ConflictError(AMSException):
    """Raised when a request conflicts with current state."""

    def __init__(self, message: str = "conflict", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="CONFLICT", details=details, status_code=409)


class BadRequestError(AMSException):
    """Raised when request is invalid."""

    def __init__(self, message: str = "bad_request", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="BAD_REQUEST", details=details, status_code=400)


# ===== CONFIGURATION / STORAGE EXCEPTIONS =====


class ConfigurationError(AMSException):
    """Raised when a required setting is missing or unusable."""

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else {}
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, status_code=500)


class PersistenceError(AMSException):
    """Raised when the store fails to persist pending changes."""

    def __init__(self, message: str = "persistence_failed"):
        super().__init__(message, error_code="PERSISTENCE_ERROR", status_code=503)


class TokenConflictError(PersistenceError):
    """Raised when a write loses an optimistic concurrency check."""

    def __init__(self, message: str = "concurrent_token_update"):
        super().__init__(message)
        self.error_code = "TOKEN_CONFLICT"
        self.status_code = 409


# ===== AUTHENTICATION EXCEPTIONS =====


class AuthenticationException(AMSException):
    """Base exception for authentication errors."""


class InvalidAPIKeyError(AuthenticationException):
    """Raised when API key is missing, unknown, inactive or expired."""

    def __init__(self, message: str = "invalid_api_key"):
        super().__init__(message, error_code="INVALID_API_KEY", status_code=401)


class InvalidTokenError(AuthenticationException):
    """Raised when an access token fails signature, issuer, audience or lifetime checks."""

    def __init__(self, message: str = "invalid_token"):
        super().__init__(message, error_code="INVALID_TOKEN", status_code=401)


class ExpiredTokenError(InvalidTokenError):
    """Raised when token has expired."""

    def __init__(self, message: str = "token_expired"):
        super().__init__(message)
        self.error_code = "EXPIRED_TOKEN"
