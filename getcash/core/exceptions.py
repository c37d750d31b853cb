"""
Application exceptions.

Every error carries the HTTP status it maps to; the handler registered in
``getcash.main`` renders them as ``{"message": ..., "code": ...}``.
"""

from typing import Any, Dict, Optional


class GetCashError(Exception):
    """Base exception for the GetCash backend."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(GetCashError):
    """Missing or invalid fields, under-threshold amounts."""
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationError(GetCashError):
    status_code = 401

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "AUTHENTICATION_ERROR", details)


class PermissionDeniedError(GetCashError):
    status_code = 403

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "PERMISSION_DENIED", details)


class NotFoundError(GetCashError):
    status_code = 404

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NOT_FOUND", details)


class ConflictError(GetCashError):
    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFLICT", details)


class WalletBusyError(GetCashError):
    """Another request holds the user's wallet lock."""
    status_code = 429

    def __init__(self, message: str = "Wallet is busy, please retry", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "WALLET_BUSY", details)


class PersistenceError(GetCashError):
    """The database rejected a write; the session has been rolled back."""
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "PERSISTENCE_ERROR", details)
