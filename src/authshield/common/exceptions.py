"""Custom exceptions for AuthShield.

Provides a hierarchy of exceptions for genuine faults. Expected outcomes
(lockout, login alerts, session-limit reached) are ordinary return values
and never raise.
All AuthShield exceptions inherit from AuthShieldException.
"""

from typing import Any, Dict, Optional


class AuthShieldException(Exception):
    """Base exception for all AuthShield errors.
    
    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """
    
    def __init__(
        self,
        message: str,
        code: str = "AUTHSHIELD_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(AuthShieldException):
    """Raised when configuration is invalid or missing."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIG_ERROR", details=details)


class ValidationError(AuthShieldException):
    """Raised when input validation fails."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class StorageError(AuthShieldException):
    """Raised when the state store cannot be read or written.
    
    Callers must treat this as a hard failure: a security control that
    cannot read its state denies rather than allows.
    """
    
    def __init__(
        self,
        message: str,
        namespace: Optional[str] = None,
        key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.namespace = namespace
        self.key = key
        details = details or {}
        if namespace is not None:
            details["namespace"] = namespace
        if key is not None:
            details["key"] = key
        super().__init__(message, code="STORAGE_ERROR", details=details)
