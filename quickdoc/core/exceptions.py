"""Custom exceptions for quickdoc."""

from typing import Any, Dict, Optional


class QuickDocError(Exception):
    """Base exception for all quickdoc errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [self.message]
        if self.error_code:
            parts.append(f"(code: {self.error_code})")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ConfigurationError(QuickDocError):
    """Raised when there's a configuration issue."""

    def __init__(self, message: str, config_key: Optional[str] = None) -> None:
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, "CONFIGURATION_ERROR", details)


class InvalidKeyError(QuickDocError):
    """Raised when a key is empty or malformed."""

    def __init__(self, message: str, key: Any = None) -> None:
        details = {"key": key} if key is not None else {}
        super().__init__(message, "INVALID_KEY", details)


class NotReadyError(QuickDocError):
    """Raised when an operation is attempted while the connection is not ready."""

    def __init__(self, state: str, operation: Optional[str] = None) -> None:
        details = {"state": state}
        if operation:
            details["operation"] = operation
        super().__init__(f"Database is not ready (state: {state})", "NOT_READY", details)


class TypeMismatchError(QuickDocError):
    """Raised when a stored or supplied value has the wrong type for an operation."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        details = {"key": key} if key else {}
        super().__init__(message, "TYPE_MISMATCH", details)


class BackendError(QuickDocError):
    """Raised when the document backend fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        collection: Optional[str] = None,
    ) -> None:
        details = {}
        if operation:
            details["operation"] = operation
        if collection:
            details["collection"] = collection
        super().__init__(message, "BACKEND_ERROR", details)
