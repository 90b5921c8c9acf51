"""Core error types and connection state for quickdoc."""

from .exceptions import (
    BackendError,
    ConfigurationError,
    InvalidKeyError,
    NotReadyError,
    QuickDocError,
    TypeMismatchError,
)
from .state import ConnectionState, ConnectionStateMachine

__all__ = [
    "QuickDocError",
    "ConfigurationError",
    "InvalidKeyError",
    "NotReadyError",
    "TypeMismatchError",
    "BackendError",
    "ConnectionState",
    "ConnectionStateMachine",
]
