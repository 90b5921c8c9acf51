"""Document backend package.

This package provides the document stores a ``Database`` runs on:
- base: Abstract base class defining the backend interface
- sqlite: SQLite-based implementation for local persistence
- redis: Redis-based implementation for shared storage
"""

from typing import Dict, Type

from ..config.settings import Settings
from ..core.exceptions import ConfigurationError
from .base import DocumentBackend
from .redis import RedisDocumentBackend
from .sqlite import SQLiteDocumentBackend

BACKENDS: Dict[str, Type[DocumentBackend]] = {
    "sqlite": SQLiteDocumentBackend,
    "redis": RedisDocumentBackend,
    "rediss": RedisDocumentBackend,
}


def create_backend(url: str, settings: Settings) -> DocumentBackend:
    """Instantiate the backend for ``url``'s scheme (not yet connected)."""
    scheme, sep, _ = url.partition("://")
    backend_cls = BACKENDS.get(scheme.lower()) if sep else None
    if backend_cls is None:
        raise ConfigurationError(f"Unsupported database URL: {url!r}", "DATABASE_URL")
    return backend_cls(url, settings)


__all__ = [
    "DocumentBackend",
    "SQLiteDocumentBackend",
    "RedisDocumentBackend",
    "create_backend",
]
