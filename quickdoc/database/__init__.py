"""
Key-value database over a document backend.

This package provides:

- **Database**: the facade exposing get/set/has/delete/push/pull/add/subtract/all
- **Operations**: per-key reads and read-modify-write mutations
- **Queries**: collection-wide listing, counting and maintenance
- **Codec**: dot-path extract/inject/remove inside a record's payload
- **Expiration**: TTL stamping at write time and filtering at read time
- **Hierarchy**: child databases with their own or a borrowed connection
"""

from .codec import MISSING, ValueKind, extract, inject, kind_of, remove
from .core import Database
from .expiration import ExpirationPolicy
from .hierarchy import HierarchyManager

__all__ = [
    "Database",
    "ExpirationPolicy",
    "HierarchyManager",
    "MISSING",
    "ValueKind",
    "extract",
    "inject",
    "kind_of",
    "remove",
]
