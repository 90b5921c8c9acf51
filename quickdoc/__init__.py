"""
quickdoc - A key-value store on top of document databases.

This package provides an asynchronous, string-keyed store with:
- Dot-notation access into nested values of a single record
- Soft TTL expiration enforced at read time
- Child stores on their own or a borrowed connection
- SQLite and Redis document backends
"""

__version__ = "0.1.0"

from .config.settings import Settings
from .database.core import Database
from .models.record import AllData, AllQueryOptions, DatabaseOptions, Record

__all__ = ["Database", "Settings", "DatabaseOptions", "AllData", "AllQueryOptions", "Record"]
