"""Utility functions for quickdoc."""

from .date_utils import (
    calculate_expiry,
    format_duration,
    is_expired,
    parse_ttl,
    time_until_expiry,
    utcnow,
)
from .keys import KeyPath, get_master_key, resolve_key

__all__ = [
    # Date utilities
    "utcnow",
    "parse_ttl",
    "calculate_expiry",
    "is_expired",
    "time_until_expiry",
    "format_duration",

    # Key utilities
    "KeyPath",
    "resolve_key",
    "get_master_key",
]
