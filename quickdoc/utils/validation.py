"""Validation helpers."""

import re

from ..core.exceptions import ConfigurationError

_COLLECTION_NAME = re.compile(r'^[A-Za-z0-9_][A-Za-z0-9_.\-]{0,119}$')


def validate_collection_name(name: str) -> str:
    """Validate a collection name and return it unchanged."""
    if not isinstance(name, str) or not name:
        raise ConfigurationError("Collection name must be a non-empty string", "collection_name")

    if not _COLLECTION_NAME.match(name):
        raise ConfigurationError(
            f"Invalid collection name {name!r}: use letters, digits, '_', '-' or '.'",
            "collection_name",
        )
    return name
