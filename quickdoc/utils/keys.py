"""Dot-notation key resolution."""

from typing import NamedTuple, Tuple

from ..core.exceptions import InvalidKeyError


class KeyPath(NamedTuple):
    """A logical key split into its master key and nested path."""

    master: str
    path: Tuple[str, ...]

    @property
    def has_path(self) -> bool:
        return len(self.path) > 0

    @property
    def target(self) -> str:
        """The nested path joined back with dots."""
        return ".".join(self.path)


def resolve_key(key: str) -> KeyPath:
    """Split ``"a.b.c"`` into master ``"a"`` and path ``("b", "c")``."""
    if not isinstance(key, str):
        raise InvalidKeyError(f"Key must be a string, got {type(key).__name__}", key)
    if not key:
        raise InvalidKeyError("Key cannot be empty", key)

    master, *path = key.split(".")
    if not master:
        raise InvalidKeyError(f"Key has an empty master segment: {key!r}", key)
    if any(not segment for segment in path):
        raise InvalidKeyError(f"Key has an empty path segment: {key!r}", key)

    return KeyPath(master, tuple(path))


def get_master_key(key: str) -> str:
    """Return only the master key of ``key``."""
    return resolve_key(key).master
