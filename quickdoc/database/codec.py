"""Nested path access inside a record's payload.

Payloads are JSON-like trees. Every value is classified by ``kind_of`` into
one of the ``ValueKind`` variants and the path functions below branch on
that tag instead of probing attributes. The functions never mutate their
input; writes return a new tree that shares untouched siblings.
"""

from enum import Enum
from typing import Any, Sequence, Tuple

from ..core.exceptions import TypeMismatchError


class _Missing:
    """Marker for an absent value (distinct from a stored ``None``)."""

    _instance = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class ValueKind(str, Enum):
    """Variants of a stored value."""

    ABSENT = "absent"
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def kind_of(value: Any) -> ValueKind:
    if value is MISSING:
        return ValueKind.ABSENT
    if isinstance(value, dict):
        return ValueKind.MAPPING
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    return ValueKind.SCALAR


def _index(segment: str, length: int) -> int | None:
    """Sequence index named by ``segment``, or None if it is not a valid one."""
    if not segment.isdigit():
        return None
    index = int(segment)
    return index if index < length else None


def _step(container: Any, segment: str) -> Any:
    kind = kind_of(container)
    if kind is ValueKind.MAPPING:
        return container.get(segment, MISSING)
    if kind is ValueKind.SEQUENCE:
        index = _index(segment, len(container))
        return MISSING if index is None else container[index]
    return MISSING


def extract(data: Any, path: Sequence[str]) -> Any:
    """Value at ``path`` inside ``data``, or ``MISSING``."""
    current = data
    for segment in path:
        current = _step(current, segment)
        if current is MISSING:
            return MISSING
    return current


def inject(data: Any, path: Sequence[str], value: Any, key: str | None = None) -> Any:
    """Return ``data`` with ``value`` written at ``path``.

    Missing (or null) intermediates become empty mappings. Writing through a
    scalar raises ``TypeMismatchError``.
    """
    if not path:
        return value

    head, rest = path[0], path[1:]
    kind = kind_of(data) if data is not None else ValueKind.ABSENT

    if kind is ValueKind.ABSENT:
        return {head: inject(MISSING, rest, value, key)}

    if kind is ValueKind.MAPPING:
        updated = dict(data)
        updated[head] = inject(data.get(head, MISSING), rest, value, key)
        return updated

    if kind is ValueKind.SEQUENCE:
        index = _index(head, len(data))
        if index is None:
            raise TypeMismatchError(
                f"Cannot target index {head!r} of a sequence of length {len(data)}", key
            )
        updated = list(data)
        updated[index] = inject(data[index], rest, value, key)
        return updated

    raise TypeMismatchError(
        f"Cannot target a non-object value ({type(data).__name__}) at {head!r}", key
    )


def remove(data: Any, path: Sequence[str]) -> Tuple[Any, bool]:
    """Return ``(data without the leaf at path, removed)``.

    An empty path cannot be removed from inside the payload; the caller is
    expected to delete the whole record instead.
    """
    if not path:
        raise ValueError("remove() needs a non-empty path; delete the record instead")

    head, rest = path[0], path[1:]
    kind = kind_of(data)

    if kind is ValueKind.MAPPING:
        if head not in data:
            return data, False
        updated = dict(data)
        if not rest:
            del updated[head]
            return updated, True
        child, removed = remove(data[head], rest)
        if removed:
            updated[head] = child
            return updated, True
        return data, False

    if kind is ValueKind.SEQUENCE:
        index = _index(head, len(data))
        if index is None:
            return data, False
        updated = list(data)
        if not rest:
            del updated[index]
            return updated, True
        child, removed = remove(data[index], rest)
        if removed:
            updated[index] = child
            return updated, True
        return data, False

    return data, False


def sort_key(value: Any) -> Tuple[int, int, Any]:
    """Ordering key for ``all(sort=...)``: numbers, booleans, strings, then the rest; missing last."""
    if value is MISSING or value is None:
        return (1, 0, 0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, 0, value)
    if isinstance(value, bool):
        return (0, 1, int(value))
    if isinstance(value, str):
        return (0, 2, value)
    return (0, 3, repr(value))
