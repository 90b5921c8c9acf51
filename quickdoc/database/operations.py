"""Key-level read and write operations."""

from datetime import datetime
from typing import Any, Optional, Union

from ..backends.base import DocumentBackend
from ..core.exceptions import TypeMismatchError
from ..models.record import Record, RecordFilter
from ..utils.keys import KeyPath, resolve_key
from .codec import MISSING, ValueKind, extract, inject, kind_of, remove
from .expiration import ExpirationPolicy


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def values_equal(left: Any, right: Any) -> bool:
    """Equality for stored values, keeping booleans distinct from numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right


class RecordOperations:
    """Handles per-key operations against one collection.

    Every method samples the clock once and re-fetches the master record, so
    sequential calls see each other's writes. Compound operations fetch and
    upsert in two separate backend calls; concurrent callers on the same key
    can interleave and the last upsert wins.
    """

    def __init__(
        self,
        backend: DocumentBackend,
        collection: str,
        policy: ExpirationPolicy,
        logger,
    ):
        self.backend = backend
        self.collection = collection
        self.policy = policy
        self.logger = logger

    async def _fetch(self, master: str, now: datetime, purge: bool = False) -> Optional[Record]:
        """Fetch the visible master record. Expired records count as missing."""
        record = await self.backend.find_one(self.collection, master)
        if record is None or not self.policy.is_expired(record, now):
            return record

        if purge:
            # Conditional, so a concurrent fresh write is not removed
            await self.backend.delete_many(
                self.collection, RecordFilter(ids=[master], expired_before=now)
            )
            self.logger.debug("Purged expired record", key=master, collection=self.collection)
        return None

    async def _write(
        self,
        key_path: KeyPath,
        record: Optional[Record],
        value: Any,
        now: datetime,
        expire_at: Optional[datetime],
        key: str,
    ) -> Any:
        """Write ``value`` at the key's path and upsert the master record."""
        if record is None:
            record = Record(
                id=key_path.master,
                data=inject(MISSING, key_path.path, value, key),
                created_at=now,
                updated_at=now,
                expire_at=expire_at,
            )
        else:
            record.data = inject(record.data, key_path.path, value, key)
            record.expire_at = expire_at
            record.touch(now)

        await self.backend.upsert(self.collection, key_path.master, record)
        return record.data

    async def get_raw(self, key: str) -> Optional[Record]:
        """The visible master record for ``key``."""
        key_path = resolve_key(key)
        return await self._fetch(key_path.master, self.policy.now(), purge=True)

    async def get(self, key: str) -> Any:
        """Value at ``key``, or None when absent or expired."""
        key_path = resolve_key(key)
        record = await self._fetch(key_path.master, self.policy.now(), purge=True)
        if record is None:
            self.logger.debug("Record not found", key=key, collection=self.collection)
            return None

        value = extract(record.data, key_path.path)
        return None if value is MISSING else value

    async def has(self, key: str) -> bool:
        return await self.get(key) is not None

    async def set(self, key: str, value: Any, ttl_seconds: Any = -1) -> Any:
        """Write ``value`` at ``key``. Returns the master record's data."""
        key_path = resolve_key(key)
        now = self.policy.now()
        record = await self._fetch(key_path.master, now)
        expire_at = self.policy.stamp_for(ttl_seconds, now)

        data = await self._write(key_path, record, value, now, expire_at, key)

        self.logger.info(
            "Record set",
            key=key,
            collection=self.collection,
            created=record is None,
            expire_at=expire_at.isoformat() if expire_at else None,
        )
        return data

    async def delete(self, key: str) -> bool:
        """Delete a whole record or one nested leaf."""
        key_path = resolve_key(key)

        if not key_path.has_path:
            deleted = await self.backend.delete_one(self.collection, key_path.master)
            if deleted:
                self.logger.info("Record deleted", key=key, collection=self.collection)
            else:
                self.logger.debug("Record not found for deletion", key=key, collection=self.collection)
            return deleted

        now = self.policy.now()
        record = await self._fetch(key_path.master, now)
        if record is None:
            return False

        data, removed = remove(record.data, key_path.path)
        if not removed:
            return False

        # Empty masters are kept; only bare-key deletes and expiry remove them
        record.data = data
        record.touch(now)
        await self.backend.upsert(self.collection, key_path.master, record)

        self.logger.info("Nested value deleted", key=key, collection=self.collection)
        return True

    async def push(self, key: str, value: Any) -> Any:
        """Append ``value`` (or each element of a list) to the sequence at ``key``."""
        key_path = resolve_key(key)
        now = self.policy.now()
        record = await self._fetch(key_path.master, now)

        current = extract(record.data, key_path.path) if record else MISSING
        kind = kind_of(current)
        if kind is ValueKind.ABSENT or current is None:
            items = []
        elif kind is ValueKind.SEQUENCE:
            items = list(current)
        else:
            items = [current]

        if kind_of(value) is ValueKind.SEQUENCE:
            items.extend(value)
        else:
            items.append(value)

        data = await self._write(
            key_path, record, items, now, record.expire_at if record else None, key
        )
        self.logger.info("Pushed to record", key=key, collection=self.collection, length=len(items))
        return data

    async def pull(self, key: str, value: Any, multiple: bool = False) -> Union[Any, bool]:
        """Remove matching elements from the sequence at ``key``.

        Returns False, without writing, when the target is absent or not a
        sequence.
        """
        key_path = resolve_key(key)
        now = self.policy.now()
        record = await self._fetch(key_path.master, now)

        current = extract(record.data, key_path.path) if record else MISSING
        if kind_of(current) is not ValueKind.SEQUENCE:
            self.logger.debug("Nothing to pull", key=key, collection=self.collection)
            return False

        targets = list(value) if kind_of(value) is ValueKind.SEQUENCE else [value]
        items = list(current)

        if multiple:
            items = [item for item in items if not any(values_equal(item, t) for t in targets)]
        else:
            for target in targets:
                for index, item in enumerate(items):
                    if values_equal(item, target):
                        del items[index]
                        break

        data = await self._write(key_path, record, items, now, record.expire_at, key)
        self.logger.info(
            "Pulled from record",
            key=key,
            collection=self.collection,
            removed=len(current) - len(items),
        )
        return data

    async def add(self, key: str, value: Any) -> Any:
        return await self._arithmetic(key, value, 1)

    async def subtract(self, key: str, value: Any) -> Any:
        return await self._arithmetic(key, value, -1)

    async def _arithmetic(self, key: str, value: Any, sign: int) -> Any:
        """Shared read-modify-write for ``add`` and ``subtract``."""
        key_path = resolve_key(key)
        if not _is_number(value):
            raise TypeMismatchError(
                f"Value must be a number, got {type(value).__name__}", key
            )

        now = self.policy.now()
        record = await self._fetch(key_path.master, now)

        current = extract(record.data, key_path.path) if record else MISSING
        if current is MISSING or current is None:
            current = 0
        elif not _is_number(current):
            raise TypeMismatchError(
                f"Target must be a number, found {type(current).__name__}", key
            )

        result = current + value if sign > 0 else current - value
        data = await self._write(
            key_path, record, result, now, record.expire_at if record else None, key
        )
        self.logger.info("Number updated", key=key, collection=self.collection, value=result)
        return data
