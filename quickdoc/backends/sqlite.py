"""SQLite-based document backend."""

import json
import sqlite3
import time
from datetime import datetime, UTC
from typing import List, Optional, Set

import aiosqlite

from ..config.settings import Settings, sqlite_path_from_url
from ..core.exceptions import BackendError
from ..models.record import CollectionStats, Record, RecordFilter
from .base import DocumentBackend

# Messages of sqlite3 and aiosqlite errors raised on a closed connection
_LOST_CONNECTION_MARKERS = ("closed database", "connection closed", "no active connection")


def _ts(value: datetime) -> str:
    """Fixed-width UTC ISO timestamp, so stored values compare as strings."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


class SQLiteDocumentBackend(DocumentBackend):
    """SQLite-based document backend. Each collection is one table."""

    scheme = "sqlite"

    def __init__(self, url: str, settings: Settings) -> None:
        super().__init__(url, settings)
        self.db_path = sqlite_path_from_url(url)
        self._connection: Optional[aiosqlite.Connection] = None
        self._tables: Set[str] = set()

    @property
    def database_name(self) -> str:
        return str(self.db_path) if self.db_path else ":memory:"

    async def _open(self) -> None:
        """Open the SQLite database file."""
        if self.db_path is not None:
            # Ensure directory exists
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(
            self.db_path if self.db_path is not None else ":memory:",
            timeout=self.settings.SQLITE_TIMEOUT_SECONDS,
        )
        self._tables.clear()
        self.logger.info("SQLite backend opened", db_path=self.database_name)

    async def _close(self, force: bool) -> None:
        """Close SQLite connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            self._tables.clear()

    def _is_transport_error(self, exc: Exception) -> bool:
        # Serialization and bad rows also raise ValueError; only a lost connection counts
        if not isinstance(exc, (sqlite3.ProgrammingError, ValueError)):
            return False
        message = str(exc).lower()
        return any(marker in message for marker in _LOST_CONNECTION_MARKERS)

    def _require_connection(self, operation: str, collection: str) -> aiosqlite.Connection:
        if not self._connection:
            raise BackendError("SQLite backend not connected", operation, collection)
        return self._connection

    async def _ensure_table(self, connection: aiosqlite.Connection, collection: str) -> str:
        """Create the collection's table on first use. Returns the quoted table name."""
        table = f'"{collection}"'
        if collection in self._tables:
            return table

        create_table_sql = f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id TEXT PRIMARY KEY,
            data TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            expire_at TEXT
        )
        """
        create_index_sql = (
            f'CREATE INDEX IF NOT EXISTS "idx_{collection}_expire_at" ON {table}(expire_at)'
        )

        await connection.execute(create_table_sql)
        await connection.execute(create_index_sql)
        await connection.commit()
        self._tables.add(collection)
        return table

    async def find_one(self, collection: str, record_id: str) -> Optional[Record]:
        """Fetch a record by id from SQLite."""
        connection = self._require_connection("find record", collection)

        try:
            table = await self._ensure_table(connection, collection)
            cursor = await connection.execute(
                f"SELECT id, data, created_at, updated_at, expire_at FROM {table} WHERE id = ?",
                (record_id,),
            )
            row = await cursor.fetchone()

            if not row:
                return None

            return self._row_to_record(row)

        except Exception as e:
            raise self._fault("find record", collection, e) from e

    async def upsert(self, collection: str, record_id: str, record: Record) -> None:
        """Insert or replace a record in SQLite."""
        connection = self._require_connection("upsert record", collection)

        try:
            payload = json.dumps(record.data)
        except (TypeError, ValueError) as e:
            raise BackendError(f"Failed to serialize record: {e}", "upsert record", collection) from e

        try:
            table = await self._ensure_table(connection, collection)
            sql = f"""
            INSERT OR REPLACE INTO {table}
            (id, data, created_at, updated_at, expire_at)
            VALUES (?, ?, ?, ?, ?)
            """

            values = (
                record_id,
                payload,
                _ts(record.created_at),
                _ts(record.updated_at),
                _ts(record.expire_at) if record.expire_at else None,
            )

            await connection.execute(sql, values)
            await connection.commit()

        except Exception as e:
            raise self._fault("upsert record", collection, e) from e

    async def delete_one(self, collection: str, record_id: str) -> bool:
        """Delete a record by id from SQLite."""
        connection = self._require_connection("delete record", collection)

        try:
            table = await self._ensure_table(connection, collection)
            cursor = await connection.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
            await connection.commit()

            return cursor.rowcount > 0

        except Exception as e:
            raise self._fault("delete record", collection, e) from e

    async def delete_many(self, collection: str, record_filter: RecordFilter) -> int:
        """Delete records matching the filter from SQLite."""
        connection = self._require_connection("delete records", collection)

        try:
            table = await self._ensure_table(connection, collection)
            conditions = []
            values: list = []

            if record_filter.ids is not None:
                if not record_filter.ids:
                    return 0
                placeholders = ",".join("?" * len(record_filter.ids))
                conditions.append(f"id IN ({placeholders})")
                values.extend(record_filter.ids)

            if record_filter.expired_before is not None:
                conditions.append("(expire_at IS NOT NULL AND expire_at <= ?)")
                values.append(_ts(record_filter.expired_before))

            where_clause = " AND ".join(conditions) if conditions else "1=1"
            cursor = await connection.execute(f"DELETE FROM {table} WHERE {where_clause}", values)
            await connection.commit()

            return cursor.rowcount

        except Exception as e:
            raise self._fault("delete records", collection, e) from e

    async def list_all(self, collection: str) -> List[Record]:
        """List every record of a collection from SQLite."""
        connection = self._require_connection("list records", collection)

        try:
            table = await self._ensure_table(connection, collection)
            cursor = await connection.execute(
                f"SELECT id, data, created_at, updated_at, expire_at FROM {table} ORDER BY rowid"
            )
            rows = await cursor.fetchall()

            return [self._row_to_record(row) for row in rows]

        except Exception as e:
            raise self._fault("list records", collection, e) from e

    async def count_all(self, collection: str) -> int:
        """Count stored records in SQLite."""
        connection = self._require_connection("count records", collection)

        try:
            table = await self._ensure_table(connection, collection)
            cursor = await connection.execute(f"SELECT COUNT(*) FROM {table}")
            return (await cursor.fetchone())[0]

        except Exception as e:
            raise self._fault("count records", collection, e) from e

    async def drop(self, collection: str) -> bool:
        """Drop a collection's table."""
        connection = self._require_connection("drop collection", collection)

        try:
            await connection.execute(f'DROP TABLE IF EXISTS "{collection}"')
            await connection.commit()
            self._tables.discard(collection)
            return True

        except Exception as e:
            raise self._fault("drop collection", collection, e) from e

    async def ping(self) -> float:
        """Time a trivial query."""
        connection = self._require_connection("ping", None)

        try:
            started = time.perf_counter()
            cursor = await connection.execute("SELECT 1")
            await cursor.fetchone()
            return (time.perf_counter() - started) * 1000

        except Exception as e:
            raise self._fault("ping", None, e) from e

    async def stats(self, collection: str, now: datetime) -> CollectionStats:
        """Get collection statistics from SQLite."""
        connection = self._require_connection("get stats", collection)

        try:
            table = await self._ensure_table(connection, collection)

            # Total records and payload size
            cursor = await connection.execute(
                f"SELECT COUNT(*), COALESCE(SUM(LENGTH(data)), 0) FROM {table}"
            )
            total, size = await cursor.fetchone()

            # Expired records
            cursor = await connection.execute(
                f"SELECT COUNT(*) FROM {table} WHERE expire_at IS NOT NULL AND expire_at <= ?",
                (_ts(now),),
            )
            expired = (await cursor.fetchone())[0]

            return CollectionStats(
                collection=collection,
                total_records=total,
                expired_records=expired,
                total_size_bytes=size,
            )

        except Exception as e:
            raise self._fault("get stats", collection, e) from e

    def _row_to_record(self, row) -> Record:
        """Convert database row to Record object."""
        return Record(
            id=row[0],
            data=json.loads(row[1]),
            created_at=datetime.fromisoformat(row[2]),
            updated_at=datetime.fromisoformat(row[3]),
            expire_at=datetime.fromisoformat(row[4]) if row[4] else None,
        )
