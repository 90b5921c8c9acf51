"""Redis-based document backend."""

import time
from datetime import datetime
from typing import Dict, List, Optional
from urllib.parse import urlparse

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ..config.settings import Settings
from ..core.exceptions import BackendError
from ..models.record import CollectionStats, Record, RecordFilter
from .base import DocumentBackend

# HDEL a field only while it still holds the expected value
_COMPARE_AND_HDEL = """
if redis.call("HGET", KEYS[1], ARGV[1]) == ARGV[2] then
    return redis.call("HDEL", KEYS[1], ARGV[1])
end
return 0
"""


class RedisDocumentBackend(DocumentBackend):
    """Redis-based document backend.

    Each collection is one hash named ``{prefix}:{collection}`` whose fields
    are record ids and whose values are record JSON. Redis cannot expire
    individual hash fields here, so expired records linger until a read or
    ``delete_many`` removes them.
    """

    scheme = "redis"

    def __init__(self, url: str, settings: Settings) -> None:
        super().__init__(url, settings)
        self.key_prefix = settings.REDIS_KEY_PREFIX
        self._redis: Optional[Redis] = None

    @property
    def database_name(self) -> str:
        db = urlparse(self.url).path.lstrip("/")
        return db or "0"

    async def _open(self) -> None:
        """Initialize Redis connection."""
        self._redis = redis.from_url(self.url, decode_responses=True)
        await self._redis.ping()
        self.logger.info("Redis backend opened", url=self.url)

    async def _close(self, force: bool) -> None:
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def _is_transport_error(self, exc: Exception) -> bool:
        return isinstance(exc, (RedisConnectionError, RedisTimeoutError))

    def _require_connection(self, operation: str, collection: Optional[str]) -> Redis:
        if not self._redis:
            raise BackendError("Redis backend not connected", operation, collection)
        return self._redis

    def _hash_key(self, collection: str) -> str:
        return f"{self.key_prefix}:{collection}"

    async def _load_all(self, client: Redis, collection: str) -> Dict[str, Record]:
        raw = await client.hgetall(self._hash_key(collection))
        return {record_id: Record.from_json(value) for record_id, value in raw.items()}

    async def find_one(self, collection: str, record_id: str) -> Optional[Record]:
        """Fetch a record by id from Redis."""
        client = self._require_connection("find record", collection)

        try:
            value = await client.hget(self._hash_key(collection), record_id)
            if value:
                return Record.from_json(value)
            return None

        except Exception as e:
            raise self._fault("find record", collection, e) from e

    async def upsert(self, collection: str, record_id: str, record: Record) -> None:
        """Insert or replace a record in Redis."""
        client = self._require_connection("upsert record", collection)

        try:
            await client.hset(self._hash_key(collection), record_id, record.to_json())

        except Exception as e:
            raise self._fault("upsert record", collection, e) from e

    async def delete_one(self, collection: str, record_id: str) -> bool:
        """Delete a record by id from Redis."""
        client = self._require_connection("delete record", collection)

        try:
            result = await client.hdel(self._hash_key(collection), record_id)
            return result > 0

        except Exception as e:
            raise self._fault("delete record", collection, e) from e

    async def delete_many(self, collection: str, record_filter: RecordFilter) -> int:
        """Delete records matching the filter from Redis.

        Matching happens in Python on a snapshot, so each delete is a
        compare-and-delete against the snapshot value: a record rewritten
        after the snapshot is left alone.
        """
        client = self._require_connection("delete records", collection)

        try:
            key = self._hash_key(collection)

            if record_filter.is_empty:
                count = await client.hlen(key)
                await client.delete(key)
                return count

            if record_filter.ids is not None:
                if not record_filter.ids:
                    return 0
                values = await client.hmget(key, record_filter.ids)
                snapshot = {
                    record_id: value
                    for record_id, value in zip(record_filter.ids, values)
                    if value is not None
                }
            else:
                snapshot = await client.hgetall(key)

            deleted = 0
            for record_id, value in snapshot.items():
                if not record_filter.matches(Record.from_json(value)):
                    continue
                deleted += await client.eval(_COMPARE_AND_HDEL, 1, key, record_id, value)
            return deleted

        except Exception as e:
            raise self._fault("delete records", collection, e) from e

    async def list_all(self, collection: str) -> List[Record]:
        """List every record of a collection from Redis."""
        client = self._require_connection("list records", collection)

        try:
            records = await self._load_all(client, collection)
            return list(records.values())

        except Exception as e:
            raise self._fault("list records", collection, e) from e

    async def count_all(self, collection: str) -> int:
        """Count stored records in Redis."""
        client = self._require_connection("count records", collection)

        try:
            return await client.hlen(self._hash_key(collection))

        except Exception as e:
            raise self._fault("count records", collection, e) from e

    async def drop(self, collection: str) -> bool:
        """Remove a collection's hash."""
        client = self._require_connection("drop collection", collection)

        try:
            await client.delete(self._hash_key(collection))
            return True

        except Exception as e:
            raise self._fault("drop collection", collection, e) from e

    async def ping(self) -> float:
        """Time a Redis PING."""
        client = self._require_connection("ping", None)

        try:
            started = time.perf_counter()
            await client.ping()
            return (time.perf_counter() - started) * 1000

        except Exception as e:
            raise self._fault("ping", None, e) from e

    async def stats(self, collection: str, now: datetime) -> CollectionStats:
        """Get collection statistics from Redis."""
        client = self._require_connection("get stats", collection)

        try:
            raw = await client.hgetall(self._hash_key(collection))
            expired = 0
            size = 0
            for value in raw.values():
                size += len(value)
                record = Record.from_json(value)
                if record.expire_at is not None and record.expire_at <= now:
                    expired += 1

            return CollectionStats(
                collection=collection,
                total_records=len(raw),
                expired_records=expired,
                total_size_bytes=size,
            )

        except Exception as e:
            raise self._fault("get stats", collection, e) from e
