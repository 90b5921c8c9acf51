"""Test utilities and helper functions for quickdoc tests."""

import asyncio
from datetime import datetime, timedelta, UTC
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from quickdoc.models.record import Record


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.current = start or datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class RecordTestHelper:
    """Helper class for record-related testing."""

    @staticmethod
    def create_test_record(
        record_id: str = "test_key",
        data: Any = None,
        created_at: Optional[datetime] = None,
        expire_in: Optional[float] = None,
        expired: bool = False,
    ) -> Record:
        """Create a test record with configurable expiration."""
        if data is None:
            data = {"test": "data"}
        now = created_at or datetime.now(UTC)

        expire_at = None
        if expired:
            expire_at = now - timedelta(seconds=10)
        elif expire_in is not None:
            expire_at = now + timedelta(seconds=expire_in)

        return Record(id=record_id, data=data, created_at=now, updated_at=now, expire_at=expire_at)

    @staticmethod
    def create_record_batch(count: int = 5, key_prefix: str = "test_key", **kwargs) -> List[Record]:
        """Create a batch of test records."""
        return [
            RecordTestHelper.create_test_record(
                record_id=f"{key_prefix}_{i}",
                data={"index": i, "batch": True},
                **kwargs
            )
            for i in range(count)
        ]


def interleaving_find_one(original: Callable, parties: int) -> Callable:
    """Wrap ``find_one`` so ``parties`` concurrent readers all read before any proceeds."""
    barrier = asyncio.Barrier(parties)

    async def find_one(collection: str, record_id: str):
        record = await original(collection, record_id)
        await barrier.wait()
        return record

    return find_one


class MockFactory:
    """Factory for creating various mocks used in tests."""

    @staticmethod
    def create_redis_mock(hash_store: Optional[Dict[str, Dict[str, str]]] = None) -> AsyncMock:
        """Create a Redis client mock backed by a dict of hashes."""
        store = hash_store if hash_store is not None else {}
        redis_mock = AsyncMock()

        async def hget(key, field):
            return store.get(key, {}).get(field)

        async def hset(key, field, value):
            is_new = field not in store.setdefault(key, {})
            store[key][field] = value
            return int(is_new)

        async def hdel(key, *fields):
            removed = 0
            for field in fields:
                if field in store.get(key, {}):
                    del store[key][field]
                    removed += 1
            return removed

        async def hmget(key, fields):
            return [store.get(key, {}).get(field) for field in fields]

        async def compare_and_hdel(script, numkeys, key, field, expected):
            # Compare-and-delete, as the backend script does server-side
            if store.get(key, {}).get(field) != expected:
                return 0
            del store[key][field]
            return 1

        async def hgetall(key):
            return dict(store.get(key, {}))

        async def hlen(key):
            return len(store.get(key, {}))

        async def delete(*keys):
            return sum(1 for key in keys if store.pop(key, None) is not None)

        redis_mock.ping = AsyncMock(return_value=True)
        redis_mock.hget = AsyncMock(side_effect=hget)
        redis_mock.hset = AsyncMock(side_effect=hset)
        redis_mock.hdel = AsyncMock(side_effect=hdel)
        redis_mock.hmget = AsyncMock(side_effect=hmget)
        redis_mock.eval = AsyncMock(side_effect=compare_and_hdel)
        redis_mock.hgetall = AsyncMock(side_effect=hgetall)
        redis_mock.hlen = AsyncMock(side_effect=hlen)
        redis_mock.delete = AsyncMock(side_effect=delete)
        redis_mock.aclose = AsyncMock()
        redis_mock.store = store
        return redis_mock

    @staticmethod
    def create_state_listener() -> MagicMock:
        """A listener that records connection state transitions."""
        return MagicMock()
