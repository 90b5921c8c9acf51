"""Collection-wide query and maintenance operations."""

from typing import List, Optional

from ..backends.base import DocumentBackend
from ..models.record import AllData, AllQueryOptions, CollectionStats, Record, RecordFilter
from .codec import extract, sort_key
from .expiration import ExpirationPolicy


class RecordQueries:
    """Handles collection-wide operations for a database."""

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

    async def all_raw(self, options: Optional[AllQueryOptions] = None) -> List[Record]:
        """Every visible record, filtered, sorted and limited."""
        options = options or AllQueryOptions()
        now = self.policy.now()

        records = [
            record
            for record in await self.backend.list_all(self.collection)
            if not self.policy.is_expired(record, now)
        ]

        if options.filter is not None:
            records = [
                record
                for index, record in enumerate(records)
                if options.filter(AllData(id=record.id, data=record.data), index)
            ]

        if options.sort:
            path = tuple(options.sort.split("."))
            # sorted() is stable, so ties keep retrieval order
            records = sorted(records, key=lambda record: sort_key(extract(record.data, path)))

        if options.limit > 0:
            records = records[:options.limit]

        self.logger.debug("Listed records", collection=self.collection, count=len(records))
        return records

    async def all(self, options: Optional[AllQueryOptions] = None) -> List[AllData]:
        """Keys and payloads of ``all_raw``."""
        return [AllData(id=record.id, data=record.data) for record in await self.all_raw(options)]

    async def count(self) -> int:
        """Number of records that are not expired."""
        now = self.policy.now()
        records = await self.backend.list_all(self.collection)
        return sum(1 for record in records if not self.policy.is_expired(record, now))

    async def delete_all(self) -> bool:
        removed = await self.backend.delete_many(self.collection, RecordFilter())
        self.logger.info("Deleted all records", collection=self.collection, count=removed)
        return True

    async def cleanup_expired(self) -> int:
        """Remove every record already past its expiration."""
        removed = await self.backend.delete_many(
            self.collection, RecordFilter(expired_before=self.policy.now())
        )

        if removed > 0:
            self.logger.info("Cleaned up expired records", collection=self.collection, count=removed)

        return removed

    async def drop(self) -> bool:
        dropped = await self.backend.drop(self.collection)
        self.logger.info("Collection dropped", collection=self.collection)
        return dropped

    async def stats(self) -> CollectionStats:
        stats = await self.backend.stats(self.collection, self.policy.now())

        self.logger.debug(
            "Collection stats retrieved",
            collection=self.collection,
            total=stats.total_records,
            expired=stats.expired_records,
        )

        return stats
