"""Record domain models for quickdoc."""

from datetime import datetime
from typing import Any, Callable, List, Optional

from pydantic import Field, field_validator

from .base import QuickDocBaseModel, StatsModel, TimestampedModel


class Record(TimestampedModel):
    """One stored document: a master key and its payload."""

    id: str = Field(alias="ID", min_length=1, description="Master key, unique per collection")
    data: Any = Field(default=None, description="Arbitrary JSON-like payload")
    expire_at: Optional[datetime] = Field(
        default=None,
        alias="expireAt",
        description="When the record expires (null = never expires)"
    )

    def to_document(self) -> dict:
        """Persisted layout: ``{ID, data, createdAt, updatedAt, expireAt?}``."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=False)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "Record":
        return cls.model_validate_json(raw)


class AllData(QuickDocBaseModel):
    """A key and its payload, as returned by ``Database.all``."""

    id: str = Field(alias="ID", description="The master key")
    data: Any = Field(default=None, description="The stored payload")


class AllQueryOptions(QuickDocBaseModel):
    """Options for ``Database.all``."""

    limit: int = Field(default=0, ge=0, description="Retrieval limit (0 for no limit)")
    sort: Optional[str] = Field(
        default=None,
        description="Dotted field inside each record's data to sort by, ascending"
    )
    filter: Optional[Callable[[AllData, int], bool]] = Field(
        default=None,
        description="Predicate called as filter(item, index)"
    )

    @field_validator("sort")
    @classmethod
    def strip_leading_dot(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v[1:] if v.startswith(".") else v
        return v or None

    @field_validator("limit", mode="before")
    @classmethod
    def none_means_unlimited(cls, v: Any) -> Any:
        return 0 if v is None else v


class RecordFilter(QuickDocBaseModel):
    """Filter for bulk deletes. An empty filter matches every record."""

    ids: Optional[List[str]] = Field(default=None, description="Match only these master keys")
    expired_before: Optional[datetime] = Field(
        default=None,
        description="Match only records whose expireAt is at or before this time"
    )

    @property
    def is_empty(self) -> bool:
        return self.ids is None and self.expired_before is None

    def matches(self, record: Record) -> bool:
        """Check a record against the filter in Python."""
        if self.ids is not None and record.id not in self.ids:
            return False
        if self.expired_before is not None:
            if record.expire_at is None or record.expire_at > self.expired_before:
                return False
        return True


class DatabaseOptions(QuickDocBaseModel):
    """Per-instance options of a ``Database``."""

    collection_name: Optional[str] = Field(default=None, description="Collection name")
    child: bool = Field(default=False, description="Instantiate as a child")
    parent: Optional[Any] = Field(default=None, exclude=True, description="Parent database")
    share_connection_from_parent: Optional[bool] = Field(
        default=None,
        description="Borrow the parent's connection (None = use settings)"
    )


class CollectionStats(StatsModel):
    """Statistics about one collection."""

    collection: str = Field(description="Collection name")
    total_records: int = Field(ge=0, description="Records physically stored")
    expired_records: int = Field(ge=0, description="Stored records already past expireAt")
    total_size_bytes: int = Field(ge=0, description="Approximate size of stored records")

    @property
    def visible_records(self) -> int:
        return self.total_records - self.expired_records


class DatabaseMetadata(QuickDocBaseModel):
    """Identifying information about a bound collection."""

    name: str = Field(description="Collection name")
    db: str = Field(description="Database name or path")
    namespace: str = Field(description="Fully qualified collection namespace")
