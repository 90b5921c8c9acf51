"""quickdoc domain models."""

from .base import QuickDocBaseModel, StatsModel, TimestampedModel
from .record import (
    AllData,
    AllQueryOptions,
    CollectionStats,
    DatabaseMetadata,
    DatabaseOptions,
    Record,
    RecordFilter,
)

__all__ = [
    # Base models
    "QuickDocBaseModel",
    "TimestampedModel",
    "StatsModel",

    # Record models
    "Record",
    "RecordFilter",
    "AllData",
    "AllQueryOptions",
    "DatabaseOptions",
    "CollectionStats",
    "DatabaseMetadata",
]
