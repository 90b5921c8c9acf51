"""Base model classes for quickdoc."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..utils.date_utils import utcnow


class QuickDocBaseModel(BaseModel):
    """Base model with common configuration for all quickdoc models."""

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Validate assignment after model creation
        validate_assignment=True,
        extra='forbid',
    )


class TimestampedModel(QuickDocBaseModel):
    """Base model for entities with creation and update timestamps."""

    created_at: datetime = Field(
        default_factory=utcnow,
        alias="createdAt",
        description="When the entity was created"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        alias="updatedAt",
        description="When the entity was last updated"
    )

    def touch(self, now: datetime) -> None:
        """Refresh the update timestamp, never moving it before creation."""
        self.updated_at = max(now, self.created_at)


class StatsModel(QuickDocBaseModel):
    """Base model for statistics responses."""

    generated_at: datetime = Field(
        default_factory=utcnow,
        description="When these statistics were generated"
    )
