"""Podcast Media Backend - Pydantic models for API serialization."""

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Response Models ---


class PodcastResponse(BaseModel):
    """A persisted podcast record."""

    model_config = ConfigDict(extra="forbid", from_attributes=True)

    id: uuid.UUID = Field(..., description="Unique podcast identifier")
    title: str = Field(..., min_length=1, description="Display title")
    url: str = Field(..., description="Server-relative path of the stored audio file")
    created_at: datetime = Field(..., description="When the record was created")

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite drops the offset on read; stored values are always UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class ErrorResponse(BaseModel):
    """Response for failed podcast operations."""

    model_config = ConfigDict(extra="forbid")

    status: str = Field(default="error", description="Operation status")
    error_code: str = Field(..., description="Error taxonomy code")
    error_message: str = Field(..., description="Human-readable error description")


__all__ = [
    "PodcastResponse",
    "ErrorResponse",
]
