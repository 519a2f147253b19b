"""Pydantic schemas for resource ingestion and listing."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from lexbase.domain.entities import SourceType


class ResourceCreate(BaseModel):
    """Validated ingestion input for a single resource."""

    content: str = Field(..., min_length=1, examples=["Art. 7 - O empregado tem direito a férias."])
    source_type: SourceType = SourceType.TEXT
    source_id: str | None = Field(None, max_length=191)

    @field_validator("content")
    @classmethod
    def content_must_not_be_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value


class ResourceResponse(BaseModel):
    """Resource representation returned to clients."""

    id: str
    content: str
    source_type: SourceType
    source_id: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class IngestionOutcomeResponse(BaseModel):
    """Success/failure outcome of an ingestion request."""

    success: bool
    message: str
    resource_id: str | None = None
    source_id: str | None = None
    chunk_count: int = 0
    embedding_count: int = 0
    resource_ids: list[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class DeleteResult(BaseModel):
    """Response after deleting resources or links."""

    deleted: int
    message: str
