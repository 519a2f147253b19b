"""Pydantic schemas for monitored links."""

from datetime import datetime

from pydantic import BaseModel, Field, HttpUrl


class LinkCreate(BaseModel):
    """Request body for registering a new link."""

    url: HttpUrl
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None


class LinkResponse(BaseModel):
    """Link representation returned to clients."""

    id: str
    url: str
    title: str
    description: str | None = None
    last_processed: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
