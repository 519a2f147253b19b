"""Pydantic schemas for operator-curated legislative excerpts."""

from pydantic import BaseModel, Field


class CuratedResourceCreate(BaseModel):
    """One authoritative resource with operator-chosen chunk boundaries."""

    chunks: list[str] = Field(..., min_length=1)
    full_content: str = Field(..., min_length=1)
    lei: str = ""
    contexto: str = ""


class CuratedChunksCreate(BaseModel):
    """Each chunk becomes its own resource within one curation session."""

    chunks: list[str] = Field(..., min_length=1)
    lei: str = ""
    contexto: str = ""
    url: str = ""
