"""Pydantic schemas for knowledge retrieval."""

from pydantic import BaseModel, Field


class KnowledgeSearchRequest(BaseModel):
    query: str = Field(..., min_length=1, examples=["direito a férias"])


class FragmentSchema(BaseModel):
    """A retrieved fragment, ready for prompt assembly."""

    content: str
    similarity: float
    resource_id: str
    token_count: int
    quality_score: int

    model_config = {"from_attributes": True}


class KnowledgeSearchResponse(BaseModel):
    query: str
    fragments: list[FragmentSchema]
    total_tokens: int


class KnowledgeQueryRequest(BaseModel):
    """A question plus optional keywords, each searched independently."""

    question: str = Field(..., min_length=1)
    keywords: list[str] = Field(default_factory=list)


class KnowledgeQueryResponse(BaseModel):
    question: str
    fragments: list[FragmentSchema]
    legal_references: list[str]
    found: bool


class KnowledgeAddRequest(BaseModel):
    """User-provided text to store as a manual resource."""

    content: str = Field(..., min_length=1)
    title: str | None = None
