from .resources import ResourceCreate, ResourceResponse, IngestionOutcomeResponse, DeleteResult
from .links import LinkCreate, LinkResponse
from .curation import CuratedResourceCreate, CuratedChunksCreate
from .knowledge import (
    KnowledgeSearchRequest,
    KnowledgeSearchResponse,
    KnowledgeQueryRequest,
    KnowledgeQueryResponse,
    KnowledgeAddRequest,
    FragmentSchema,
)

__all__ = [
    "ResourceCreate",
    "ResourceResponse",
    "IngestionOutcomeResponse",
    "DeleteResult",
    "LinkCreate",
    "LinkResponse",
    "CuratedResourceCreate",
    "CuratedChunksCreate",
    "KnowledgeSearchRequest",
    "KnowledgeSearchResponse",
    "KnowledgeQueryRequest",
    "KnowledgeQueryResponse",
    "KnowledgeAddRequest",
    "FragmentSchema",
]
