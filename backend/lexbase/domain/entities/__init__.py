from .resource import Resource, SourceType, Embedding, ChunkEmbedding
from .link import Link
from .retrieval import SearchCandidate, ScoredCandidate, Fragment, KnowledgeQueryResult
from .ingestion import IngestionOutcome

__all__ = [
    "Resource",
    "SourceType",
    "Embedding",
    "ChunkEmbedding",
    "Link",
    "SearchCandidate",
    "ScoredCandidate",
    "Fragment",
    "KnowledgeQueryResult",
    "IngestionOutcome",
]
