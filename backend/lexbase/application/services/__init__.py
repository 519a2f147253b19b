from .chunker import TextChunker
from .embedding_service import EmbeddingService
from .retrieval_service import RetrievalService
from .resource_service import ResourceService
from .link_service import LinkService
from .pdf_ingestion_service import PdfIngestionService
from .curation_service import CurationService
from .knowledge_query_service import KnowledgeQueryService

__all__ = [
    "TextChunker",
    "EmbeddingService",
    "RetrievalService",
    "ResourceService",
    "LinkService",
    "PdfIngestionService",
    "CurationService",
    "KnowledgeQueryService",
]
