from .embedding_provider import EmbeddingProvider
from .embedding_repository import EmbeddingRepository
from .link_repository import LinkRepository
from .page_fetcher import FetchedPage, PageFetcher
from .resource_repository import ResourceRepository
from .text_extractor import PdfExtraction, PdfTextExtractor

__all__ = [
    "EmbeddingProvider",
    "EmbeddingRepository",
    "LinkRepository",
    "FetchedPage",
    "PageFetcher",
    "ResourceRepository",
    "PdfExtraction",
    "PdfTextExtractor",
]
