"""FastAPI dependency injection — wires infrastructure to application layer.

Long-lived collaborators (database, embedding provider, page fetcher, PDF
extractor) live on ``app.state`` and are created by the lifespan. Services
are assembled per request around a request-scoped session.
"""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from lexbase.application.interfaces import EmbeddingProvider, PageFetcher, PdfTextExtractor
from lexbase.application.services import (
    CurationService,
    EmbeddingService,
    KnowledgeQueryService,
    LinkService,
    PdfIngestionService,
    ResourceService,
    RetrievalService,
    TextChunker,
)
from lexbase.config import Settings, get_settings
from lexbase.infrastructure.database import Database
from lexbase.infrastructure.database.repositories import (
    PgEmbeddingRepository,
    SQLAlchemyLinkRepository,
    SQLAlchemyResourceRepository,
)


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_embedding_provider(request: Request) -> EmbeddingProvider:
    return request.app.state.embedding_provider


def get_page_fetcher(request: Request) -> PageFetcher:
    return request.app.state.page_fetcher


def get_pdf_extractor(request: Request) -> PdfTextExtractor:
    return request.app.state.pdf_extractor


async def get_db_session(
    database: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Yields an async DB session per request (commit on success, rollback on error)."""
    async with database.session_scope() as session:
        yield session


# ── Builders (plain functions, reused by tests and tools) ────────────


def build_embedding_service(provider: EmbeddingProvider, settings: Settings) -> EmbeddingService:
    return EmbeddingService(
        provider,
        batch_size=settings.embedding_batch_size,
        batch_delay_seconds=settings.embedding_batch_delay_seconds,
        timeout_seconds=settings.embedding_timeout_seconds,
    )


def build_resource_service(
    session: AsyncSession,
    provider: EmbeddingProvider,
    settings: Settings,
) -> ResourceService:
    return ResourceService(
        resource_repository=SQLAlchemyResourceRepository(session),
        embedding_repository=PgEmbeddingRepository(
            session, write_batch_size=settings.embedding_write_batch_size
        ),
        embedding_service=build_embedding_service(provider, settings),
        chunker=TextChunker(max_chars=settings.chunk_max_chars),
        text_token_warning=settings.text_resource_token_warning,
    )


def build_retrieval_service(
    session: AsyncSession,
    provider: EmbeddingProvider,
    settings: Settings,
) -> RetrievalService:
    return RetrievalService(
        embedding_service=build_embedding_service(provider, settings),
        embedding_repository=PgEmbeddingRepository(session),
        similarity_threshold=settings.retrieval_similarity_threshold,
        candidate_limit=settings.retrieval_candidate_limit,
        min_quality_score=settings.retrieval_min_quality_score,
        max_tokens=settings.retrieval_max_tokens,
        max_fragments=settings.retrieval_max_fragments,
        max_per_resource=settings.retrieval_max_per_resource,
        search_timeout_seconds=settings.retrieval_search_timeout_seconds,
    )


# ── Request-scoped service providers ─────────────────────────────────


async def get_resource_service(
    session: AsyncSession = Depends(get_db_session),
    provider: EmbeddingProvider = Depends(get_embedding_provider),
) -> AsyncGenerator[ResourceService, None]:
    """Provides a ResourceService bound to the request session."""
    yield build_resource_service(session, provider, get_settings())


async def get_link_service(
    session: AsyncSession = Depends(get_db_session),
    provider: EmbeddingProvider = Depends(get_embedding_provider),
    fetcher: PageFetcher = Depends(get_page_fetcher),
) -> AsyncGenerator[LinkService, None]:
    """Provides a LinkService with fetch retry settings applied."""
    settings = get_settings()
    yield LinkService(
        link_repository=SQLAlchemyLinkRepository(session),
        page_fetcher=fetcher,
        resource_service=build_resource_service(session, provider, settings),
        max_attempts=settings.link_fetch_max_attempts,
        backoff_seconds=settings.link_fetch_backoff_seconds,
    )


async def get_pdf_ingestion_service(
    session: AsyncSession = Depends(get_db_session),
    provider: EmbeddingProvider = Depends(get_embedding_provider),
    extractor: PdfTextExtractor = Depends(get_pdf_extractor),
) -> AsyncGenerator[PdfIngestionService, None]:
    settings = get_settings()
    yield PdfIngestionService(
        extractor=extractor,
        resource_service=build_resource_service(session, provider, settings),
        max_upload_mb=settings.pdf_max_upload_mb,
    )


async def get_curation_service(
    session: AsyncSession = Depends(get_db_session),
    provider: EmbeddingProvider = Depends(get_embedding_provider),
) -> AsyncGenerator[CurationService, None]:
    settings = get_settings()
    yield CurationService(
        resource_repository=SQLAlchemyResourceRepository(session),
        embedding_repository=PgEmbeddingRepository(
            session, write_batch_size=settings.embedding_write_batch_size
        ),
        embedding_service=build_embedding_service(provider, settings),
        resource_service=build_resource_service(session, provider, settings),
    )


async def get_retrieval_service(
    session: AsyncSession = Depends(get_db_session),
    provider: EmbeddingProvider = Depends(get_embedding_provider),
) -> AsyncGenerator[RetrievalService, None]:
    yield build_retrieval_service(session, provider, get_settings())


async def get_knowledge_query_service(
    retrieval: RetrievalService = Depends(get_retrieval_service),
) -> AsyncGenerator[KnowledgeQueryService, None]:
    yield KnowledgeQueryService(retrieval)
