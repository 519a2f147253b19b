"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lexbase.config import get_settings
from lexbase.infrastructure.database import Database
from lexbase.infrastructure.embeddings import OpenAICompatibleEmbeddingProvider
from lexbase.infrastructure.extractors.pdf_text_extractor import PyMuPdfTextExtractor
from lexbase.infrastructure.logging.log_config import setup_logging
from lexbase.infrastructure.web import HttpPageFetcher
from lexbase.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — connect the database, create schema, open HTTP clients."""
    settings = get_settings()
    setup_logging(settings)

    # 1. Database: create if missing, then tables + pgvector extension
    database = Database(settings.database_url, echo=False)
    database.connect()
    await database.ensure_database_exists()
    await database.create_schema()

    # 2. Outbound HTTP clients (closed on shutdown)
    embedding_http = httpx.AsyncClient(timeout=settings.embedding_timeout_seconds)
    fetch_http = httpx.AsyncClient(timeout=settings.link_fetch_timeout_seconds)

    if not settings.embedding_api_key.strip():
        logger.warning("EMBEDDING_API_KEY is not configured; ingestion and retrieval will fail")

    app.state.database = database
    app.state.embedding_provider = OpenAICompatibleEmbeddingProvider(
        http_client=embedding_http,
        api_key=settings.embedding_api_key,
        base_url=settings.embedding_base_url,
        model=settings.embedding_model,
        model_dimensions=settings.embedding_dimensions,
    )
    app.state.page_fetcher = HttpPageFetcher(
        fetch_http, timeout_seconds=settings.link_fetch_timeout_seconds
    )
    app.state.pdf_extractor = PyMuPdfTextExtractor()

    try:
        yield
    finally:
        # Shutdown
        await fetch_http.aclose()
        await embedding_http.aclose()
        await database.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lexbase.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
