"""Database lifecycle — engine, session factory and schema bootstrap.

A :class:`Database` is constructed explicitly and owned by the application
lifespan; nothing here creates an engine at import time.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

import asyncpg
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from lexbase.infrastructure.database.base import Base

# Registers the ORM tables on Base.metadata.
from lexbase.infrastructure.database import models  # noqa: F401

logger = logging.getLogger(__name__)


def to_async_url(url: str) -> str:
    """Convert a sync PostgreSQL URL to the asyncpg driver URL."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def to_asyncpg_dsn(url: str) -> str:
    """Strip a SQLAlchemy driver suffix so asyncpg can connect directly."""
    return url.replace("postgresql+asyncpg://", "postgresql://", 1)


class Database:
    """Owns the async engine and session factory for one application instance."""

    def __init__(self, url: str, *, echo: bool = False):
        self._url = url
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database.connect() has not been called")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError("Database.connect() has not been called")
        return self._session_factory

    def connect(self) -> None:
        """Create the engine and session factory. Idempotent."""
        if self._engine is not None:
            return
        self._engine = create_async_engine(to_async_url(self._url), echo=self._echo, future=True)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Database engine created for %s", urlparse(self._url).hostname)

    async def ensure_database_exists(self) -> None:
        """Create the PostgreSQL database if it does not yet exist.

        Connects to the default ``postgres`` maintenance database, checks for the
        target database name, and issues ``CREATE DATABASE`` when missing.
        Failures are logged; schema creation will surface a real problem.
        """
        dsn = to_asyncpg_dsn(self._url)
        db_name = urlparse(dsn).path.lstrip("/")
        if not db_name:
            return

        maintenance_dsn = dsn.rsplit("/", 1)[0] + "/postgres"
        try:
            conn = await asyncpg.connect(maintenance_dsn)
        except (OSError, asyncpg.PostgresError) as exc:
            logger.warning("Could not auto-create database '%s': %s", db_name, exc)
            return
        try:
            exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", db_name)
            if not exists:
                # CREATE DATABASE cannot run inside a transaction block
                await conn.execute(f'CREATE DATABASE "{db_name}"')
                logger.info("Created database '%s'", db_name)
            else:
                logger.debug("Database '%s' already exists", db_name)
        except asyncpg.PostgresError as exc:
            logger.warning("Could not auto-create database '%s': %s", db_name, exc)
        finally:
            await conn.close()

    async def create_schema(self) -> None:
        """Enable pgvector and create all tables and indexes."""
        async with self.engine.begin() as conn:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready")

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[AsyncSession]:
        """Yield a session that commits on success and rolls back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None
