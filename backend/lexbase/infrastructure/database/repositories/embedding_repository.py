"""SQLAlchemy implementation of EmbeddingRepository — pgvector-powered vector search."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lexbase.application.interfaces import EmbeddingRepository
from lexbase.domain.entities import Embedding, SearchCandidate
from lexbase.infrastructure.database.models.resource_models import EmbeddingModel

logger = logging.getLogger(__name__)


class PgEmbeddingRepository(EmbeddingRepository):
    """Concrete embedding repository backed by PostgreSQL + pgvector."""

    def __init__(self, session: AsyncSession, *, write_batch_size: int = 100):
        self._session = session
        self._write_batch_size = max(1, write_batch_size)

    async def store(self, embeddings: list[Embedding]) -> int:
        """Insert embeddings, one SAVEPOINT per write batch.

        A failing batch rolls back to its savepoint only, so the owning
        resource row and earlier batches survive.
        """
        written = 0
        for start in range(0, len(embeddings), self._write_batch_size):
            batch = embeddings[start : start + self._write_batch_size]
            models = [
                EmbeddingModel(
                    resource_id=item.resource_id,
                    content=item.content,
                    embedding=item.embedding,
                )
                for item in batch
            ]
            try:
                async with self._session.begin_nested():
                    self._session.add_all(models)
            except SQLAlchemyError as exc:
                logger.error(
                    "Embedding write batch %d-%d for resource %s failed: %s",
                    start + 1,
                    start + len(batch),
                    batch[0].resource_id,
                    exc,
                )
                continue

            for item, model in zip(batch, models):
                item.id = model.id
            written += len(batch)
            logger.debug(
                "Stored embeddings %d-%d of %d for resource %s",
                start + 1,
                start + len(batch),
                len(embeddings),
                batch[0].resource_id,
            )

        if embeddings:
            logger.info("Stored %d/%d embeddings", written, len(embeddings))
        return written

    async def search_similar(
        self,
        query_embedding: list[float],
        *,
        threshold: float,
        limit: int,
    ) -> list[SearchCandidate]:
        """Cosine-similarity search: ``1 - (embedding <=> query) > threshold``.

        Ordering by distance lets PostgreSQL use the HNSW index; the id
        tiebreak keeps equal-similarity rows in a stable order.
        """
        distance = EmbeddingModel.embedding.cosine_distance(query_embedding)
        similarity = (1 - distance).label("similarity")

        query = (
            select(EmbeddingModel.content, EmbeddingModel.resource_id, similarity)
            .where(1 - distance > threshold)
            .order_by(distance, EmbeddingModel.id)
            .limit(limit)
        )
        result = await self._session.execute(query)

        return [
            SearchCandidate(
                content=row.content,
                similarity=float(row.similarity),
                resource_id=row.resource_id,
            )
            for row in result.all()
        ]

    async def get_by_resource(self, resource_id: str) -> list[Embedding]:
        result = await self._session.execute(
            select(EmbeddingModel)
            .where(EmbeddingModel.resource_id == resource_id)
            .order_by(EmbeddingModel.id)
        )
        return [
            Embedding(
                id=model.id,
                resource_id=model.resource_id,
                content=model.content,
                embedding=[float(v) for v in model.embedding],
            )
            for model in result.scalars().all()
        ]
