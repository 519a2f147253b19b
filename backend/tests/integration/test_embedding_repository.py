"""Integration tests for pgvector storage, similarity search and cascade delete."""

import math
import os
import uuid

import pytest
from sqlalchemy.exc import DBAPIError

from lexbase.config import get_settings
from lexbase.domain.entities import Embedding, Resource, SourceType
from lexbase.infrastructure.database import Database
from lexbase.infrastructure.database.models.resource_models import EMBEDDING_DIMENSIONS
from lexbase.infrastructure.database.repositories import (
    PgEmbeddingRepository,
    SQLAlchemyResourceRepository,
)


def _unit_vector(*hot: int) -> list[float]:
    vector = [0.0] * EMBEDDING_DIMENSIONS
    for index in hot:
        vector[index] = 1.0
    norm = math.sqrt(len(hot))
    return [v / norm for v in vector]


async def _database() -> Database:
    url = os.environ.get("LEXBASE_TEST_DATABASE_URL", get_settings().database_url)
    database = Database(url)
    database.connect()
    try:
        await database.ensure_database_exists()
        await database.create_schema()
    except Exception as exc:  # pragma: no cover - environment dependent
        await database.dispose()
        pytest.skip(f"PostgreSQL with pgvector not reachable in this environment: {exc}")
    return database


@pytest.mark.asyncio
async def test_search_ranks_by_cosine_similarity_and_delete_cascades():
    database = await _database()
    source_id = f"test-{uuid.uuid4().hex[:12]}"
    try:
        async with database.session_scope() as session:
            resources = SQLAlchemyResourceRepository(session)
            embeddings = PgEmbeddingRepository(session, write_batch_size=1)

            near = await resources.create(Resource(content="near", source_type=SourceType.LINK, source_id=source_id))
            far = await resources.create(Resource(content="far", source_type=SourceType.LINK, source_id=source_id))
            written = await embeddings.store(
                [
                    Embedding(resource_id=near.id, content="férias anuais", embedding=_unit_vector(0)),
                    Embedding(resource_id=near.id, content="férias e abono", embedding=_unit_vector(0, 1)),
                    Embedding(resource_id=far.id, content="sem relação", embedding=_unit_vector(5)),
                ]
            )
            assert written == 3

            hits = await embeddings.search_similar(_unit_vector(0), threshold=0.2, limit=20)
            ours = [hit for hit in hits if hit.resource_id in {near.id, far.id}]

            assert [hit.content for hit in ours] == ["férias anuais", "férias e abono"]
            assert ours[0].similarity == pytest.approx(1.0, abs=1e-5)
            assert ours[1].similarity == pytest.approx(1 / math.sqrt(2), abs=1e-5)

            stored = await embeddings.get_by_resource(near.id)
            assert len(stored) == 2
            assert len(stored[0].embedding) == EMBEDDING_DIMENSIONS

            assert await resources.delete(near.id) is True
            assert await embeddings.get_by_resource(near.id) == []
            assert len(await embeddings.get_by_resource(far.id)) == 1

            assert await resources.delete_by_source_id(source_id) == 1
    finally:
        await database.dispose()


@pytest.mark.asyncio
async def test_failed_insert_leaves_session_usable():
    database = await _database()
    source_id = f"test-{uuid.uuid4().hex[:12]}"
    try:
        async with database.session_scope() as session:
            resources = SQLAlchemyResourceRepository(session)
            first = await resources.create(Resource(content="primeiro", source_type=SourceType.TEXT, source_id=source_id))

            # PostgreSQL rejects NUL characters in text columns
            with pytest.raises(DBAPIError):
                await resources.create(
                    Resource(content="texto\x00inválido", source_type=SourceType.TEXT, source_id=source_id)
                )

            # the outer transaction survives the rolled-back savepoint
            second = await resources.create(Resource(content="segundo", source_type=SourceType.TEXT, source_id=source_id))
            assert {r.id for r in await resources.get_by_source_id(source_id)} == {first.id, second.id}

        async with database.session_scope() as session:
            assert await SQLAlchemyResourceRepository(session).delete_by_source_id(source_id) == 2
    finally:
        await database.dispose()
