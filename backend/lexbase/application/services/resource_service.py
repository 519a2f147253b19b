"""Resource service — manual-text ingestion and resource management.

Ingestion pipeline shared by every source type:
    Validate → Create Resource → Chunk → Embed → Store embeddings

Nothing here raises across the ingestion boundary: validation problems
and unexpected failures come back as a failed :class:`IngestionOutcome`.
Partial ingestion is preferred over none, so a resource whose embedding
batches partly failed is still reported as created.
"""

import logging
import time
from typing import Any

from pydantic import ValidationError

from lexbase.application.interfaces import EmbeddingRepository, ResourceRepository
from lexbase.application.schemas import ResourceCreate
from lexbase.application.services.chunker import TextChunker
from lexbase.application.services.embedding_service import EmbeddingService
from lexbase.application.services.token_estimator import estimate_tokens
from lexbase.domain.entities import Embedding, IngestionOutcome, Resource, SourceType
from lexbase.domain.exceptions import EntityNotFoundError
from lexbase.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("IngestionPipeline")


def describe_validation_error(exc: ValidationError) -> str:
    """Flatten a pydantic error into a single human-readable sentence."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "input"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "Invalid input: " + "; ".join(parts)


class ResourceService:
    """Orchestrates resource ingestion and management over the repository ports."""

    def __init__(
        self,
        resource_repository: ResourceRepository,
        embedding_repository: EmbeddingRepository,
        embedding_service: EmbeddingService,
        chunker: TextChunker,
        *,
        text_token_warning: int = 800,
    ):
        self._resource_repo = resource_repository
        self._embedding_repo = embedding_repository
        self._embedding_service = embedding_service
        self._chunker = chunker
        self._text_token_warning = text_token_warning

    # ── Ingestion ────────────────────────────────────────────────────

    async def create_resource(self, data: ResourceCreate | dict[str, Any]) -> IngestionOutcome:
        """Validate the input and run the ingestion pipeline."""
        try:
            payload = data if isinstance(data, ResourceCreate) else ResourceCreate.model_validate(data)
        except ValidationError as exc:
            message = describe_validation_error(exc)
            plog.step_error(PipelineStage.INGEST, message)
            return IngestionOutcome.failure(message)

        return await self.ingest(payload.content, payload.source_type, payload.source_id)

    async def ingest(
        self,
        content: str,
        source_type: SourceType,
        source_id: str | None = None,
    ) -> IngestionOutcome:
        """Create a resource from already-validated content and embed its chunks."""
        plog.separator(f"Ingest {source_type.value}")
        plog.step_start(
            PipelineStage.INGEST,
            "Creating resource",
            chars=len(content),
            source_type=source_type.value,
            source_id=source_id or "N/A",
        )

        if source_type == SourceType.TEXT:
            tokens = estimate_tokens(content)
            if tokens > self._text_token_warning:
                plog.step_warning(
                    PipelineStage.CHUNK,
                    "Manual text exceeds the recommended size and will be embedded as a single chunk",
                    estimated_tokens=tokens,
                    limit=self._text_token_warning,
                )

        try:
            resource = await self._resource_repo.create(
                Resource(content=content, source_type=source_type, source_id=source_id)
            )
        except Exception as exc:
            plog.step_error(PipelineStage.STORE, "Could not create resource", error=exc)
            logger.exception("Resource creation failed (source_type=%s, source_id=%s)", source_type.value, source_id)
            return IngestionOutcome.failure(f"Erro ao criar recurso: {exc}")

        plog.step_complete(PipelineStage.INGEST, "Resource created", resource_id=resource.id)
        return await self.embed_resource(resource)

    async def embed_resource(self, resource: Resource) -> IngestionOutcome:
        """Chunk → embed → store for an existing resource."""
        with plog.timed_step(PipelineStage.CHUNK, "Chunking content", resource_id=resource.id):
            chunks = self._chunker.chunk(resource.content, resource.source_type)
        plog.detail(f"{len(chunks)} chunks")

        embedded = await self._embedding_service.embed(chunks)
        if len(embedded) < len(chunks):
            plog.step_warning(
                PipelineStage.EMBED,
                "Some chunks could not be embedded",
                resource_id=resource.id,
                embedded=len(embedded),
                chunks=len(chunks),
            )

        stored = await self._store(resource.id, [(item.content, item.embedding) for item in embedded])

        plog.step_complete(
            PipelineStage.COMPLETE,
            "Resource ingested",
            resource_id=resource.id,
            chunks=len(chunks),
            embeddings=stored,
        )
        if stored == len(chunks):
            message = "Resource successfully created and embedded."
        else:
            message = f"Resource created; {stored} of {len(chunks)} chunks embedded."
        return IngestionOutcome(
            success=True,
            message=message,
            resource_id=resource.id,
            source_id=resource.source_id,
            chunk_count=len(chunks),
            embedding_count=stored,
            resource_ids=[resource.id],
        )

    async def _store(self, resource_id: str, pairs: list[tuple[str, list[float]]]) -> int:
        if not pairs:
            return 0
        embeddings = [
            Embedding(resource_id=resource_id, content=content, embedding=vector)
            for content, vector in pairs
        ]
        try:
            return await self._embedding_repo.store(embeddings)
        except Exception as exc:
            plog.step_error(PipelineStage.STORE, f"Could not store embeddings for resource {resource_id}", error=exc)
            logger.exception("Embedding write failed for resource %s", resource_id)
            return 0

    async def add_to_knowledge_base(self, content: str, title: str | None = None) -> IngestionOutcome:
        """Add user-provided text as a manual resource, optionally headed by a title."""
        full_content = f"# {title}\n\n{content}" if title else content
        source_id = f"user-{int(time.time() * 1000)}"
        outcome = await self.create_resource(
            {"content": full_content, "source_type": SourceType.TEXT, "source_id": source_id}
        )
        if outcome.success:
            outcome.message = "Conteúdo adicionado com sucesso à base de conhecimento."
        return outcome

    # ── Queries ──────────────────────────────────────────────────────

    async def get_resource(self, resource_id: str) -> Resource:
        resource = await self._resource_repo.get_by_id(resource_id)
        if resource is None:
            raise EntityNotFoundError("Resource", resource_id)
        return resource

    async def list_resources(
        self,
        source_type: SourceType | None = None,
        source_id: str | None = None,
    ) -> list[Resource]:
        """List resources oldest first, optionally filtered by source id or type."""
        if source_id is not None:
            resources = await self._resource_repo.get_by_source_id(source_id)
            if source_type is not None:
                resources = [r for r in resources if r.source_type == source_type]
            return resources
        if source_type is not None:
            return await self._resource_repo.get_by_source_type(source_type)
        return await self._resource_repo.get_all()

    async def get_embeddings(self, resource_id: str) -> list[Embedding]:
        return await self._embedding_repo.get_by_resource(resource_id)

    # ── Deletion ─────────────────────────────────────────────────────

    async def delete_resource(self, resource_id: str) -> bool:
        """Delete a resource; its embeddings go with it by cascade."""
        deleted = await self._resource_repo.delete(resource_id)
        if not deleted:
            raise EntityNotFoundError("Resource", resource_id)
        logger.info("Deleted resource %s", resource_id)
        return True

    async def delete_by_source_id(self, source_id: str) -> int:
        count = await self._resource_repo.delete_by_source_id(source_id)
        logger.info("Deleted %d resources with source_id %s", count, source_id)
        return count
