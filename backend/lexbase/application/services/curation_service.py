"""Curated ingestion — operator-supplied chunk boundaries for legislative excerpts.

Two variants:

* :meth:`CurationService.save_curated_resource` keeps a single resource as
  the authoritative full text and stores one embedding per supplied chunk
  (fan-out). Embedding content is the chunk under ``**Lei:**`` /
  ``**Contexto:**`` headers, so it is not what the chunker would produce
  from the resource content.
* :meth:`CurationService.save_curated_chunks` turns every chunk into its own
  manual-text resource tagged with a shared curation session.

Empty chunks are skipped in both.
"""

import logging
import uuid
from typing import Any

from pydantic import ValidationError

from lexbase.application.interfaces import EmbeddingRepository, ResourceRepository
from lexbase.application.schemas import CuratedChunksCreate, CuratedResourceCreate
from lexbase.application.services.embedding_service import EmbeddingService
from lexbase.application.services.resource_service import ResourceService, describe_validation_error
from lexbase.domain.entities import Embedding, IngestionOutcome, Resource, SourceType
from lexbase.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("IngestionPipeline")


def _new_session_id() -> str:
    return f"curador-{uuid.uuid4().hex[:16]}"


def _metadata_header(lei: str, contexto: str) -> str:
    header = ""
    if lei.strip():
        header += f"**Lei:** {lei.strip()}\n\n"
    if contexto.strip():
        header += f"**Contexto:** {contexto.strip()}\n\n"
    return header


def build_curated_chunk_content(
    chunk: str,
    position: int,
    session_id: str,
    lei: str = "",
    contexto: str = "",
    url: str = "",
) -> str:
    """Content of a stand-alone curated chunk resource (``position`` is 1-based)."""
    content = f"# Chunk Curado {position} - {lei.strip() or 'Legislação'}\n\n"
    content += _metadata_header(lei, contexto)
    if url.strip():
        content += f"**Fonte:** {url.strip()}\n\n"
    content += chunk.strip()
    content += "\n\n**Tipo:** Curado Manualmente"
    content += f"\n**Sessão:** {session_id}"
    return content


class CurationService:
    """Stores operator-curated excerpts without algorithmic chunking."""

    def __init__(
        self,
        resource_repository: ResourceRepository,
        embedding_repository: EmbeddingRepository,
        embedding_service: EmbeddingService,
        resource_service: ResourceService,
    ):
        self._resource_repo = resource_repository
        self._embedding_repo = embedding_repository
        self._embedding_service = embedding_service
        self._resources = resource_service

    async def save_curated_resource(
        self, data: CuratedResourceCreate | dict[str, Any]
    ) -> IngestionOutcome:
        """One resource holding the full content, one embedding per non-empty chunk."""
        try:
            payload = (
                data if isinstance(data, CuratedResourceCreate) else CuratedResourceCreate.model_validate(data)
            )
        except ValidationError as exc:
            return IngestionOutcome.failure(describe_validation_error(exc))

        header = _metadata_header(payload.lei, payload.contexto)
        contents = [header + chunk.strip() for chunk in payload.chunks if chunk.strip()]
        if not contents:
            return IngestionOutcome.failure("Nenhum chunk fornecido para salvar")

        session_id = _new_session_id()
        plog.separator(f"Curated resource {session_id}")
        try:
            resource = await self._resource_repo.create(
                Resource(content=payload.full_content, source_type=SourceType.TEXT, source_id=session_id)
            )
        except Exception as exc:
            plog.step_error(PipelineStage.STORE, "Could not create curated resource", error=exc)
            logger.exception("Curated resource creation failed (session=%s)", session_id)
            return IngestionOutcome.failure(f"Erro ao salvar recurso curado: {exc}")

        embedded = await self._embedding_service.embed(contents)
        stored = 0
        if embedded:
            try:
                stored = await self._embedding_repo.store(
                    [
                        Embedding(resource_id=resource.id, content=item.content, embedding=item.embedding)
                        for item in embedded
                    ]
                )
            except Exception as exc:
                plog.step_error(PipelineStage.STORE, f"Embedding write failed for resource {resource.id}", error=exc)
                logger.exception("Curated embedding write failed for resource %s", resource.id)

        plog.step_complete(
            PipelineStage.COMPLETE,
            "Curated resource saved",
            resource_id=resource.id,
            chunks=len(contents),
            embeddings=stored,
        )
        return IngestionOutcome(
            success=True,
            message=(
                f"Recurso curado salvo com {len(contents)} chunks "
                f"e {stored} embeddings criados!"
            ),
            resource_id=resource.id,
            source_id=session_id,
            chunk_count=len(contents),
            embedding_count=stored,
            resource_ids=[resource.id],
        )

    async def save_curated_chunks(
        self, data: CuratedChunksCreate | dict[str, Any]
    ) -> IngestionOutcome:
        """One manual-text resource (and embedding) per non-empty chunk."""
        try:
            payload = (
                data if isinstance(data, CuratedChunksCreate) else CuratedChunksCreate.model_validate(data)
            )
        except ValidationError as exc:
            return IngestionOutcome.failure(describe_validation_error(exc))

        session_id = _new_session_id()
        plog.separator(f"Curated chunks {session_id}")

        resource_ids: list[str] = []
        embedding_count = 0
        for position, chunk in enumerate(payload.chunks, start=1):
            if not chunk.strip():
                continue
            content = build_curated_chunk_content(
                chunk, position, session_id, payload.lei, payload.contexto, payload.url
            )
            outcome = await self._resources.ingest(
                content, SourceType.TEXT, f"{session_id}-chunk-{position}"
            )
            if not outcome.success:
                plog.step_error(PipelineStage.INGEST, f"Curated chunk {position} failed: {outcome.message}")
                continue
            resource_ids.append(outcome.resource_id)
            embedding_count += outcome.embedding_count

        if not resource_ids:
            return IngestionOutcome.failure("Nenhum chunk fornecido para salvar")

        return IngestionOutcome(
            success=True,
            message=f"{len(resource_ids)} chunks curados salvos com sucesso!",
            source_id=session_id,
            chunk_count=len(resource_ids),
            embedding_count=embedding_count,
            resource_ids=resource_ids,
        )
