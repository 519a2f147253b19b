"""Link service — monitored web pages materialized into LINK resources.

Pipeline:
    Fetch (with retry) → Format "# title / URL / text" → ResourceService.ingest
    → mark link processed

Only failures whose ``ErrorKind`` is retryable are retried; the wait
before attempt ``n + 1`` is ``backoff × 2^(n - 1)`` (2s, 4s, … by default).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from lexbase.application.interfaces import LinkRepository, PageFetcher
from lexbase.application.interfaces.page_fetcher import FetchedPage
from lexbase.application.schemas import LinkCreate
from lexbase.application.services.error_classification import is_retryable
from lexbase.application.services.resource_service import ResourceService, describe_validation_error
from lexbase.domain.entities import IngestionOutcome, Link, SourceType
from lexbase.domain.exceptions import EntityNotFoundError
from lexbase.domain.result import Err, ErrorKind, Ok, Result
from lexbase.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("IngestionPipeline")

Sleep = Callable[[float], Awaitable[None]]


def format_link_content(title: str, url: str, text: str) -> str:
    return f"# {title}\n\nURL: {url}\n\n{text}"


class LinkService:
    """Creates, refreshes and deletes links together with their derived resources."""

    def __init__(
        self,
        link_repository: LinkRepository,
        page_fetcher: PageFetcher,
        resource_service: ResourceService,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 2.0,
        sleep: Sleep = asyncio.sleep,
    ):
        self._link_repo = link_repository
        self._fetcher = page_fetcher
        self._resources = resource_service
        self._max_attempts = max(1, max_attempts)
        self._backoff = backoff_seconds
        self._sleep = sleep

    async def create_link(self, data: LinkCreate | dict[str, Any]) -> IngestionOutcome:
        """Register a link and ingest its content immediately."""
        try:
            payload = data if isinstance(data, LinkCreate) else LinkCreate.model_validate(data)
        except ValidationError as exc:
            return IngestionOutcome.failure(describe_validation_error(exc))

        url = str(payload.url)
        existing = await self._link_repo.get_by_url(url)
        if existing is not None:
            logger.info("Link %s already registered as %s", url, existing.id)
            return IngestionOutcome(
                success=False,
                message=f"Link já existe com ID: {existing.id}",
                source_id=existing.id,
            )

        try:
            link = await self._link_repo.create(
                Link(url=url, title=payload.title, description=payload.description)
            )
        except Exception as exc:
            plog.step_error(PipelineStage.STORE, f"Could not register link {url}", error=exc)
            logger.exception("Link creation failed for %s", url)
            return IngestionOutcome.failure(f"Erro ao salvar link: {exc}")
        plog.step_complete(PipelineStage.INGEST, "Link registered", link_id=link.id, url=url)

        outcome = await self._process(link)
        if outcome.success:
            outcome.message = "Link adicionado com sucesso e conteúdo processado."
        return outcome

    async def list_links(self) -> list[Link]:
        return await self._link_repo.get_all()

    async def get_link(self, link_id: str) -> Link:
        link = await self._link_repo.get_by_id(link_id)
        if link is None:
            raise EntityNotFoundError("Link", link_id)
        return link

    async def refresh_link(self, link_id: str) -> IngestionOutcome:
        """Drop the link's derived resources, then fetch and ingest again."""
        link = await self._link_repo.get_by_id(link_id)
        if link is None:
            return IngestionOutcome.failure("Link não encontrado.")

        try:
            removed = await self._resources.delete_by_source_id(link.id)
        except Exception as exc:
            plog.step_error(PipelineStage.STORE, f"Could not remove previous resources for link {link.id}", error=exc)
            logger.exception("Refresh of link %s aborted: derived resources not deleted", link.id)
            return IngestionOutcome(
                success=False,
                message=f"Erro ao remover conteúdo anterior do link: {exc}",
                source_id=link.id,
            )
        if removed:
            plog.detail(f"Removed {removed} previous resources for link {link.id}")

        outcome = await self._process(link)
        if outcome.success:
            outcome.message = "Conteúdo do link atualizado com sucesso."
        return outcome

    async def delete_link(self, link_id: str) -> int:
        """Delete the link's derived resources, then the link. Returns resources removed."""
        link = await self._link_repo.get_by_id(link_id)
        if link is None:
            raise EntityNotFoundError("Link", link_id)
        removed = await self._resources.delete_by_source_id(link.id)
        await self._link_repo.delete(link.id)
        logger.info("Deleted link %s and %d derived resources", link.id, removed)
        return removed

    # ── Pipeline ─────────────────────────────────────────────────────

    async def _process(self, link: Link) -> IngestionOutcome:
        match await self.fetch_with_retry(link.url):
            case Err(kind=kind, message=message):
                plog.step_error(PipelineStage.FETCH, f"Giving up on {link.url} ({kind.value}): {message}")
                return IngestionOutcome(
                    success=False,
                    message=f"Erro ao buscar conteúdo da URL: {message}",
                    source_id=link.id,
                )
            case Ok(value=page):
                pass

        content = format_link_content(link.title, link.url, page.text)
        outcome = await self._resources.ingest(content, SourceType.LINK, link.id)
        if outcome.success:
            link.mark_processed()
            try:
                await self._link_repo.update(link)
            except Exception as exc:
                plog.step_error(PipelineStage.STORE, f"Could not mark link {link.id} as processed", error=exc)
                logger.exception("Updating last_processed failed for link %s", link.id)
                outcome.success = False
                outcome.message = f"Conteúdo processado, mas o link não pôde ser atualizado: {exc}"
        return outcome

    async def fetch_with_retry(self, url: str) -> Result[FetchedPage]:
        """Fetch *url*, retrying retryable failures with exponential backoff."""
        last: Err = Err(kind=ErrorKind.UNKNOWN, message="no fetch attempted")
        for attempt in range(1, self._max_attempts + 1):
            plog.step_start(PipelineStage.FETCH, f"Fetching {url}", attempt=f"{attempt}/{self._max_attempts}")
            result = await self._fetcher.fetch(url)
            if isinstance(result, Ok):
                plog.step_complete(PipelineStage.FETCH, f"Fetched {len(result.value.text)} characters", url=url)
                return result

            last = result
            plog.step_warning(
                PipelineStage.FETCH,
                f"Attempt {attempt} failed for {url}",
                kind=result.kind.value,
                error=result.message,
            )
            if not is_retryable(result.kind) or attempt == self._max_attempts:
                break

            delay = self._backoff * 2 ** (attempt - 1)
            plog.detail(f"Waiting {delay:.1f}s before the next attempt")
            await self._sleep(delay)
        return last
