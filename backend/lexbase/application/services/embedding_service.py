"""Embedding service — batched embedding generation on top of an EmbeddingProvider.

This is an application service that coordinates:
1. Splitting the inputs into provider-sized batches, each item tagged with its input index
2. Calling the EmbeddingProvider batch by batch with a pause in between
3. Isolating failures per batch — a failed batch is logged and produces no vectors

Query-time embedding (a single text) goes through :meth:`EmbeddingService.generate_embedding`,
which never raises and reports failures as ``Err``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from lexbase.application.interfaces.embedding_provider import EmbeddingProvider
from lexbase.application.services.error_classification import call_with_timeout
from lexbase.domain.entities import ChunkEmbedding
from lexbase.domain.result import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

_DEFAULT_BATCH_SIZE = 20
_DEFAULT_BATCH_DELAY_SECONDS = 0.5
_DEFAULT_TIMEOUT_SECONDS = 10.0

Sleep = Callable[[float], Awaitable[None]]


class EmbeddingService:
    """Application service for turning chunks into vectors.

    Output order follows input order: every result carries the index of
    the text it was produced from, and results are reassembled by index.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
        batch_delay_seconds: float = _DEFAULT_BATCH_DELAY_SECONDS,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._provider = embedding_provider
        self._batch_size = batch_size
        self._batch_delay = batch_delay_seconds
        self._timeout = timeout_seconds
        self._sleep = sleep

    @property
    def dimensions(self) -> int:
        return self._provider.dimensions

    async def embed(self, texts: list[str]) -> list[ChunkEmbedding]:
        """Embed *texts* in batches; failed batches are skipped.

        Returns:
            One ``ChunkEmbedding`` per successfully embedded text, ordered by
            input index. Indices of failed batches are simply absent.
        """
        if not texts:
            return []

        indexed = list(enumerate(texts))
        results: list[ChunkEmbedding] = []
        failed_batches = 0

        for batch_start in range(0, len(indexed), self._batch_size):
            batch = indexed[batch_start : batch_start + self._batch_size]
            batch_end = batch_start + len(batch)

            outcome = await call_with_timeout(
                self._provider.generate_embeddings([text for _, text in batch]),
                self._timeout,
                f"Embedding batch {batch_start}-{batch_end}",
            )
            match outcome:
                case Ok(value=vectors) if len(vectors) == len(batch):
                    results.extend(
                        ChunkEmbedding(index=index, content=text, embedding=vector)
                        for (index, text), vector in zip(batch, vectors)
                    )
                case Ok(value=vectors):
                    failed_batches += 1
                    logger.error(
                        "Embedding batch %d-%d returned %d vectors for %d texts, skipping batch",
                        batch_start,
                        batch_end,
                        len(vectors),
                        len(batch),
                    )
                case Err(kind=kind, message=message):
                    failed_batches += 1
                    logger.error(
                        "Embedding batch %d-%d failed (%s): %s; continuing with next batch",
                        batch_start,
                        batch_end,
                        kind.value,
                        message,
                    )

            if batch_end < len(indexed) and self._batch_delay > 0:
                await self._sleep(self._batch_delay)

        results.sort(key=lambda item: item.index)
        logger.info(
            "Embedded %d/%d texts (%d failed batches)",
            len(results),
            len(texts),
            failed_batches,
        )
        return results

    async def generate_embedding(self, text: str) -> Result[list[float]]:
        """Embed a single text (newlines replaced by spaces) without batching."""
        query = text.replace("\n", " ")
        outcome = await call_with_timeout(
            self._provider.generate_query_embedding(query),
            self._timeout,
            "Query embedding",
        )
        if isinstance(outcome, Ok) and not outcome.value:
            return Err(kind=ErrorKind.INVALID_RESPONSE, message="Provider returned an empty vector")
        return outcome
