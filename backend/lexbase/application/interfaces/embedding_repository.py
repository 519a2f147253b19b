"""Abstract repository interface (port) for embeddings and vector search."""

from abc import ABC, abstractmethod

from lexbase.domain.entities import Embedding, SearchCandidate


class EmbeddingRepository(ABC):
    """Port for embedding persistence and cosine-similarity search."""

    @abstractmethod
    async def store(self, embeddings: list[Embedding]) -> int:
        """Persist embeddings. Returns how many rows were written.

        Implementations write in batches; a failed batch is logged and
        skipped without undoing earlier batches or the owning resource.
        """
        ...

    @abstractmethod
    async def search_similar(
        self,
        query_embedding: list[float],
        *,
        threshold: float,
        limit: int,
    ) -> list[SearchCandidate]:
        """Find embeddings whose cosine similarity to the query exceeds *threshold*.

        Args:
            query_embedding: The query vector.
            threshold: Strict lower bound on ``1 - cosine_distance``.
            limit: Maximum number of results.

        Returns:
            Candidates ordered by descending similarity.
        """
        ...

    @abstractmethod
    async def get_by_resource(self, resource_id: str) -> list[Embedding]:
        """Return every embedding owned by a resource."""
        ...
