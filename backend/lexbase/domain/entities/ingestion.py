"""Domain entity describing the outcome of an ingestion request."""

from dataclasses import dataclass, field


@dataclass
class IngestionOutcome:
    """Structured result returned across the ingestion-trigger boundary.

    Ingestion never raises to its caller; failures are reported here with a
    human-readable message.
    """

    success: bool
    message: str
    resource_id: str | None = None
    source_id: str | None = None
    chunk_count: int = 0
    embedding_count: int = 0
    resource_ids: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, message: str) -> "IngestionOutcome":
        return cls(success=False, message=message)
