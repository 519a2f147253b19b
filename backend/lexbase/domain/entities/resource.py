"""Domain entities for knowledge resources and their vector embeddings."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class SourceType(str, Enum):
    """Where a resource's content came from — determines the chunking policy."""

    TEXT = "text"
    LINK = "link"
    PDF = "pdf"


@dataclass
class Resource:
    """Core domain entity: a unit of ingested knowledge.

    The content is the full post-extraction text, possibly with structural
    metadata prepended as plain-text headers (PDF preamble, link title/URL).
    ``source_id`` groups resources derived from the same origin (a Link id,
    a ``pdf-…`` upload id or a ``curador-…`` curation session id) so they can
    be listed and deleted together.
    """

    content: str
    source_type: SourceType = SourceType.TEXT
    source_id: str | None = None
    id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Embedding:
    """A (chunk-of-content, vector) pair owned by a resource.

    ``content`` is the exact chunk text the vector represents. Embeddings
    are never updated in place; they are removed by cascade when the
    owning resource is deleted.
    """

    resource_id: str
    content: str
    embedding: list[float] = field(default_factory=list)
    id: int | None = None


@dataclass
class ChunkEmbedding:
    """An embedding produced for one input text, tagged with its input position."""

    index: int
    content: str
    embedding: list[float]
