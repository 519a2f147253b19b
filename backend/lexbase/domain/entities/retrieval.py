"""Domain entities for query-time retrieval — search candidates and ranked fragments."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SearchCandidate:
    """A single row returned by the vector similarity search."""

    content: str
    similarity: float  # 1 - cosine distance
    resource_id: str


@dataclass(frozen=True)
class ScoredCandidate:
    """A search candidate annotated with its heuristic quality score."""

    content: str
    similarity: float
    resource_id: str
    quality_score: int
    composite_score: float


@dataclass(frozen=True)
class Fragment:
    """A retrieved chunk selected for prompt injection."""

    content: str
    similarity: float
    resource_id: str
    token_count: int
    quality_score: int


@dataclass
class KnowledgeQueryResult:
    """Merged multi-query retrieval result with the legal references it cites."""

    question: str
    fragments: list[Fragment] = field(default_factory=list)
    legal_references: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.fragments
