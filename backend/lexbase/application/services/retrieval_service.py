"""Retrieval service — query-time selection of grounding fragments.

Pipeline for a single query:

1. normalise the query (lowercase, trim)
2. embed it
3. similarity search with a permissive threshold and an over-fetch limit
4. quality filter and composite re-ranking
5. greedy selection under three caps: fragments per resource (skip),
   total token budget (stop) and fragment count (stop)

Failures at steps 2 and 3, including timeouts, are logged and turn into an
empty result. The caller never sees an exception from this service.
"""

import logging
from collections.abc import Iterable, Sequence

from lexbase.application.interfaces.embedding_repository import EmbeddingRepository
from lexbase.application.services.content_quality import (
    DEFAULT_RULE_TABLE,
    RuleCategory,
    filter_low_quality,
)
from lexbase.application.services.embedding_service import EmbeddingService
from lexbase.application.services.error_classification import call_with_timeout
from lexbase.application.services.token_estimator import estimate_tokens
from lexbase.domain.entities import Fragment, ScoredCandidate
from lexbase.domain.result import Err, Ok

logger = logging.getLogger(__name__)


def select_fragments(
    candidates: Iterable[ScoredCandidate],
    *,
    max_tokens: int,
    max_fragments: int,
    max_per_resource: int,
) -> list[Fragment]:
    """Greedy selection over composite-ordered candidates.

    A candidate whose resource already contributed ``max_per_resource``
    fragments is skipped and scanning continues. The first candidate that
    would push the token total past ``max_tokens`` ends the selection, as
    does reaching ``max_fragments``.
    """
    selected: list[Fragment] = []
    per_resource: dict[str, int] = {}
    total_tokens = 0

    if max_fragments < 1:
        return selected

    for candidate in candidates:
        if per_resource.get(candidate.resource_id, 0) >= max_per_resource:
            continue

        tokens = estimate_tokens(candidate.content)
        if total_tokens + tokens > max_tokens:
            break

        selected.append(
            Fragment(
                content=candidate.content,
                similarity=candidate.similarity,
                resource_id=candidate.resource_id,
                token_count=tokens,
                quality_score=candidate.quality_score,
            )
        )
        total_tokens += tokens
        per_resource[candidate.resource_id] = per_resource.get(candidate.resource_id, 0) + 1

        if len(selected) >= max_fragments:
            break

    return selected


class RetrievalService:
    """Finds the fragments to inject into a prompt for a user question."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        embedding_repository: EmbeddingRepository,
        *,
        similarity_threshold: float = 0.2,
        candidate_limit: int = 20,
        min_quality_score: int = 5,
        max_tokens: int = 2500,
        max_fragments: int = 6,
        max_per_resource: int = 2,
        search_timeout_seconds: float = 5.0,
        rule_table: Sequence[RuleCategory] = DEFAULT_RULE_TABLE,
    ):
        self._embedding_service = embedding_service
        self._embedding_repo = embedding_repository
        self._similarity_threshold = similarity_threshold
        self._candidate_limit = candidate_limit
        self._min_quality_score = min_quality_score
        self._max_tokens = max_tokens
        self._max_fragments = max_fragments
        self._max_per_resource = max_per_resource
        self._search_timeout = search_timeout_seconds
        self._rule_table = rule_table

    async def find_relevant_content(self, query: str) -> list[Fragment]:
        """Return ranked fragments for *query*, or ``[]`` when nothing usable is found."""
        normalized = query.lower().strip()
        if not normalized:
            return []

        match await self._embedding_service.generate_embedding(normalized):
            case Err(kind=kind, message=message):
                logger.error(
                    "Retrieval aborted for %r: query embedding failed (%s): %s",
                    normalized,
                    kind.value,
                    message,
                )
                return []
            case Ok(value=query_vector):
                pass

        search = await call_with_timeout(
            self._embedding_repo.search_similar(
                query_vector,
                threshold=self._similarity_threshold,
                limit=self._candidate_limit,
            ),
            self._search_timeout,
            "Similarity search",
        )
        match search:
            case Err(kind=kind, message=message):
                logger.error(
                    "Retrieval aborted for %r: similarity search failed (%s): %s",
                    normalized,
                    kind.value,
                    message,
                )
                return []
            case Ok(value=candidates):
                pass

        ranked = filter_low_quality(candidates, self._min_quality_score, self._rule_table)
        fragments = select_fragments(
            ranked,
            max_tokens=self._max_tokens,
            max_fragments=self._max_fragments,
            max_per_resource=self._max_per_resource,
        )

        logger.info(
            "Retrieved %d fragments for %r (%d candidates, %d after quality filter, %d tokens)",
            len(fragments),
            normalized,
            len(candidates),
            len(ranked),
            sum(f.token_count for f in fragments),
        )
        for position, fragment in enumerate(fragments, start=1):
            logger.debug(
                "Fragment #%d: similarity=%.4f quality=%d tokens=%d resource=%s",
                position,
                fragment.similarity,
                fragment.quality_score,
                fragment.token_count,
                fragment.resource_id,
            )
        return fragments
