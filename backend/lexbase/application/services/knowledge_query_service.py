"""Multi-query knowledge lookup with legal-reference extraction.

A question and its optional keywords are searched one after another
(they share one database session). Results are merged and de-duplicated
by content, keeping the copy with the highest similarity, then ordered by
similarity and capped. Legal references are collected from all unique
fragments before the cap.
"""

import logging
import re
from collections.abc import Iterable, Sequence

from lexbase.application.services.retrieval_service import RetrievalService
from lexbase.domain.entities import Fragment, KnowledgeQueryResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 8
_MIN_REFERENCE_LENGTH = 3

_NUMBER = r"\d+(?:\.\d+)*"

# Ordered rule table; every match of every rule is collected.
LEGAL_REFERENCE_RULES: tuple[re.Pattern[str], ...] = (
    # "Art. 482 da CLT", "artigo 7º da Constituição Federal"
    re.compile(
        rf"\bart(?:igo)?\.?\s*{_NUMBER}[º°o]?"
        rf"(?:\s+d[ao]\s+(?:CLT|CF|Constituição Federal|Lei\s+(?:n[º°.]?\s*)?{_NUMBER}(?:/\d{{2,4}})?))?",
        re.IGNORECASE,
    ),
    # "Lei nº 13.467/2017", "Decreto 10.854", "Súmula 331"
    re.compile(
        r"\b(?:lei(?:\s+complementar)?|decreto(?:-lei)?|portaria|súmula|instrução normativa|medida provisória)"
        rf"\s+(?:n[º°.]?\s*)?{_NUMBER}(?:/\d{{2,4}})?",
        re.IGNORECASE,
    ),
    # Bare mentions of the main codes
    re.compile(r"\b(?:CLT|Consolidação das Leis do Trabalho|Constituição Federal)\b"),
)


def extract_legal_references(
    content: str,
    rules: Sequence[re.Pattern[str]] = LEGAL_REFERENCE_RULES,
) -> list[str]:
    """Return distinct legal references cited in *content*, in discovery order."""
    references: dict[str, None] = {}
    for pattern in rules:
        for match in pattern.finditer(content):
            reference = match.group(0).strip()
            if len(reference) >= _MIN_REFERENCE_LENGTH:
                references.setdefault(reference, None)
    return list(references)


def merge_fragments(groups: Iterable[Iterable[Fragment]], limit: int | None = None) -> list[Fragment]:
    """Merge result lists, de-duplicate by content and sort by similarity."""
    best: dict[str, Fragment] = {}
    for fragments in groups:
        for fragment in fragments:
            current = best.get(fragment.content)
            if current is None or fragment.similarity > current.similarity:
                best[fragment.content] = fragment
    merged = sorted(best.values(), key=lambda f: f.similarity, reverse=True)
    return merged if limit is None else merged[:limit]


class KnowledgeQueryService:
    """Answers knowledge-base lookups for the chat assistant."""

    def __init__(
        self,
        retrieval_service: RetrievalService,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        reference_rules: Sequence[re.Pattern[str]] = LEGAL_REFERENCE_RULES,
    ):
        self._retrieval = retrieval_service
        self._max_results = max_results
        self._reference_rules = reference_rules

    async def query(self, question: str, keywords: list[str] | None = None) -> KnowledgeQueryResult:
        queries = [question] + [k for k in (keywords or []) if k.strip()]
        logger.info("Knowledge query %r with %d keywords", question, len(queries) - 1)

        groups: list[list[Fragment]] = []
        for text in queries:
            fragments = await self._retrieval.find_relevant_content(text)
            logger.debug("%d fragments for %r", len(fragments), text)
            groups.append(fragments)

        unique = merge_fragments(groups)
        merged = unique[: self._max_results]

        references: dict[str, None] = {}
        for fragment in unique:
            for reference in extract_legal_references(fragment.content, self._reference_rules):
                references.setdefault(reference, None)

        logger.info(
            "Knowledge query %r: %d unique fragments, %d returned, %d legal references",
            question,
            len(unique),
            len(merged),
            len(references),
        )
        return KnowledgeQueryResult(
            question=question,
            fragments=merged,
            legal_references=list(references),
        )
