"""Heuristic informativeness scoring for retrieved fragments.

Scores start at 10 and are adjusted by rule categories. Each category is an
ordered table of rules; the category's weight applies once when any of its
rules fires (first match wins, no stacking). The final score is clamped
to ``[0, 10]``.

The vocabulary is Brazilian Portuguese first (the knowledge base holds
pt-BR labor legislation) with English equivalents alongside.
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from lexbase.domain.entities import ScoredCandidate, SearchCandidate

BASE_SCORE = 10
MIN_SCORE = 0
MAX_SCORE = 10

SIMILARITY_WEIGHT = 0.7
QUALITY_WEIGHT = 0.3


@dataclass(frozen=True)
class QualityRule:
    """A regex that fires when it matches more than ``min_matches - 1`` times."""

    pattern: re.Pattern[str]
    min_matches: int = 1

    def matches(self, text: str) -> bool:
        if self.min_matches <= 1:
            return self.pattern.search(text) is not None
        return len(self.pattern.findall(text)) >= self.min_matches


@dataclass(frozen=True)
class RuleCategory:
    """A named group of rules sharing one score adjustment."""

    name: str
    weight: int
    rules: tuple[QualityRule, ...]

    def applies_to(self, text: str) -> bool:
        return any(rule.matches(text) for rule in self.rules)


def _rule(pattern: str, flags: int = 0, min_matches: int = 1) -> QualityRule:
    return QualityRule(re.compile(pattern, flags), min_matches)


# Scraped interface/navigation text carries no legal substance.
UI_NAVIGATION = RuleCategory(
    name="ui_navigation",
    weight=-3,
    rules=(
        _rule(
            r"\b(?:clique|clicar|botão|menu|cursor|mouse|tela inicial|selecionar|escolher|navegar)\b",
            re.IGNORECASE,
        ),
        _rule(
            r"\b(?:passar o cursor|arrastar|deslizar|pressionar|interface|página|aba|guia)\b",
            re.IGNORECASE,
        ),
        _rule(r"\b(?:click|button|select|scroll|drag|swipe|navigate|hover)\b", re.IGNORECASE),
    ),
)

# Incomplete extraction. The reference rule fires only when the whole text is a bare
# "Art. N." or "§ N"; article chunks that merely start with the marker are unaffected.
INCOMPLETE_FRAGMENT = RuleCategory(
    name="incomplete_fragment",
    weight=-2,
    rules=(
        _rule(r"\A[^.!?]{0,50}\Z"),
        _rule(r"(?:\.{3}|…)\Z"),
        _rule(r"\A\s*(?:[A-Z]\.|Art\.\s*\d+[º°o]?\.?|§\s*\d+[º°o]?)\s*\Z"),
        _rule(r"\A\s*[0-9]+\s*\.?\s*\Z"),
    ),
)

# Leaked markup rather than prose.
MARKUP_NOISE = RuleCategory(
    name="markup_noise",
    weight=-2,
    rules=(
        _rule(r"[{}\[\]<>|]", min_matches=6),
        _rule(r"\s{3,}", min_matches=6),
    ),
)

# Legal or otherwise informative vocabulary.
INFORMATIVE_VOCABULARY = RuleCategory(
    name="informative_vocabulary",
    weight=1,
    rules=(
        _rule(r"lei|decreto|normativa|regulamento|portaria|instrução|\blaw\b|decree|regulation", re.IGNORECASE),
        _rule(r"definição|conceito|significa|consiste|refere-se|definition|\bmeans\b", re.IGNORECASE),
        _rule(r"procedimento|processo|etapa|método|técnica|procedure", re.IGNORECASE),
        _rule(r"obrigatório|necessário|exigido|requerido|mandatório|mandatory|required", re.IGNORECASE),
    ),
)

DEFAULT_RULE_TABLE: tuple[RuleCategory, ...] = (
    UI_NAVIGATION,
    INCOMPLETE_FRAGMENT,
    MARKUP_NOISE,
    INFORMATIVE_VOCABULARY,
)


def score_content_quality(
    text: str,
    rule_table: Sequence[RuleCategory] = DEFAULT_RULE_TABLE,
) -> int:
    """Return an informativeness score in ``[0, 10]`` for *text*."""
    score = BASE_SCORE
    for category in rule_table:
        if category.applies_to(text):
            score += category.weight
    return max(MIN_SCORE, min(MAX_SCORE, score))


def composite_score(similarity: float, quality_score: int) -> float:
    """Weighted blend favouring semantic relevance over substance."""
    return SIMILARITY_WEIGHT * similarity + QUALITY_WEIGHT * (quality_score / MAX_SCORE)


def filter_low_quality(
    candidates: Iterable[SearchCandidate],
    min_score: int = 5,
    rule_table: Sequence[RuleCategory] = DEFAULT_RULE_TABLE,
) -> list[ScoredCandidate]:
    """Score candidates, drop those below *min_score*, sort by composite score.

    The sort is stable: candidates with equal composite scores keep their
    incoming (similarity-descending) order.
    """
    scored: list[ScoredCandidate] = []
    for candidate in candidates:
        quality = score_content_quality(candidate.content, rule_table)
        if quality < min_score:
            continue
        scored.append(
            ScoredCandidate(
                content=candidate.content,
                similarity=candidate.similarity,
                resource_id=candidate.resource_id,
                quality_score=quality,
                composite_score=composite_score(candidate.similarity, quality),
            )
        )
    scored.sort(key=lambda c: c.composite_score, reverse=True)
    return scored
