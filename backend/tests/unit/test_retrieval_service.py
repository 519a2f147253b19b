"""Unit tests for fragment retrieval and greedy selection."""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from fakes import FakeEmbeddingProvider, StaticEmbeddingRepository
from lexbase.application.services.embedding_service import EmbeddingService
from lexbase.application.services.retrieval_service import RetrievalService, select_fragments
from lexbase.domain.entities import ScoredCandidate, SearchCandidate

PROSE_WORDS = (
    "o empregado tem direito a férias anuais remuneradas conforme a lei "
    "e o regulamento vigente durante o contrato de trabalho"
).split()


def _prose(words: int) -> str:
    repeated = (PROSE_WORDS * (words // len(PROSE_WORDS) + 1))[:words]
    return " ".join(repeated) + "."


def _scored(resource_id: str, words: int = 10, similarity: float = 0.9) -> ScoredCandidate:
    return ScoredCandidate(
        content=_prose(words),
        similarity=similarity,
        resource_id=resource_id,
        quality_score=10,
        composite_score=0.7 * similarity + 0.3,
    )


def _service(repo, provider=None, **overrides) -> RetrievalService:
    provider = provider or FakeEmbeddingProvider()
    return RetrievalService(EmbeddingService(provider), repo, **overrides)


# ── select_fragments ──


def test_per_resource_cap_skips_and_keeps_scanning():
    candidates = [_scored("r1"), _scored("r1"), _scored("r1"), _scored("r2")]

    selected = select_fragments(candidates, max_tokens=2500, max_fragments=6, max_per_resource=2)

    assert [f.resource_id for f in selected] == ["r1", "r1", "r2"]


def test_token_budget_stops_selection():
    candidates = [_scored("r1", 100), _scored("r2", 100), _scored("r3", 100), _scored("r4", 1)]

    selected = select_fragments(candidates, max_tokens=300, max_fragments=6, max_per_resource=2)

    # 130 + 130 fits, the third would reach 390; the short fourth is never considered
    assert [f.resource_id for f in selected] == ["r1", "r2"]
    assert sum(f.token_count for f in selected) == 260


def test_count_cap_stops_selection():
    candidates = [_scored(f"r{i}") for i in range(10)]
    selected = select_fragments(candidates, max_tokens=2500, max_fragments=6, max_per_resource=2)
    assert len(selected) == 6


def test_zero_count_cap_selects_nothing():
    assert select_fragments([_scored("r1")], max_tokens=2500, max_fragments=0, max_per_resource=2) == []


def test_fragment_carries_its_own_token_count():
    (fragment,) = select_fragments([_scored("r1", 20)], max_tokens=2500, max_fragments=6, max_per_resource=2)
    assert fragment.token_count == 26
    assert fragment.similarity == 0.9


# ── RetrievalService ──


@pytest.mark.asyncio
async def test_query_is_normalised_and_search_uses_permissive_bounds():
    provider = FakeEmbeddingProvider()
    repo = StaticEmbeddingRepository([SearchCandidate(_prose(30), 0.6, "r1")])

    fragments = await _service(repo, provider).find_relevant_content("  Direito a FÉRIAS \n")

    assert provider.calls == [["direito a férias"]]
    assert repo.search_calls == [{"threshold": 0.2, "limit": 20}]
    assert [f.resource_id for f in fragments] == ["r1"]


@pytest.mark.asyncio
async def test_caps_hold_over_many_candidates():
    candidates = [
        SearchCandidate(_prose(150), 0.9 - i * 0.01, f"r{i % 3}")
        for i in range(20)
    ]
    fragments = await _service(StaticEmbeddingRepository(candidates)).find_relevant_content("férias")

    assert 0 < len(fragments) <= 6
    assert sum(f.token_count for f in fragments) <= 2500
    per_resource: dict[str, int] = {}
    for fragment in fragments:
        per_resource[fragment.resource_id] = per_resource.get(fragment.resource_id, 0) + 1
    assert max(per_resource.values()) <= 2


@pytest.mark.asyncio
async def test_low_quality_candidates_are_dropped():
    candidates = [
        SearchCandidate("clique menu {a}{b}{c}", 0.99, "noise"),
        SearchCandidate(_prose(30), 0.4, "r1"),
    ]
    fragments = await _service(StaticEmbeddingRepository(candidates)).find_relevant_content("férias")
    assert [f.resource_id for f in fragments] == ["r1"]


@pytest.mark.asyncio
async def test_embedding_failure_returns_empty_list():
    repo = StaticEmbeddingRepository([SearchCandidate(_prose(30), 0.6, "r1")])
    provider = FakeEmbeddingProvider(fail_calls={1})

    assert await _service(repo, provider).find_relevant_content("férias") == []
    assert repo.search_calls == []


@pytest.mark.asyncio
async def test_search_failure_returns_empty_list():
    repo = StaticEmbeddingRepository(error=OperationalError("SELECT", {}, Exception("connection lost")))
    assert await _service(repo).find_relevant_content("férias") == []


@pytest.mark.asyncio
async def test_search_timeout_returns_empty_list():
    class SlowRepository(StaticEmbeddingRepository):
        async def search_similar(self, query_embedding, *, threshold, limit):
            await asyncio.sleep(5)
            return []

    service = _service(SlowRepository(), search_timeout_seconds=0.01)
    assert await service.find_relevant_content("férias") == []


@pytest.mark.asyncio
async def test_blank_query_returns_empty_list_without_calls():
    provider = FakeEmbeddingProvider()
    assert await _service(StaticEmbeddingRepository(), provider).find_relevant_content("   ") == []
    assert provider.calls == []
