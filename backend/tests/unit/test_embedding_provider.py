"""Unit tests for the OpenAI-compatible embedding provider."""

import json

import httpx
import pytest

from lexbase.domain.exceptions import EmbeddingProviderError
from lexbase.infrastructure.embeddings import OpenAICompatibleEmbeddingProvider


# ── Helpers ──


def _embedding_response(vectors: list[list[float]], reverse: bool = False) -> dict:
    items = [{"object": "embedding", "index": i, "embedding": v} for i, v in enumerate(vectors)]
    if reverse:
        items.reverse()
    return {"object": "list", "data": items, "model": "text-embedding-ada-002"}


def _provider(handler, **kwargs) -> OpenAICompatibleEmbeddingProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAICompatibleEmbeddingProvider(http_client=client, api_key="test-key", **kwargs)


# ── Tests ──


@pytest.mark.asyncio
async def test_generate_embeddings_posts_batch_and_orders_by_index():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json=_embedding_response([[0.1, 0.2], [0.3, 0.4]], reverse=True))

    provider = _provider(handler, base_url="https://api.example.com/v1/")
    vectors = await provider.generate_embeddings(["um", "dois"])

    assert vectors == [[0.1, 0.2], [0.3, 0.4]]
    request = captured[0]
    assert str(request.url) == "https://api.example.com/v1/embeddings"
    assert request.headers["Authorization"] == "Bearer test-key"
    body = json.loads(request.content)
    assert body == {"model": "text-embedding-ada-002", "input": ["um", "dois"]}


@pytest.mark.asyncio
async def test_dimensions_are_sent_only_for_models_that_accept_them():
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=_embedding_response([[0.5] * 4]))

    provider = _provider(handler, model="text-embedding-3-small", model_dimensions=4)
    await provider.generate_query_embedding("férias")

    assert bodies[0]["dimensions"] == 4
    assert provider.dimensions == 4


@pytest.mark.asyncio
async def test_empty_batch_makes_no_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert await _provider(handler).generate_embeddings([]) == []


@pytest.mark.asyncio
async def test_error_status_raises_with_provider_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "Rate limit reached", "type": "requests"}})

    with pytest.raises(EmbeddingProviderError) as exc_info:
        await _provider(handler).generate_embeddings(["um"])

    assert exc_info.value.status_code == 429
    assert exc_info.value.message == "Rate limit reached"


@pytest.mark.asyncio
async def test_malformed_body_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(EmbeddingProviderError) as exc_info:
        await _provider(handler).generate_embeddings(["um"])

    assert "Malformed" in exc_info.value.message


@pytest.mark.asyncio
async def test_vector_count_mismatch_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_embedding_response([[0.1]]))

    with pytest.raises(EmbeddingProviderError):
        await _provider(handler).generate_embeddings(["um", "dois"])
