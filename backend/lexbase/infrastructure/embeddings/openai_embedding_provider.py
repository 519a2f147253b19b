"""Embedding provider for any OpenAI-compatible ``/embeddings`` endpoint.

Default model: text-embedding-ada-002 (1536 dimensions). The httpx client
is created and closed by the application lifespan and injected here.
"""

import logging
from typing import Any

import httpx

from lexbase.application.interfaces.embedding_provider import EmbeddingProvider
from lexbase.domain.exceptions import EmbeddingProviderError

logger = logging.getLogger(__name__)

_PROVIDER_NAME = "openai-compatible"
# Only the text-embedding-3 family accepts a "dimensions" request parameter.
_DIMENSIONS_PARAM_PREFIX = "text-embedding-3"


class OpenAICompatibleEmbeddingProvider(EmbeddingProvider):
    """Infrastructure adapter — generates embeddings via an OpenAI-style REST API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "text-embedding-ada-002",
        model_dimensions: int = 1536,
    ):
        self._http_client = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._dimensions = model_dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a batch of texts, in input order."""
        if not texts:
            return []

        payload: dict[str, Any] = {"model": self._model, "input": texts}
        if self._model.startswith(_DIMENSIONS_PARAM_PREFIX):
            payload["dimensions"] = self._dimensions

        response = await self._http_client.post(
            f"{self._base_url}/embeddings",
            headers=self._get_headers(),
            json=payload,
        )

        if response.status_code != 200:
            error_text = _error_message(response)
            logger.error("Embedding API error %d: %s", response.status_code, error_text)
            raise EmbeddingProviderError(_PROVIDER_NAME, response.status_code, error_text)

        try:
            data = response.json()
            items = sorted(data["data"], key=lambda item: item.get("index", 0))
            vectors = [item["embedding"] for item in items]
        except (ValueError, KeyError, TypeError) as exc:
            raise EmbeddingProviderError(
                _PROVIDER_NAME, response.status_code, f"Malformed embedding response: {exc}"
            ) from exc

        if len(vectors) != len(texts):
            raise EmbeddingProviderError(
                _PROVIDER_NAME,
                response.status_code,
                f"Expected {len(texts)} embeddings, got {len(vectors)}",
            )

        logger.info(
            "Generated %d embeddings (model=%s, dims=%d)",
            len(vectors),
            self._model,
            len(vectors[0]) if vectors else 0,
        )
        return vectors

    async def generate_query_embedding(self, query: str) -> list[float]:
        """Generate a single embedding for a search query."""
        results = await self.generate_embeddings([query])
        return results[0]


def _error_message(response: httpx.Response) -> str:
    """Prefer the provider's structured ``error.message`` over the raw body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])[:500]
        if isinstance(error, str):
            return error[:500]
    return response.text[:500]
