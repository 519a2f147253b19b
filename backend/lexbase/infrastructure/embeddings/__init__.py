from .openai_embedding_provider import OpenAICompatibleEmbeddingProvider

__all__ = ["OpenAICompatibleEmbeddingProvider"]
