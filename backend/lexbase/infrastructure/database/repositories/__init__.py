from .resource_repository import SQLAlchemyResourceRepository
from .embedding_repository import PgEmbeddingRepository
from .link_repository import SQLAlchemyLinkRepository

__all__ = [
    "SQLAlchemyResourceRepository",
    "PgEmbeddingRepository",
    "SQLAlchemyLinkRepository",
]
