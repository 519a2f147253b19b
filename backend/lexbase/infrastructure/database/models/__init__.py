from .resource_models import EmbeddingModel, ResourceModel
from .link_models import LinkModel

__all__ = [
    "ResourceModel",
    "EmbeddingModel",
    "LinkModel",
]
