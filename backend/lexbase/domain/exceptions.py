"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class EmbeddingProviderError(Exception):
    """Raised when the embedding provider returns an error.

    Provider-agnostic: works for OpenAI, OpenRouter or any endpoint
    speaking the OpenAI ``/embeddings`` protocol.
    """

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")


class PageFetchError(Exception):
    """Raised when a web page cannot be fetched."""

    def __init__(self, url: str, status_code: int | None, message: str):
        self.url = url
        self.status_code = status_code
        self.message = message
        status = status_code if status_code is not None else "-"
        super().__init__(f"Fetch of {url} failed ({status}): {message}")


class CascadeIntegrityError(Exception):
    """Raised when deleting a resource fails to remove its embeddings.

    Fatal for the deletion: the transaction is rolled back and nothing is
    partially deleted.
    """

    def __init__(self, resource_id: str, message: str):
        self.resource_id = resource_id
        self.message = message
        super().__init__(f"Cascade delete of resource '{resource_id}' failed: {message}")
