"""Abstract repository interface (port) for knowledge resources."""

from abc import ABC, abstractmethod

from lexbase.domain.entities import Resource, SourceType


class ResourceRepository(ABC):
    """Port for resource persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def create(self, resource: Resource) -> Resource:
        """Persist a new resource and return it with the generated ID."""
        ...

    @abstractmethod
    async def get_by_id(self, resource_id: str) -> Resource | None:
        """Retrieve a single resource by its ID."""
        ...

    @abstractmethod
    async def get_all(self) -> list[Resource]:
        """Retrieve every resource, oldest first."""
        ...

    @abstractmethod
    async def get_by_source_type(self, source_type: SourceType) -> list[Resource]:
        """Retrieve all resources of one source type, oldest first."""
        ...

    @abstractmethod
    async def get_by_source_id(self, source_id: str) -> list[Resource]:
        """Retrieve all resources derived from one origin (link, upload, curation session)."""
        ...

    @abstractmethod
    async def delete(self, resource_id: str) -> bool:
        """Delete a resource and, by cascade, its embeddings.

        Returns True if deleted, False if not found. Raises
        ``CascadeIntegrityError`` when the store refuses the delete.
        """
        ...

    @abstractmethod
    async def delete_by_source_id(self, source_id: str) -> int:
        """Delete all resources derived from one origin. Returns count of deleted records."""
        ...
