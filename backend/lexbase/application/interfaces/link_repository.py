"""Abstract repository interface (port) for monitored links."""

from abc import ABC, abstractmethod

from lexbase.domain.entities import Link


class LinkRepository(ABC):
    """Port for link persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def create(self, link: Link) -> Link:
        """Persist a new link and return it with the generated ID."""
        ...

    @abstractmethod
    async def get_by_id(self, link_id: str) -> Link | None:
        ...

    @abstractmethod
    async def get_by_url(self, url: str) -> Link | None:
        ...

    @abstractmethod
    async def get_all(self) -> list[Link]:
        """Retrieve every link, oldest first."""
        ...

    @abstractmethod
    async def update(self, link: Link) -> Link:
        """Update title, description and processing timestamps of an existing link."""
        ...

    @abstractmethod
    async def delete(self, link_id: str) -> bool:
        """Delete a link record by ID. Returns True if deleted, False if not found."""
        ...
