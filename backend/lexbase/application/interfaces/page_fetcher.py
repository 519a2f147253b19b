"""Abstract interface (port) for fetching and cleaning web pages."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from lexbase.domain.result import Result


@dataclass(frozen=True)
class FetchedPage:
    """Readable text of a fetched web page."""

    url: str
    text: str
    status_code: int = 200


class PageFetcher(ABC):
    """Port for fetching a single page — one attempt, no retries.

    Retry policy belongs to the caller, which decides from the returned
    ``ErrorKind`` whether another attempt is worthwhile.
    """

    @abstractmethod
    async def fetch(self, url: str) -> Result[FetchedPage]:
        ...
