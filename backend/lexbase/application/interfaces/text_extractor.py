"""Abstract interface (port) for PDF text extraction."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from lexbase.domain.result import Result


@dataclass
class PdfExtraction:
    """Text and document metadata extracted from a PDF.

    ``text`` holds the pages that could be read, each introduced by a
    ``--- Página N ---`` separator. Pages that failed are counted in
    ``failed_pages`` and otherwise skipped.
    """

    text: str
    page_count: int
    title: str | None = None
    author: str | None = None
    creator: str | None = None
    failed_pages: int = 0


class PdfTextExtractor(ABC):
    """Port for PDF text extraction — implemented in the infrastructure layer."""

    @abstractmethod
    async def extract(self, data: bytes) -> Result[PdfExtraction]:
        """Extract text from raw PDF bytes.

        Returns ``Err`` with ``PASSWORD_PROTECTED``, ``CORRUPT_DOCUMENT`` or
        ``DOCUMENT_TOO_LARGE`` for documents that cannot be read.
        """
        ...
