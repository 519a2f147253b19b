"""PDF text extractor — PyMuPDF-based implementation of the PdfTextExtractor port."""

import logging

import fitz  # PyMuPDF

from lexbase.application.interfaces.text_extractor import PdfExtraction, PdfTextExtractor
from lexbase.domain.result import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)


def _page_header(page_number: int) -> str:
    return f"--- Página {page_number} ---"


class PyMuPdfTextExtractor(PdfTextExtractor):
    """Extracts page text and document metadata from in-memory PDF bytes."""

    async def extract(self, data: bytes) -> Result[PdfExtraction]:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except MemoryError:
            return Err(kind=ErrorKind.DOCUMENT_TOO_LARGE, message="Not enough memory to open the PDF")
        except (fitz.EmptyFileError, fitz.FileDataError, RuntimeError, ValueError) as exc:
            logger.warning("Could not open PDF: %s", exc)
            return Err(kind=ErrorKind.CORRUPT_DOCUMENT, message=str(exc) or "Unreadable PDF")

        try:
            if doc.needs_pass:
                return Err(kind=ErrorKind.PASSWORD_PROTECTED, message="The PDF is password protected")
            return Ok(self._read(doc))
        except MemoryError:
            return Err(kind=ErrorKind.DOCUMENT_TOO_LARGE, message="Not enough memory to read the PDF")
        finally:
            doc.close()

    @staticmethod
    def _read(doc: "fitz.Document") -> PdfExtraction:
        sections: list[str] = []
        failed_pages = 0

        for page_index in range(doc.page_count):
            page_number = page_index + 1
            try:
                text = doc.load_page(page_index).get_text("text")
            except RuntimeError as exc:
                failed_pages += 1
                logger.error("Failed to read PDF page %d: %s", page_number, exc)
                continue

            if text.strip():
                sections.append(f"\n\n{_page_header(page_number)}\n\n{text.strip()}")
            else:
                # Scanned page without a text layer
                logger.debug("Page %d has no extractable text", page_number)

        metadata = doc.metadata or {}
        extraction = PdfExtraction(
            text="".join(sections),
            page_count=doc.page_count,
            title=(metadata.get("title") or "").strip() or None,
            author=(metadata.get("author") or "").strip() or None,
            creator=(metadata.get("creator") or "").strip() or None,
            failed_pages=failed_pages,
        )
        logger.info(
            "Extracted %d characters from %d pages (%d failed)",
            len(extraction.text),
            extraction.page_count,
            failed_pages,
        )
        return extraction
