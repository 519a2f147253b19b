"""PDF ingestion — validate upload → extract text → build preamble → ingest.

The stored resource content is a Markdown-ish preamble (title, file name,
author, creator, page count, extracted character count, optional lei and
contexto) followed by a ``## Conteúdo Extraído`` heading and the page text.
"""

import logging
import uuid
from pathlib import PurePath

from lexbase.application.interfaces import PdfExtraction, PdfTextExtractor
from lexbase.application.services.resource_service import ResourceService
from lexbase.domain.entities import IngestionOutcome, SourceType
from lexbase.domain.result import Err, ErrorKind, Ok
from lexbase.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("IngestionPipeline")

_UNSPECIFIED = "Não especificado"

_ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.PASSWORD_PROTECTED: "O PDF está protegido por senha e não pode ser processado.",
    ErrorKind.CORRUPT_DOCUMENT: "O arquivo PDF parece estar corrompido ou inválido.",
    ErrorKind.DOCUMENT_TOO_LARGE: "O PDF é muito grande para ser processado. Tente um arquivo menor.",
}
_GENERIC_ERROR = "Erro ao processar o arquivo PDF. Verifique se o arquivo é válido."
_NO_TEXT_ERROR = (
    "Não foi possível extrair texto do PDF. "
    "O arquivo pode conter apenas imagens ou estar protegido."
)


def build_pdf_content(
    extraction: PdfExtraction,
    filename: str,
    lei: str | None = None,
    contexto: str | None = None,
) -> str:
    """Prepend the structural preamble to the extracted text."""
    title = extraction.title or PurePath(filename).stem
    text = extraction.text.strip()

    lines = [
        f"# {title}\n",
        f"**Arquivo:** {filename}",
        f"**Autor:** {extraction.author or _UNSPECIFIED}",
        f"**Criador:** {extraction.creator or _UNSPECIFIED}",
        f"**Páginas:** {extraction.page_count}",
        f"**Caracteres extraídos:** {len(extraction.text)}\n",
    ]
    if lei:
        lines.append(f"**Lei:** {lei}")
    if contexto:
        lines.append(f"**Contexto:** {contexto}")

    return "\n".join(lines) + "\n\n## Conteúdo Extraído\n\n" + text


class PdfIngestionService:
    """Ingests uploaded PDF documents as PDF-sourced resources."""

    def __init__(
        self,
        extractor: PdfTextExtractor,
        resource_service: ResourceService,
        *,
        max_upload_mb: int = 50,
    ):
        self._extractor = extractor
        self._resources = resource_service
        self._max_bytes = max_upload_mb * 1024 * 1024
        self._max_upload_mb = max_upload_mb

    def validate_upload(self, filename: str | None, data: bytes | None) -> str | None:
        """Return an error message for an unacceptable upload, or None when it is fine."""
        if not filename or data is None:
            return "Nenhum arquivo enviado"
        if not filename.lower().endswith(".pdf"):
            return "O arquivo deve ser um PDF"
        if len(data) > self._max_bytes:
            size_mb = round(len(data) / (1024 * 1024))
            return (
                f"Arquivo muito grande. O tamanho máximo permitido é {self._max_upload_mb}MB. "
                f"Seu arquivo tem {size_mb}MB."
            )
        return None

    async def ingest_pdf(
        self,
        filename: str | None,
        data: bytes | None,
        lei: str | None = None,
        contexto: str | None = None,
    ) -> IngestionOutcome:
        problem = self.validate_upload(filename, data)
        if problem is not None:
            plog.step_error(PipelineStage.INGEST, f"Rejected upload {filename!r}: {problem}")
            return IngestionOutcome.failure(problem)

        plog.separator(f"PDF: {filename}")
        plog.step_start(PipelineStage.EXTRACT, "Extracting text", file=filename, size_bytes=len(data))

        match await self._extractor.extract(data):
            case Err(kind=kind, message=message):
                plog.step_error(PipelineStage.EXTRACT, f"Extraction of {filename} failed ({kind.value}): {message}")
                return IngestionOutcome.failure(_ERROR_MESSAGES.get(kind, _GENERIC_ERROR))
            case Ok(value=extraction):
                pass

        if extraction.failed_pages:
            plog.step_warning(
                PipelineStage.EXTRACT,
                "Some pages could not be read",
                file=filename,
                failed_pages=extraction.failed_pages,
            )
        if not extraction.text.strip():
            plog.step_error(PipelineStage.EXTRACT, f"No text extracted from {filename}")
            return IngestionOutcome.failure(_NO_TEXT_ERROR)

        plog.step_complete(
            PipelineStage.EXTRACT,
            "Text extracted",
            pages=extraction.page_count,
            chars=len(extraction.text),
        )

        lei = lei.strip() if lei else None
        contexto = contexto.strip() if contexto else None
        content = build_pdf_content(extraction, filename, lei, contexto)
        source_id = f"pdf-{uuid.uuid4().hex[:16]}"

        outcome = await self._resources.ingest(content, SourceType.PDF, source_id)
        if outcome.success:
            title = extraction.title or PurePath(filename).stem
            outcome.message = (
                f'PDF "{title}" processado e adicionado com sucesso com {outcome.embedding_count} chunks.'
            )
        return outcome
