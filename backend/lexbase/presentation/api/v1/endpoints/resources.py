"""Resource endpoints — manual text, PDF upload, listing and deletion."""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status

from lexbase.application.schemas import (
    DeleteResult,
    IngestionOutcomeResponse,
    ResourceCreate,
    ResourceResponse,
)
from lexbase.application.services import PdfIngestionService, ResourceService
from lexbase.domain.entities import SourceType
from lexbase.domain.exceptions import CascadeIntegrityError, EntityNotFoundError
from lexbase.infrastructure.dependencies import get_pdf_ingestion_service, get_resource_service
from lexbase.presentation.api.v1.outcomes import outcome_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["Resources"])


@router.post("", response_model=IngestionOutcomeResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(
    data: ResourceCreate,
    response: Response,
    service: ResourceService = Depends(get_resource_service),
) -> IngestionOutcomeResponse:
    """Create a resource and embed its chunks."""
    outcome = await service.create_resource(data)
    return outcome_response(outcome, response)


@router.post("/pdf", response_model=IngestionOutcomeResponse, status_code=status.HTTP_201_CREATED)
async def upload_pdf(
    response: Response,
    file: UploadFile | None = File(None),
    lei: str | None = Form(None),
    contexto: str | None = Form(None),
    service: PdfIngestionService = Depends(get_pdf_ingestion_service),
) -> IngestionOutcomeResponse:
    """Upload a PDF; its text becomes one PDF-sourced resource."""
    filename = file.filename if file is not None else None
    data = await file.read() if file is not None else None
    outcome = await service.ingest_pdf(filename, data, lei=lei, contexto=contexto)
    return outcome_response(outcome, response)


@router.get("", response_model=list[ResourceResponse])
async def list_resources(
    source_type: SourceType | None = Query(None),
    source_id: str | None = Query(None),
    service: ResourceService = Depends(get_resource_service),
) -> list[ResourceResponse]:
    """List resources oldest first, optionally filtered."""
    resources = await service.list_resources(source_type=source_type, source_id=source_id)
    return [ResourceResponse.model_validate(r, from_attributes=True) for r in resources]


@router.get("/{resource_id}", response_model=ResourceResponse)
async def get_resource(
    resource_id: str,
    service: ResourceService = Depends(get_resource_service),
) -> ResourceResponse:
    try:
        resource = await service.get_resource(resource_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ResourceResponse.model_validate(resource, from_attributes=True)


@router.delete("", response_model=DeleteResult)
async def delete_resources_by_source(
    source_id: str = Query(..., min_length=1),
    service: ResourceService = Depends(get_resource_service),
) -> DeleteResult:
    """Delete every resource derived from one source."""
    try:
        count = await service.delete_by_source_id(source_id)
    except CascadeIntegrityError as e:
        logger.error("Bulk delete for source %s failed: %s", source_id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return DeleteResult(deleted=count, message=f"{count} recursos removidos.")


@router.delete("/{resource_id}", response_model=DeleteResult)
async def delete_resource(
    resource_id: str,
    service: ResourceService = Depends(get_resource_service),
) -> DeleteResult:
    """Delete a resource together with its embeddings."""
    try:
        await service.delete_resource(resource_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CascadeIntegrityError as e:
        logger.error("Delete of resource %s failed: %s", resource_id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return DeleteResult(deleted=1, message="Recurso removido.")
