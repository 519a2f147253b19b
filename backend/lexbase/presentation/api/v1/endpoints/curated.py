"""Curated ingestion endpoints."""

from fastapi import APIRouter, Depends, Response, status

from lexbase.application.schemas import CuratedChunksCreate, CuratedResourceCreate, IngestionOutcomeResponse
from lexbase.application.services import CurationService
from lexbase.infrastructure.dependencies import get_curation_service
from lexbase.presentation.api.v1.outcomes import outcome_response

router = APIRouter(prefix="/curated", tags=["Curation"])


@router.post("/resource", response_model=IngestionOutcomeResponse, status_code=status.HTTP_201_CREATED)
async def save_curated_resource(
    data: CuratedResourceCreate,
    response: Response,
    service: CurationService = Depends(get_curation_service),
) -> IngestionOutcomeResponse:
    """Store full content once with one embedding per curated chunk."""
    outcome = await service.save_curated_resource(data)
    return outcome_response(outcome, response)


@router.post("/chunks", response_model=IngestionOutcomeResponse, status_code=status.HTTP_201_CREATED)
async def save_curated_chunks(
    data: CuratedChunksCreate,
    response: Response,
    service: CurationService = Depends(get_curation_service),
) -> IngestionOutcomeResponse:
    """Store every curated chunk as its own resource."""
    outcome = await service.save_curated_chunks(data)
    return outcome_response(outcome, response)
