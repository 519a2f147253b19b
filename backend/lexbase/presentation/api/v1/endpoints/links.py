"""Link endpoints — monitored pages and their derived resources."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from lexbase.application.schemas import DeleteResult, IngestionOutcomeResponse, LinkCreate, LinkResponse
from lexbase.application.services import LinkService
from lexbase.domain.exceptions import CascadeIntegrityError, EntityNotFoundError
from lexbase.infrastructure.dependencies import get_link_service
from lexbase.presentation.api.v1.outcomes import outcome_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/links", tags=["Links"])


@router.post("", response_model=IngestionOutcomeResponse, status_code=status.HTTP_201_CREATED)
async def create_link(
    data: LinkCreate,
    response: Response,
    service: LinkService = Depends(get_link_service),
) -> IngestionOutcomeResponse:
    """Register a link, fetch it and ingest its text."""
    outcome = await service.create_link(data)
    return outcome_response(outcome, response)


@router.get("", response_model=list[LinkResponse])
async def list_links(
    service: LinkService = Depends(get_link_service),
) -> list[LinkResponse]:
    links = await service.list_links()
    return [LinkResponse.model_validate(link, from_attributes=True) for link in links]


@router.post("/{link_id}/refresh", response_model=IngestionOutcomeResponse)
async def refresh_link(
    link_id: str,
    response: Response,
    service: LinkService = Depends(get_link_service),
) -> IngestionOutcomeResponse:
    """Re-fetch a link and replace its derived resources."""
    outcome = await service.refresh_link(link_id)
    return outcome_response(outcome, response, success_status=status.HTTP_200_OK)


@router.delete("/{link_id}", response_model=DeleteResult)
async def delete_link(
    link_id: str,
    service: LinkService = Depends(get_link_service),
) -> DeleteResult:
    try:
        removed = await service.delete_link(link_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CascadeIntegrityError as e:
        logger.error("Delete of link %s failed: %s", link_id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return DeleteResult(deleted=removed, message="Link removido com sucesso.")
