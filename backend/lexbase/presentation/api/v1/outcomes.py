"""Shared translation of ingestion outcomes into HTTP responses."""

from fastapi import Response, status

from lexbase.application.schemas import IngestionOutcomeResponse
from lexbase.domain.entities import IngestionOutcome


def outcome_response(
    outcome: IngestionOutcome,
    response: Response,
    success_status: int = status.HTTP_201_CREATED,
) -> IngestionOutcomeResponse:
    """Failed outcomes keep their body but answer 400."""
    response.status_code = success_status if outcome.success else status.HTTP_400_BAD_REQUEST
    return IngestionOutcomeResponse.model_validate(outcome, from_attributes=True)
