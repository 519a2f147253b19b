"""Knowledge endpoints — retrieval for prompt assembly and chat tools."""

from fastapi import APIRouter, Depends, Response, status

from lexbase.application.schemas import (
    FragmentSchema,
    IngestionOutcomeResponse,
    KnowledgeAddRequest,
    KnowledgeQueryRequest,
    KnowledgeQueryResponse,
    KnowledgeSearchRequest,
    KnowledgeSearchResponse,
)
from lexbase.application.services import KnowledgeQueryService, ResourceService, RetrievalService
from lexbase.infrastructure.dependencies import (
    get_knowledge_query_service,
    get_resource_service,
    get_retrieval_service,
)
from lexbase.presentation.api.v1.outcomes import outcome_response

router = APIRouter(prefix="/knowledge", tags=["Knowledge"])


@router.post("/search", response_model=KnowledgeSearchResponse)
async def search(
    data: KnowledgeSearchRequest,
    service: RetrievalService = Depends(get_retrieval_service),
) -> KnowledgeSearchResponse:
    """Ranked fragments for a single query; empty when nothing qualifies."""
    fragments = await service.find_relevant_content(data.query)
    return KnowledgeSearchResponse(
        query=data.query,
        fragments=[FragmentSchema.model_validate(f, from_attributes=True) for f in fragments],
        total_tokens=sum(f.token_count for f in fragments),
    )


@router.post("/query", response_model=KnowledgeQueryResponse)
async def query(
    data: KnowledgeQueryRequest,
    service: KnowledgeQueryService = Depends(get_knowledge_query_service),
) -> KnowledgeQueryResponse:
    """Question plus keywords, merged, with the legal references they cite."""
    result = await service.query(data.question, data.keywords)
    return KnowledgeQueryResponse(
        question=result.question,
        fragments=[FragmentSchema.model_validate(f, from_attributes=True) for f in result.fragments],
        legal_references=result.legal_references,
        found=not result.is_empty,
    )


@router.post("/add", response_model=IngestionOutcomeResponse, status_code=status.HTTP_201_CREATED)
async def add_to_knowledge_base(
    data: KnowledgeAddRequest,
    response: Response,
    service: ResourceService = Depends(get_resource_service),
) -> IngestionOutcomeResponse:
    outcome = await service.add_to_knowledge_base(data.content, data.title)
    return outcome_response(outcome, response)
