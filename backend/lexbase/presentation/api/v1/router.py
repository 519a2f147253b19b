"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from lexbase.presentation.api.v1.endpoints.health import router as health_router
from lexbase.presentation.api.v1.endpoints.resources import router as resources_router
from lexbase.presentation.api.v1.endpoints.links import router as links_router
from lexbase.presentation.api.v1.endpoints.curated import router as curated_router
from lexbase.presentation.api.v1.endpoints.knowledge import router as knowledge_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(resources_router)
router.include_router(links_router)
router.include_router(curated_router)
router.include_router(knowledge_router)
