"""SQLAlchemy implementation of the ResourceRepository."""

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lexbase.application.interfaces import ResourceRepository
from lexbase.domain.entities import Resource, SourceType
from lexbase.domain.exceptions import CascadeIntegrityError
from lexbase.infrastructure.database.models.resource_models import ResourceModel

logger = logging.getLogger(__name__)


class SQLAlchemyResourceRepository(ResourceRepository):
    """Concrete resource repository backed by PostgreSQL via SQLAlchemy.

    Deleting a resource relies on the ``ON DELETE CASCADE`` foreign key of
    the embeddings table; embeddings are never deleted row by row here.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, resource: Resource) -> Resource:
        if not resource.id:
            resource.id = str(uuid.uuid4())

        model = ResourceModel(
            id=resource.id,
            content=resource.content,
            source_type=resource.source_type.value,
            source_id=resource.source_id,
            created_at=resource.created_at,
            updated_at=resource.updated_at,
        )
        # Own savepoint: a failed insert must not poison the request session.
        async with self._session.begin_nested():
            self._session.add(model)
        return resource

    async def get_by_id(self, resource_id: str) -> Resource | None:
        result = await self._session.execute(
            select(ResourceModel).where(ResourceModel.id == resource_id)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def get_all(self) -> list[Resource]:
        result = await self._session.execute(
            select(ResourceModel).order_by(ResourceModel.created_at, ResourceModel.id)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def get_by_source_type(self, source_type: SourceType) -> list[Resource]:
        result = await self._session.execute(
            select(ResourceModel)
            .where(ResourceModel.source_type == source_type.value)
            .order_by(ResourceModel.created_at, ResourceModel.id)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def get_by_source_id(self, source_id: str) -> list[Resource]:
        result = await self._session.execute(
            select(ResourceModel)
            .where(ResourceModel.source_id == source_id)
            .order_by(ResourceModel.created_at, ResourceModel.id)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def delete(self, resource_id: str) -> bool:
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(
                    delete(ResourceModel).where(ResourceModel.id == resource_id)
                )
        except SQLAlchemyError as exc:
            logger.error("Cascade delete of resource %s failed: %s", resource_id, exc)
            raise CascadeIntegrityError(resource_id, str(exc)) from exc
        return result.rowcount > 0

    async def delete_by_source_id(self, source_id: str) -> int:
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(
                    delete(ResourceModel).where(ResourceModel.source_id == source_id)
                )
        except SQLAlchemyError as exc:
            logger.error("Cascade delete of resources with source_id %s failed: %s", source_id, exc)
            raise CascadeIntegrityError(source_id, str(exc)) from exc
        return result.rowcount

    # ── Mapping ──────────────────────────────────────────────────────

    @staticmethod
    def _to_domain(model: ResourceModel) -> Resource:
        return Resource(
            id=model.id,
            content=model.content,
            source_type=SourceType(model.source_type),
            source_id=model.source_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
