"""SQLAlchemy implementation of the LinkRepository."""

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from lexbase.application.interfaces import LinkRepository
from lexbase.domain.entities import Link
from lexbase.domain.exceptions import EntityNotFoundError
from lexbase.infrastructure.database.models.link_models import LinkModel


class SQLAlchemyLinkRepository(LinkRepository):
    """Concrete link repository backed by PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, link: Link) -> Link:
        if not link.id:
            link.id = str(uuid.uuid4())

        model = LinkModel(
            id=link.id,
            url=link.url,
            title=link.title,
            description=link.description,
            last_processed=link.last_processed,
            created_at=link.created_at,
            updated_at=link.updated_at,
        )
        async with self._session.begin_nested():
            self._session.add(model)
        return link

    async def get_by_id(self, link_id: str) -> Link | None:
        result = await self._session.execute(select(LinkModel).where(LinkModel.id == link_id))
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def get_by_url(self, url: str) -> Link | None:
        result = await self._session.execute(select(LinkModel).where(LinkModel.url == url))
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def get_all(self) -> list[Link]:
        result = await self._session.execute(
            select(LinkModel).order_by(LinkModel.created_at, LinkModel.id)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def update(self, link: Link) -> Link:
        result = await self._session.execute(select(LinkModel).where(LinkModel.id == link.id))
        model = result.scalar_one_or_none()
        if model is None:
            raise EntityNotFoundError("Link", link.id)

        async with self._session.begin_nested():
            model.title = link.title
            model.description = link.description
            model.last_processed = link.last_processed
            model.updated_at = link.updated_at
        return link

    async def delete(self, link_id: str) -> bool:
        async with self._session.begin_nested():
            result = await self._session.execute(delete(LinkModel).where(LinkModel.id == link_id))
        return result.rowcount > 0

    @staticmethod
    def _to_domain(model: LinkModel) -> Link:
        return Link(
            id=model.id,
            url=model.url,
            title=model.title,
            description=model.description,
            last_processed=model.last_processed,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
