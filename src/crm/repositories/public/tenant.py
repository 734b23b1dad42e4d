"""Tenant registry queries."""

from sqlmodel import select

from src.crm.models.public import Tenant
from src.crm.repositories.base import BaseRepository, Page


class TenantRepository(BaseRepository[Tenant]):
    model = Tenant

    async def get_by_slug(self, slug: str) -> Tenant | None:
        """Look a tenant up by slug, including soft-deleted ones."""
        result = await self.session.execute(select(Tenant).where(Tenant.slug == slug))
        return result.scalar_one_or_none()

    async def slug_taken(self, slug: str) -> bool:
        # Deleted tenants keep their slug
        return await self.get_by_slug(slug) is not None

    async def list_page(self, cursor: str | None, limit: int, active_only: bool = True) -> Page:
        query = select(Tenant).where(Tenant.deleted_at.is_(None))  # type: ignore[union-attr]
        if active_only:
            query = query.where(Tenant.is_active == True)  # noqa: E712
        return await self.paginate(query, cursor, limit)

    async def list_with_dedicated_data_source(self) -> list[Tenant]:
        """Live tenants that point at their own data source, oldest first."""
        result = await self.session.execute(
            select(Tenant)
            .where(
                Tenant.data_source_url.is_not(None),  # type: ignore[union-attr]
                Tenant.deleted_at.is_(None),  # type: ignore[union-attr]
            )
            .order_by(Tenant.created_at)
        )
        return list(result.scalars().all())
