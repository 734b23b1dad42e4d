"""Tenant-scoped data access over a data source session.

Every statement built here filters on the data source tenant ID and every
insert stamps it, so a row belonging to another tenant behaves exactly like a
row that does not exist.
"""

from collections.abc import Mapping
from typing import Any, Literal
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from src.crm.models.base import TenantScopedBase, utc_now
from src.crm.repositories.base import BaseRepository, Page

# Columns clients may never set directly
PROTECTED_FIELDS = frozenset(
    {"id", "tenant_id", "created_at", "updated_at", "created_by", "updated_by"}
)


def with_audit_fields(
    data: Mapping[str, Any],
    user_id: UUID | None,
    operation: Literal["create", "update"],
) -> dict[str, Any]:
    """Strip protected columns from ``data`` and stamp who made the change."""
    values = {k: v for k, v in data.items() if k not in PROTECTED_FIELDS}
    if operation == "create":
        values["created_by"] = user_id
    else:
        values["updated_at"] = utc_now()
    values["updated_by"] = user_id
    return values


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TenantScopedRepository[ModelType: TenantScopedBase](BaseRepository[ModelType]):
    """CRUD for one data source table, restricted to one tenant.

    Subclasses set ``model`` and ``search_fields``; the generic entity routes
    pass both to the constructor instead.
    """

    search_fields: tuple[str, ...] = ()

    def __init__(
        self,
        session: AsyncSession,
        tenant_id: UUID,
        model: type[ModelType] | None = None,
        search_fields: tuple[str, ...] | None = None,
    ):
        super().__init__(session)
        self.tenant_id = tenant_id
        if model is not None:
            self.model = model
        if search_fields is not None:
            self.search_fields = search_fields

    def scope(self, statement: Any) -> Any:
        """Add the tenant filter to any statement over this model."""
        return statement.where(self.model.tenant_id == self.tenant_id)

    def query(self) -> Any:
        return self.scope(select(self.model))

    async def get(self, id: UUID) -> ModelType | None:
        result = await self.session.execute(
            self.query().where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    # BaseRepository.get_by_id must not bypass the tenant filter
    get_by_id = get

    async def list_all(self, **filters: Any) -> list[ModelType]:
        """All matching rows, oldest first. For child collections such as line items."""
        query = self.query()
        for field, value in filters.items():
            query = query.where(getattr(self.model, field) == value)
        query = query.order_by(self.model.created_at, self.model.id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list(
        self,
        cursor: str | None = None,
        limit: int = 50,
        search: str | None = None,
        filters: Mapping[str, Any] | None = None,
    ) -> Page:
        """Newest-first page of the tenant's rows.

        ``search`` matches case-insensitively anywhere in ``search_fields``;
        ``filters`` are equality matches, skipping None values.
        """
        query = self.query()

        if search and self.search_fields:
            pattern = f"%{_escape_like(search.strip())}%"
            query = query.where(
                or_(
                    *(
                        getattr(self.model, field).ilike(pattern, escape="\\")
                        for field in self.search_fields
                    )
                )
            )

        for field, value in (filters or {}).items():
            if value is not None:
                query = query.where(getattr(self.model, field) == value)

        return await self.paginate(query, cursor, limit)

    def create(self, data: Mapping[str, Any], user_id: UUID | None) -> ModelType:
        """Build a row for this tenant and add it to the session (no commit)."""
        entity = self.model(
            **with_audit_fields(data, user_id, "create"),
            tenant_id=self.tenant_id,
        )
        self.session.add(entity)
        return entity

    async def update(
        self, id: UUID, data: Mapping[str, Any], user_id: UUID | None
    ) -> ModelType | None:
        """Apply ``data`` to the tenant's row. Returns None if there is no such row."""
        entity = await self.get(id)
        if entity is None:
            return None
        for key, value in with_audit_fields(data, user_id, "update").items():
            setattr(entity, key, value)
        self.session.add(entity)
        return entity

    async def delete(self, id: UUID) -> bool:
        """Delete the tenant's row. Returns False if there is no such row."""
        entity = await self.get(id)
        if entity is None:
            return False
        await self.session.delete(entity)
        return True
