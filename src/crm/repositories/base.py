"""Base repository with common CRUD operations."""

from typing import Any
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from src.crm.schemas.pagination import decode_cursor, encode_cursor

Page = tuple[list[Any], str | None, bool]


class BaseRepository[ModelType: SQLModel]:
    """Base repository providing common database operations.

    Repositories handle data access only. Transaction control (commit)
    should be done in the service layer or the route.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, id: UUID) -> ModelType | None:
        """Get a record by its primary key."""
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
        )
        return result.scalar_one_or_none()

    def add(self, entity: ModelType) -> None:
        """Add entity to session (no flush/commit)."""
        self.session.add(entity)

    async def paginate(
        self,
        query: Any,  # SelectOfScalar or Select - SQLModel/SQLAlchemy query
        cursor: str | None,
        limit: int,
        cursor_model: type[SQLModel] | None = None,
    ) -> Page:
        """Execute cursor-based pagination on a query, newest first.

        Rows are ordered by (created_at, id) descending on ``cursor_model``
        (the repository's model by default), so both columns must exist there.

        Returns:
            Tuple of (items, next_cursor, has_more)
        """
        cursor_model = cursor_model or self.model
        created_col: Any = cursor_model.created_at  # type: ignore[attr-defined]
        id_col: Any = cursor_model.id  # type: ignore[attr-defined]

        if cursor:
            try:
                created_at, last_id = decode_cursor(cursor)
                query = query.where(
                    or_(
                        created_col < created_at,
                        and_(created_col == created_at, id_col < last_id),
                    )
                )
            except ValueError:
                # Invalid cursor - ignore and start from beginning
                pass

        query = query.order_by(created_col.desc(), id_col.desc()).limit(limit + 1)

        result = await self.session.execute(query)
        items = list(result.scalars().all())

        has_more = len(items) > limit
        if has_more:
            items = items[:limit]

        next_cursor = None
        if has_more and items:
            last = items[-1]
            next_cursor = encode_cursor(last.created_at, last.id)

        return items, next_cursor, has_more
