"""Database session management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.crm.core.db.engine import get_engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used for both the application database and data sources."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def get_app_session(engine: AsyncEngine | None = None) -> AsyncGenerator[AsyncSession]:
    """Create a session on the application database (tenants, users, memberships).

    Args:
        engine: Optional engine override for testing.
    """
    if engine is None:
        engine = get_engine()

    async with create_session_factory(engine)() as session:
        yield session


@asynccontextmanager
async def get_data_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a session on a tenant data source engine."""
    async with create_session_factory(engine)() as session:
        yield session
