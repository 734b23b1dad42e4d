"""Database session dependencies - Lobby Pattern."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm.core.db import get_app_session
from src.crm.datasources import DataSourceManager, get_data_source_manager


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    """Get a session on the application database (tenants, users, memberships)."""
    async with get_app_session() as session:
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db_session)]

DataSources = Annotated[DataSourceManager, Depends(get_data_source_manager)]
