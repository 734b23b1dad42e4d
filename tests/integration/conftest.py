"""Integration fixtures: a real PostgreSQL for the application database and the shared data source.

Tests here are skipped when DATABASE_URL is unreachable.
"""

import asyncio
from collections.abc import AsyncGenerator
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from src.crm.core import db
from src.crm.core import redis as redis_core
from src.crm.core.config import get_settings
from src.crm.core.db import run_migrations_sync
from src.crm.core.health import reset_health_cache
from src.crm.datasources.manager import close_data_source_manager
from src.crm.main import create_app
from src.crm.models.enums import MembershipRole
from src.crm.models.public import Tenant
from tests.factories import (
    DEFAULT_TEST_PASSWORD,
    TenantFactory,
    UserFactory,
    UserTenantMembershipFactory,
)

# Children before parents so foreign keys never block the cleanup
DATA_TABLES = (
    "communications",
    "inventory_items",
    "payments",
    "invoice_line_items",
    "invoices",
    "contracts",
    "quotes",
    "event_staff_assignments",
    "event_dates",
    "events",
    "opportunity_line_items",
    "opportunities",
    "leads",
    "contacts",
    "accounts",
)


async def _reachable(url: str) -> bool:
    probe = create_async_engine(url, poolclass=NullPool)
    try:
        async with probe.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
    finally:
        await probe.dispose()


@pytest.fixture(autouse=True)
async def _reset_process_state() -> AsyncGenerator[None]:
    """Pools and clients hold on to the event loop they were created in."""
    redis_core.reset_redis_state()
    reset_health_cache()
    yield
    await close_data_source_manager()
    await redis_core.close_redis()
    await db.dispose_engine()


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Application database engine with both migration chains applied."""
    settings = get_settings()
    if not await _reachable(settings.database_url):
        pytest.skip("PostgreSQL is not reachable at DATABASE_URL")

    await db.dispose_engine()
    await asyncio.to_thread(run_migrations_sync, None)
    await asyncio.to_thread(run_migrations_sync, settings.shared_data_database_url)

    test_engine = create_async_engine(settings.database_url, poolclass=NullPool)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def data_engine(engine: AsyncEngine) -> AsyncGenerator[AsyncEngine]:
    """Engine on the shared data source. Defaults to the application database."""
    data = create_async_engine(get_settings().shared_data_database_url, poolclass=NullPool)
    yield data
    await data.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session on the application database. Tests must commit explicitly."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


async def purge_tenant(engine: AsyncEngine, data_engine: AsyncEngine, tenant: Tenant) -> None:
    tenant_id = tenant.id
    row_tenant_id = tenant.tenant_id_in_data_source or tenant.id
    async with data_engine.begin() as conn:
        for table in DATA_TABLES:
            await conn.execute(
                text(f"DELETE FROM {table} WHERE tenant_id = :tenant_id"),  # noqa: S608
                {"tenant_id": row_tenant_id},
            )
    async with engine.begin() as conn:
        await conn.execute(
            text("DELETE FROM public.user_tenant_membership WHERE tenant_id = :id"),
            {"id": tenant_id},
        )
        await conn.execute(text("DELETE FROM public.tenants WHERE id = :id"), {"id": tenant_id})


async def purge_user(engine: AsyncEngine, user_id: UUID) -> None:
    async with engine.begin() as conn:
        await conn.execute(text("DELETE FROM public.users WHERE id = :id"), {"id": user_id})


@pytest.fixture
async def make_tenant(
    engine: AsyncEngine, data_engine: AsyncEngine, db_session: AsyncSession
) -> AsyncGenerator:
    """Factory for tenants on the shared data source, removed with their rows afterwards."""
    created: list[Tenant] = []

    async def _make(**kwargs) -> Tenant:
        tenant = TenantFactory.build(**kwargs)
        db_session.add(tenant)
        await db_session.commit()
        await db_session.refresh(tenant)
        created.append(tenant)
        return tenant

    yield _make

    for tenant in created:
        await purge_tenant(engine, data_engine, tenant)


@pytest.fixture
async def make_member(engine: AsyncEngine, db_session: AsyncSession) -> AsyncGenerator:
    """Factory for users with an active membership in a tenant."""
    created: list[UUID] = []

    async def _make(tenant: Tenant, role: str = MembershipRole.ADMIN.value) -> dict:
        user = UserFactory.build()
        db_session.add(user)
        await db_session.flush()
        db_session.add(
            UserTenantMembershipFactory.build(user_id=user.id, tenant_id=tenant.id, role=role)
        )
        await db_session.commit()
        created.append(user.id)
        return {
            "id": str(user.id),
            "email": user.email,
            "password": DEFAULT_TEST_PASSWORD,
            "tenant_slug": tenant.slug,
        }

    yield _make

    for user_id in created:
        await purge_user(engine, user_id)


@pytest.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient]:
    """HTTP client on a fresh app. Callers pass X-Tenant-Slug per request."""
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

