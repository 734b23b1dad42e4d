"""Tenant provisioning and data source administration."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm.core.config import get_settings
from src.crm.core.db import get_app_session, run_migrations_async
from src.crm.core.exceptions import ConflictError, NotFoundError
from src.crm.core.logging import get_logger
from src.crm.core.security import encrypt_credential
from src.crm.datasources import (
    ConnectionInfo,
    ConnectionTestResult,
    DataSourceManager,
    DatabaseCredentials,
    engine_url,
    get_data_source_manager,
)
from src.crm.models.base import utc_now
from src.crm.models.enums import TenantStatus
from src.crm.models.public import Tenant
from src.crm.repositories import TenantRepository
from src.crm.repositories.base import Page
from src.crm.schemas.data_source import (
    DatabaseCredentialsInput,
    DataSourceMigrationFailure,
    DataSourceMigrationRead,
    DataSourceUpdate,
)
from src.crm.schemas.tenant import TenantCreate

logger = get_logger(__name__)


def _encrypt(credentials: DatabaseCredentialsInput | None) -> str | None:
    if credentials is None:
        return None
    plain = DatabaseCredentials(
        username=credentials.username,
        password=credentials.password.get_secret_value(),
    )
    return encrypt_credential(plain.serialize())


def apply_data_source(tenant: Tenant, data: DataSourceUpdate) -> None:
    """Copy a data source definition onto the tenant, encrypting its keys."""
    tenant.data_source_url = data.url
    tenant.data_source_service_key = _encrypt(data.service_credentials)
    tenant.data_source_restricted_key = _encrypt(data.restricted_credentials)
    tenant.data_source_region = data.region
    tenant.connection_pool_config = data.pool_config
    if data.tenant_id_in_data_source is not None:
        tenant.tenant_id_in_data_source = data.tenant_id_in_data_source
    tenant.updated_at = utc_now()


class TenantService:
    """Tenant registry operations for platform administrators."""

    def __init__(
        self,
        tenant_repo: TenantRepository,
        session: AsyncSession,
        manager: DataSourceManager | None = None,
    ):
        self.tenant_repo = tenant_repo
        self.session = session
        self.manager = manager or get_data_source_manager()

    async def create_tenant(self, data: TenantCreate) -> Tenant:
        """Register a tenant in ``provisioning`` state.

        The caller schedules ``provision_tenant`` to finish the job.

        Raises:
            ConflictError: If the slug is taken.
        """
        if await self.tenant_repo.slug_taken(data.slug):
            raise ConflictError(f"Tenant with slug '{data.slug}' already exists")

        try:
            tenant = Tenant(
                name=data.name,
                slug=data.slug,
                settings=data.settings,
                status=TenantStatus.PROVISIONING.value,
            )
            if data.data_source is not None:
                apply_data_source(tenant, data.data_source)
            self.tenant_repo.add(tenant)
            await self.session.commit()
            await self.session.refresh(tenant)
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError(f"Tenant with slug '{data.slug}' already exists") from e

        logger.info(
            "Tenant created",
            tenant_id=str(tenant.id),
            slug=tenant.slug,
            dedicated_data_source=tenant.has_dedicated_data_source,
        )
        return tenant

    async def get_by_slug(self, slug: str) -> Tenant:
        tenant = await self.tenant_repo.get_by_slug(slug)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        return tenant

    async def list_tenants(self, cursor: str | None, limit: int, active_only: bool = True) -> Page:
        return await self.tenant_repo.list_page(cursor, limit, active_only)

    async def update_data_source(self, slug: str, data: DataSourceUpdate) -> Tenant:
        """Point the tenant at a new data source and drop its cached connections."""
        tenant = await self.get_by_slug(slug)
        try:
            apply_data_source(tenant, data)
            self.session.add(tenant)
            await self.session.commit()
            await self.session.refresh(tenant)
        except Exception:
            await self.session.rollback()
            raise

        self.manager.clear_tenant_cache(tenant.id)
        logger.info(
            "Tenant data source updated",
            tenant_id=str(tenant.id),
            region=tenant.data_source_region,
        )
        return tenant

    async def get_connection_info(self, slug: str) -> ConnectionInfo:
        tenant = await self.get_by_slug(slug)
        return await self.manager.get_tenant_connection_info(tenant.id)

    async def test_connection(self, slug: str) -> ConnectionTestResult:
        tenant = await self.get_by_slug(slug)
        return await self.manager.test_tenant_connection(tenant.id)

    async def migrate_data_sources(self) -> DataSourceMigrationRead:
        """Upgrade the shared data source and every dedicated one.

        A dedicated data source that fails is reported and skipped; the shared
        one failing aborts the run.
        """
        await run_migrations_async(get_settings().shared_data_database_url)
        done: set[str] = set()
        failed: list[DataSourceMigrationFailure] = []

        for tenant in await self.tenant_repo.list_with_dedicated_data_source():
            try:
                config = await self.manager.get_tenant_connection_config(tenant.id)
                url = engine_url(config, use_service_role=True).render_as_string(
                    hide_password=False
                )
                if url in done:
                    continue
                await run_migrations_async(url)
                done.add(url)
            except Exception as e:
                logger.warning(
                    "Data source migration failed", tenant_id=str(tenant.id), error=str(e)
                )
                failed.append(DataSourceMigrationFailure(tenant_slug=tenant.slug, error=str(e)))

        logger.info("Data sources migrated", migrated=len(done) + 1, failed=len(failed))
        return DataSourceMigrationRead(migrated=len(done) + 1, failed=failed)


async def _set_status(tenant_id: UUID, status: TenantStatus) -> None:
    async with get_app_session() as session:
        tenant = await session.get(Tenant, tenant_id)
        if tenant is None:
            return
        tenant.status = status.value
        tenant.updated_at = utc_now()
        session.add(tenant)
        await session.commit()


async def provision_tenant(tenant_id: UUID) -> None:
    """Bring a new tenant's data source up to date and mark it ready.

    Tenants in the shared data source only need the status change; the
    shared schema is migrated at deploy time. Runs as a background task, so
    failures are recorded on the tenant instead of raised.
    """
    log = logger.bind(tenant_id=str(tenant_id))
    manager = get_data_source_manager()

    try:
        manager.clear_tenant_cache(tenant_id)
        config = await manager.get_tenant_connection_config(tenant_id)
        if not config.is_shared:
            log.info("Migrating dedicated data source", region=config.region)
            url = engine_url(config, use_service_role=True)
            await run_migrations_async(url.render_as_string(hide_password=False))
        await _set_status(tenant_id, TenantStatus.READY)
    except Exception:
        log.exception("Tenant provisioning failed")
        await _set_status(tenant_id, TenantStatus.FAILED)
        return

    log.info("Tenant provisioned", shared_data_source=config.is_shared)
