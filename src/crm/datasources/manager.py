"""Routing of tenants to the physical database that holds their data.

The manager reads a tenant's data source columns from the application
database, decrypts its credentials and hands out SQLAlchemy async engines for
it. Two caches sit in front of that work:

* a config cache (tenant id -> decrypted TenantConnectionConfig), and
* a client cache (``"{tenant_id}-service"`` / ``"{tenant_id}-restricted"`` ->
  engine fingerprint).

Engines themselves are keyed by fingerprint (URL + credentials + pool
config), so every tenant on the same shard shares one connection pool.
"""

import asyncio
import hashlib
import time
from collections.abc import Callable, Iterable
from contextlib import AbstractAsyncContextManager
from dataclasses import asdict, dataclass
from datetime import timedelta
from uuid import UUID

from sqlalchemy import func, select, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from src.crm.core.config import Settings, get_settings
from src.crm.core.db import build_connect_args, get_app_session
from src.crm.core.exceptions import (
    CredentialEncryptionError,
    DataSourceNotConfiguredError,
    TenantNotFoundError,
)
from src.crm.core.logging import get_logger
from src.crm.core.security.encryption import CredentialCipher
from src.crm.datasources.types import (
    CacheStats,
    ConnectionDiagnostics,
    ConnectionInfo,
    ConnectionTestResult,
    DatabaseCredentials,
    PoolConfig,
    TenantConnectionConfig,
)
from src.crm.models.base import utc_now
from src.crm.models.data import Account
from src.crm.models.public import Tenant

logger = get_logger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]
EngineFactory = Callable[..., AsyncEngine]


@dataclass
class _CacheEntry[T]:
    value: T
    expires_at: float


def client_cache_key(tenant_id: UUID, use_service_role: bool) -> str:
    return f"{tenant_id}-{'service' if use_service_role else 'restricted'}"


def engine_url(config: TenantConnectionConfig, use_service_role: bool) -> URL:
    """URL with the role's credentials applied."""
    creds = config.credentials_for(use_service_role)
    if creds is None:
        return config.url
    return config.url.set(username=creds.username, password=creds.password)


def engine_fingerprint(url: URL, pool: PoolConfig) -> str:
    raw = "|".join(
        [
            url.render_as_string(hide_password=False),
            str(pool.pool_size),
            str(pool.max_overflow),
            str(pool.pool_timeout),
            pool.ssl_mode,
        ]
    )
    return hashlib.sha256(raw.encode()).hexdigest()


class DataSourceManager:
    """Resolves tenants to data source engines, with TTL caches."""

    def __init__(
        self,
        settings: Settings | None = None,
        session_factory: SessionFactory | None = None,
        engine_factory: EngineFactory | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._settings = settings or get_settings()
        self._session_factory = session_factory or get_app_session
        self._engine_factory = engine_factory or create_async_engine
        self._clock = clock

        self._config_ttl = self._settings.data_source_config_ttl_seconds
        self._client_ttl = self._settings.data_source_client_ttl_seconds

        self._config_cache: dict[UUID, _CacheEntry[TenantConnectionConfig]] = {}
        self._client_cache: dict[str, _CacheEntry[str]] = {}
        self._engines: dict[str, AsyncEngine] = {}

        self._tenant_locks: dict[UUID, asyncio.Lock] = {}
        self._engine_lock = asyncio.Lock()
        self._cleanup_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _default_pool_config(self) -> PoolConfig:
        return PoolConfig(
            pool_size=self._settings.data_source_pool_size,
            max_overflow=self._settings.data_source_max_overflow,
            ssl_mode=self._settings.database_ssl_mode,
        )

    def _lock_for(self, tenant_id: UUID) -> asyncio.Lock:
        lock = self._tenant_locks.get(tenant_id)
        if lock is None:
            lock = self._tenant_locks[tenant_id] = asyncio.Lock()
        return lock

    def _prune_locks(self, tenant_ids: Iterable[UUID] | None = None) -> None:
        """Drop idle locks of tenants that no longer have a cached config."""
        for tenant_id in list(self._tenant_locks if tenant_ids is None else tenant_ids):
            lock = self._tenant_locks.get(tenant_id)
            if lock is None or lock.locked() or tenant_id in self._config_cache:
                continue
            del self._tenant_locks[tenant_id]

    def _decrypt_credentials(
        self, tenant: Tenant, encrypted: str | None, label: str
    ) -> DatabaseCredentials | None:
        if not encrypted:
            return None
        try:
            cipher = CredentialCipher(self._settings.encryption_key)
            return DatabaseCredentials.parse(cipher.decrypt(encrypted))
        except (CredentialEncryptionError, ValueError) as e:
            logger.error(
                "Failed to decrypt data source credentials",
                tenant_id=str(tenant.id),
                credential=label,
                error=str(e),
            )
            raise DataSourceNotConfiguredError(
                f"Data source {label} credentials for tenant {tenant.id} cannot be decrypted"
            ) from e

    def _build_config(self, tenant: Tenant) -> TenantConnectionConfig:
        defaults = self._default_pool_config()
        tenant_id_in_data_source = tenant.tenant_id_in_data_source or tenant.id

        if not tenant.data_source_url:
            return TenantConnectionConfig(
                tenant_id=tenant.id,
                url=make_url(self._settings.shared_data_database_url),
                tenant_id_in_data_source=tenant_id_in_data_source,
                pool_config=PoolConfig.from_mapping(tenant.connection_pool_config, defaults),
                region=tenant.data_source_region,
                is_shared=True,
            )

        try:
            url = make_url(tenant.data_source_url)
        except Exception as e:
            raise DataSourceNotConfiguredError(
                f"Data source URL for tenant {tenant.id} is invalid"
            ) from e

        service = self._decrypt_credentials(tenant, tenant.data_source_service_key, "service")
        restricted = self._decrypt_credentials(
            tenant, tenant.data_source_restricted_key, "restricted"
        )

        if service is None and url.password is None:
            raise DataSourceNotConfiguredError(
                f"Data source for tenant {tenant.id} has no service credentials"
            )

        return TenantConnectionConfig(
            tenant_id=tenant.id,
            url=url,
            tenant_id_in_data_source=tenant_id_in_data_source,
            pool_config=PoolConfig.from_mapping(tenant.connection_pool_config, defaults),
            service_credentials=service,
            restricted_credentials=restricted,
            region=tenant.data_source_region,
            is_shared=False,
        )

    async def _load_tenant(self, tenant_id: UUID) -> Tenant:
        async with self._session_factory() as session:
            tenant = await session.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    async def get_tenant_connection_config(self, tenant_id: UUID) -> TenantConnectionConfig:
        """Resolve and cache the decrypted connection config for a tenant.

        Raises:
            TenantNotFoundError: Tenant is not in the application database.
            DataSourceNotConfiguredError: The stored data source cannot be used.
        """
        cached = self._config_cache.get(tenant_id)
        if cached is not None and cached.expires_at > self._clock():
            return cached.value

        async with self._lock_for(tenant_id):
            # Another request may have filled the cache while we waited
            cached = self._config_cache.get(tenant_id)
            if cached is not None and cached.expires_at > self._clock():
                return cached.value

            tenant = await self._load_tenant(tenant_id)
            config = self._build_config(tenant)
            self._config_cache[tenant_id] = _CacheEntry(
                value=config, expires_at=self._clock() + self._config_ttl
            )
            logger.debug(
                "Data source config loaded",
                tenant_id=str(tenant_id),
                is_shared=config.is_shared,
                region=config.region,
            )
            return config

    async def get_tenant_id_in_data_source(self, tenant_id: UUID) -> UUID:
        """The ID the tenant's rows are stored under in its data source."""
        config = await self.get_tenant_connection_config(tenant_id)
        return config.tenant_id_in_data_source

    # ------------------------------------------------------------------
    # Engines
    # ------------------------------------------------------------------

    def _create_engine(self, url: URL, pool: PoolConfig) -> AsyncEngine:
        return self._engine_factory(
            url,
            pool_size=pool.pool_size,
            max_overflow=pool.max_overflow,
            pool_timeout=pool.pool_timeout,
            pool_pre_ping=True,
            connect_args=build_connect_args(pool.ssl_mode),
        )

    async def get_engine_for_tenant(
        self, tenant_id: UUID, use_service_role: bool = True
    ) -> AsyncEngine:
        """Engine connected to the tenant's data source with the role's credentials."""
        key = client_cache_key(tenant_id, use_service_role)
        cached = self._client_cache.get(key)
        if cached is not None and cached.expires_at > self._clock():
            engine = self._engines.get(cached.value)
            if engine is not None:
                return engine

        config = await self.get_tenant_connection_config(tenant_id)
        url = engine_url(config, use_service_role)
        fingerprint = engine_fingerprint(url, config.pool_config)

        async with self._engine_lock:
            engine = self._engines.get(fingerprint)
            if engine is None:
                engine = self._create_engine(url, config.pool_config)
                self._engines[fingerprint] = engine
                logger.info(
                    "Data source engine created",
                    tenant_id=str(tenant_id),
                    target=url.render_as_string(hide_password=True),
                    is_shared=config.is_shared,
                )
            self._client_cache[key] = _CacheEntry(
                value=fingerprint, expires_at=self._clock() + self._client_ttl
            )
        return engine

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def clear_tenant_cache(self, tenant_id: UUID) -> None:
        """Forget a tenant's config and client entries.

        Shared engines stay open until cleanup_expired finds them unreferenced.
        """
        self._config_cache.pop(tenant_id, None)
        for use_service_role in (True, False):
            self._client_cache.pop(client_cache_key(tenant_id, use_service_role), None)
        self._prune_locks([tenant_id])
        logger.info("Data source cache cleared", tenant_id=str(tenant_id))

    def clear_all_caches(self) -> None:
        self._config_cache.clear()
        self._client_cache.clear()
        self._prune_locks()
        logger.info("All data source caches cleared")

    def get_cache_stats(self) -> CacheStats:
        return CacheStats(
            config_cache_size=len(self._config_cache),
            client_cache_size=len(self._client_cache),
            engine_count=len(self._engines),
        )

    async def cleanup_expired(self) -> int:
        """Evict expired cache entries and dispose engines nobody references.

        Returns:
            Number of engines disposed.
        """
        now = self._clock()
        for tenant_id in [t for t, e in self._config_cache.items() if e.expires_at <= now]:
            del self._config_cache[tenant_id]
        for key in [k for k, e in self._client_cache.items() if e.expires_at <= now]:
            del self._client_cache[key]
        self._prune_locks()

        async with self._engine_lock:
            referenced = {entry.value for entry in self._client_cache.values()}
            stale = [fp for fp in self._engines if fp not in referenced]
            for fp in stale:
                await self._engines.pop(fp).dispose()

        if stale:
            logger.info("Disposed idle data source engines", count=len(stale))
        return len(stale)

    async def _cleanup_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.cleanup_expired()
            except Exception:
                logger.exception("Data source cache cleanup failed")

    def start_cleanup_task(self) -> None:
        """Run cleanup_expired periodically in the background."""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(
                self._cleanup_loop(self._settings.data_source_cleanup_interval_seconds)
            )

    async def close(self) -> None:
        """Stop the cleanup task and dispose every engine."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

        self.clear_all_caches()
        async with self._engine_lock:
            engines = list(self._engines.values())
            self._engines.clear()
        for engine in engines:
            await engine.dispose()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    async def test_tenant_connection(self, tenant_id: UUID) -> ConnectionTestResult:
        """Probe a tenant's data source. Failures are reported, never raised."""
        started = time.perf_counter()
        diagnostics = ConnectionDiagnostics()

        def elapsed_ms() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        try:
            config = await self.get_tenant_connection_config(tenant_id)
            engine = await self.get_engine_for_tenant(tenant_id)
            async with engine.connect() as conn:
                diagnostics.can_connect = True
                await conn.execute(text("SELECT 1"))
                diagnostics.can_query = True
                await conn.execute(
                    select(func.count())
                    .select_from(Account)
                    .where(Account.tenant_id == config.tenant_id_in_data_source)  # type: ignore[arg-type]
                )
                diagnostics.tenant_filter_ok = True
        except Exception as e:
            logger.warning(
                "Data source connection test failed",
                tenant_id=str(tenant_id),
                error=str(e),
                **asdict(diagnostics),
            )
            return ConnectionTestResult(
                success=False,
                response_time_ms=elapsed_ms(),
                error=str(e),
                diagnostics=diagnostics,
            )

        return ConnectionTestResult(
            success=True, response_time_ms=elapsed_ms(), diagnostics=diagnostics
        )

    async def get_tenant_connection_info(self, tenant_id: UUID) -> ConnectionInfo:
        config = await self.get_tenant_connection_config(tenant_id)

        entry = self._client_cache.get(client_cache_key(tenant_id, True))
        now = self._clock()
        is_cached = entry is not None and entry.expires_at > now
        cache_expiry = (
            utc_now() + timedelta(seconds=entry.expires_at - now)
            if entry is not None and is_cached
            else None
        )

        return ConnectionInfo(
            tenant_id=tenant_id,
            url=engine_url(config, True).render_as_string(hide_password=True),
            region=config.region,
            pool_config=config.pool_config.as_dict(),
            tenant_id_in_data_source=config.tenant_id_in_data_source,
            is_shared=config.is_shared,
            is_cached=is_cached,
            cache_expiry=cache_expiry,
        )


_manager: DataSourceManager | None = None


def get_data_source_manager() -> DataSourceManager:
    """Process-wide DataSourceManager."""
    global _manager
    if _manager is None:
        _manager = DataSourceManager()
    return _manager


async def close_data_source_manager() -> None:
    global _manager
    if _manager is not None:
        await _manager.close()
        _manager = None
