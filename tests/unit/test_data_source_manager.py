"""Tests for tenant to data source routing and its caches."""

import asyncio
from uuid import uuid4

import pytest

from src.crm.core.config import get_settings
from src.crm.core.exceptions import DataSourceNotConfiguredError, TenantNotFoundError
from src.crm.core.security import encrypt_credential
from src.crm.datasources import DataSourceManager
from src.crm.models.public import Tenant
from tests.factories import TenantFactory
from tests.helpers import RecordingSession

pytestmark = pytest.mark.unit


class FakeEngine:
    def __init__(self, url, **kwargs):
        self.url = url
        self.kwargs = kwargs
        self.disposed = False

    async def dispose(self):
        self.disposed = True


class SlowSession(RecordingSession):
    """Yields to the event loop while loading, so concurrent callers interleave."""

    async def get(self, model, id):
        for _ in range(3):
            await asyncio.sleep(0)
        return await super().get(model, id)


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class Harness:
    """A manager wired to in-memory tenants, a fake engine factory and a fake clock."""

    def __init__(self, *tenants: Tenant):
        self.session = RecordingSession(objects={(Tenant, t.id): t for t in tenants})
        self.loads = 0
        self.engines: list[FakeEngine] = []
        self.clock = Clock()
        self.manager = DataSourceManager(
            settings=get_settings(),
            session_factory=self._session,
            engine_factory=self._engine,
            clock=self.clock,
        )

    def _session(self):
        self.loads += 1
        return self.session

    def _engine(self, url, **kwargs):
        engine = FakeEngine(url, **kwargs)
        self.engines.append(engine)
        return engine


class TestConnectionConfig:
    async def test_tenant_without_data_source_uses_shared_one(self):
        tenant = TenantFactory.build()
        h = Harness(tenant)

        config = await h.manager.get_tenant_connection_config(tenant.id)

        assert config.is_shared
        assert config.tenant_id_in_data_source == tenant.id
        assert config.url.render_as_string(hide_password=False) == (
            get_settings().shared_data_database_url
        )

    async def test_dedicated_data_source_credentials_are_decrypted(self):
        tenant = TenantFactory.dedicated(service="svc_user:s3cr:et", restricted="ro_user:ro")
        h = Harness(tenant)

        config = await h.manager.get_tenant_connection_config(tenant.id)

        assert not config.is_shared
        assert config.url.host == "shard1.internal"
        assert config.service_credentials.username == "svc_user"
        assert config.service_credentials.password == "s3cr:et"
        assert config.restricted_credentials.username == "ro_user"

    async def test_data_source_tenant_id_can_differ(self):
        remote_id = uuid4()
        tenant = TenantFactory.dedicated(tenant_id_in_data_source=remote_id)
        h = Harness(tenant)

        assert await h.manager.get_tenant_id_in_data_source(tenant.id) == remote_id

    async def test_pool_config_overrides_defaults(self):
        tenant = TenantFactory.build(connection_pool_config={"pool_size": 2, "bogus": 1})
        h = Harness(tenant)

        config = await h.manager.get_tenant_connection_config(tenant.id)

        assert config.pool_config.pool_size == 2
        assert config.pool_config.max_overflow == get_settings().data_source_max_overflow

    async def test_unknown_tenant(self):
        h = Harness()
        with pytest.raises(TenantNotFoundError):
            await h.manager.get_tenant_connection_config(uuid4())

    async def test_undecryptable_credentials(self):
        tenant = TenantFactory.build(
            data_source_url="postgresql+asyncpg://shard1.internal/crm",
            data_source_service_key="not:valid:ciphertext",
        )
        h = Harness(tenant)

        with pytest.raises(DataSourceNotConfiguredError, match="cannot be decrypted"):
            await h.manager.get_tenant_connection_config(tenant.id)

    async def test_credentials_must_have_username_and_password(self):
        tenant = TenantFactory.build(
            data_source_url="postgresql+asyncpg://shard1.internal/crm",
            data_source_service_key=encrypt_credential("no-separator"),
        )
        h = Harness(tenant)

        with pytest.raises(DataSourceNotConfiguredError):
            await h.manager.get_tenant_connection_config(tenant.id)

    async def test_dedicated_source_without_any_credentials(self):
        tenant = TenantFactory.build(data_source_url="postgresql+asyncpg://shard1.internal/crm")
        h = Harness(tenant)

        with pytest.raises(DataSourceNotConfiguredError, match="no service credentials"):
            await h.manager.get_tenant_connection_config(tenant.id)


class TestConfigCache:
    async def test_config_is_cached_until_ttl(self):
        tenant = TenantFactory.build()
        h = Harness(tenant)

        await h.manager.get_tenant_connection_config(tenant.id)
        await h.manager.get_tenant_connection_config(tenant.id)
        assert h.loads == 1

        h.clock.now += get_settings().data_source_config_ttl_seconds + 1
        await h.manager.get_tenant_connection_config(tenant.id)
        assert h.loads == 2

    async def test_concurrent_first_requests_load_once(self):
        tenant = TenantFactory.dedicated()
        h = Harness(tenant)
        h.session = SlowSession(objects={(Tenant, tenant.id): tenant})

        configs = await asyncio.gather(
            *(h.manager.get_tenant_connection_config(tenant.id) for _ in range(5))
        )

        assert h.loads == 1
        assert all(config is configs[0] for config in configs)

    async def test_clear_tenant_cache_forces_reload(self):
        tenant = TenantFactory.build()
        h = Harness(tenant)

        await h.manager.get_engine_for_tenant(tenant.id)
        h.manager.clear_tenant_cache(tenant.id)
        stats = h.manager.get_cache_stats()

        assert stats.config_cache_size == 0
        assert stats.client_cache_size == 0
        # the engine stays until cleanup finds it unreferenced
        assert stats.engine_count == 1

        await h.manager.get_tenant_connection_config(tenant.id)
        assert h.loads == 2


class TestEngines:
    async def test_service_credentials_are_applied_to_engine_url(self):
        tenant = TenantFactory.dedicated(service="svc_user:pw1")
        h = Harness(tenant)

        engine = await h.manager.get_engine_for_tenant(tenant.id)

        assert engine.url.username == "svc_user"
        assert engine.url.password == "pw1"
        assert engine.kwargs["pool_pre_ping"] is True

    async def test_restricted_role_uses_restricted_credentials(self):
        tenant = TenantFactory.dedicated(service="svc_user:pw1", restricted="ro_user:pw2")
        h = Harness(tenant)

        service = await h.manager.get_engine_for_tenant(tenant.id, use_service_role=True)
        restricted = await h.manager.get_engine_for_tenant(tenant.id, use_service_role=False)

        assert service is not restricted
        assert restricted.url.username == "ro_user"

    async def test_restricted_role_falls_back_to_service_credentials(self):
        tenant = TenantFactory.dedicated(service="svc_user:pw1")
        h = Harness(tenant)

        service = await h.manager.get_engine_for_tenant(tenant.id, use_service_role=True)
        restricted = await h.manager.get_engine_for_tenant(tenant.id, use_service_role=False)

        assert service is restricted
        assert len(h.engines) == 1

    async def test_tenants_on_the_same_data_source_share_an_engine(self):
        a, b = TenantFactory.build(), TenantFactory.build()
        h = Harness(a, b)

        engine_a = await h.manager.get_engine_for_tenant(a.id)
        engine_b = await h.manager.get_engine_for_tenant(b.id)

        assert engine_a is engine_b
        assert h.manager.get_cache_stats().engine_count == 1
        assert h.manager.get_cache_stats().client_cache_size == 2

    async def test_different_credentials_get_different_engines(self):
        a = TenantFactory.dedicated(service="user_a:pw")
        b = TenantFactory.dedicated(service="user_b:pw")
        h = Harness(a, b)

        assert await h.manager.get_engine_for_tenant(a.id) is not (
            await h.manager.get_engine_for_tenant(b.id)
        )
        assert len(h.engines) == 2


class TestCleanup:
    async def test_expired_entries_and_idle_engines_are_removed(self):
        tenant = TenantFactory.build()
        h = Harness(tenant)
        engine = await h.manager.get_engine_for_tenant(tenant.id)

        assert await h.manager.cleanup_expired() == 0
        assert not engine.disposed

        h.clock.now += get_settings().data_source_client_ttl_seconds + 1
        assert await h.manager.cleanup_expired() == 1

        assert engine.disposed
        assert h.manager.get_cache_stats().engine_count == 0
        assert h.manager.get_cache_stats().config_cache_size == 0

    async def test_close_disposes_every_engine(self):
        a = TenantFactory.dedicated(service="user_a:pw")
        b = TenantFactory.build()
        h = Harness(a, b)
        await h.manager.get_engine_for_tenant(a.id)
        await h.manager.get_engine_for_tenant(b.id)

        await h.manager.close()

        assert all(engine.disposed for engine in h.engines)
        assert h.manager.get_cache_stats().engine_count == 0

    async def test_connection_info_masks_password(self):
        tenant = TenantFactory.dedicated(service="svc_user:hunter2")
        h = Harness(tenant)
        await h.manager.get_engine_for_tenant(tenant.id)

        info = await h.manager.get_tenant_connection_info(tenant.id)

        assert "hunter2" not in info.url
        assert info.is_cached
        assert info.cache_expiry is not None
        assert not info.is_shared


class TestTenantLocks:
    async def test_lock_is_dropped_with_the_tenant_cache(self):
        tenant = TenantFactory.build()
        h = Harness(tenant)
        await h.manager.get_tenant_connection_config(tenant.id)
        assert tenant.id in h.manager._tenant_locks

        h.manager.clear_tenant_cache(tenant.id)

        assert tenant.id not in h.manager._tenant_locks

    async def test_cleanup_keeps_locks_only_for_cached_configs(self):
        tenant = TenantFactory.build()
        h = Harness(tenant)
        await h.manager.get_tenant_connection_config(tenant.id)
        with pytest.raises(TenantNotFoundError):
            await h.manager.get_tenant_connection_config(uuid4())
        assert len(h.manager._tenant_locks) == 2

        await h.manager.cleanup_expired()
        assert list(h.manager._tenant_locks) == [tenant.id]

        h.clock.now += get_settings().data_source_config_ttl_seconds + 1
        await h.manager.cleanup_expired()
        assert h.manager._tenant_locks == {}

    async def test_held_lock_survives_a_cache_clear(self):
        tenant = TenantFactory.build()
        h = Harness(tenant)
        lock = h.manager._lock_for(tenant.id)

        async with lock:
            h.manager.clear_all_caches()
            assert h.manager._tenant_locks[tenant.id] is lock
