"""Tests for resolving a request's tenant context from its access token."""

from uuid import uuid4

import pytest
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import create_async_engine

from src.crm.api.dependencies.tenant import get_tenant_context
from src.crm.models.public import Tenant, User
from tests.factories import TenantFactory, UserFactory, UserTenantMembershipFactory
from tests.helpers import RecordingSession

pytestmark = pytest.mark.unit


class FakeManager:
    def __init__(self, data_source_tenant_id=None, error: Exception | None = None):
        # Never connects; sessions on it are only opened and closed
        self.engine = create_async_engine("postgresql+asyncpg://u:p@localhost:5432/data")
        self.data_source_tenant_id = data_source_tenant_id
        self.error = error
        self.requested: list = []

    async def get_engine_for_tenant(self, tenant_id, use_service_role=True):
        self.requested.append(tenant_id)
        if self.error:
            raise self.error
        return self.engine

    async def get_tenant_id_in_data_source(self, tenant_id):
        return self.data_source_tenant_id or tenant_id


def payload_for(user, tenant_id) -> dict:
    return {"sub": str(user.id), "tenant_id": str(tenant_id), "type": "access"}


def app_session(tenant=None, user=None, membership=None) -> RecordingSession:
    objects = {}
    if tenant is not None:
        objects[(Tenant, tenant.id)] = tenant
    if user is not None:
        objects[(User, user.id)] = user
    return RecordingSession(rows=[membership] if membership else [], objects=objects)


async def resolve(payload, session, manager, x_tenant_slug=None):
    generator = get_tenant_context(payload, session, manager, x_tenant_slug)
    try:
        return await anext(generator)
    finally:
        await generator.aclose()


@pytest.fixture
def tenant():
    return TenantFactory.build()


@pytest.fixture
def user():
    return UserFactory.build()


def member(user, tenant, **kwargs):
    return UserTenantMembershipFactory.build(user_id=user.id, tenant_id=tenant.id, **kwargs)


class TestResolution:
    async def test_member_gets_context_for_token_tenant(self, tenant, user):
        session = app_session(tenant, user, member(user, tenant, role="sales_rep"))
        manager = FakeManager()

        ctx = await resolve(payload_for(user, tenant.id), session, manager, tenant.slug)

        assert ctx.tenant_id == tenant.id
        assert ctx.data_source_tenant_id == tenant.id
        assert ctx.principal.user_id == user.id
        assert ctx.principal.role == "sales_rep"
        assert ctx.session.bind is manager.engine
        assert manager.requested == [tenant.id]

    async def test_data_source_tenant_id_is_taken_from_manager(self, tenant, user):
        remote_id = uuid4()
        session = app_session(tenant, user, member(user, tenant))

        ctx = await resolve(payload_for(user, tenant.id), session, FakeManager(remote_id))

        assert ctx.tenant_id == tenant.id
        assert ctx.data_source_tenant_id == remote_id

    async def test_superuser_without_membership_acts_as_admin(self, tenant):
        superuser = UserFactory.superuser()
        session = app_session(tenant, superuser)

        ctx = await resolve(payload_for(superuser, tenant.id), session, FakeManager())

        assert ctx.principal.role == "admin"
        assert ctx.principal.is_superuser


class TestRejections:
    async def _status(self, *args, **kwargs) -> tuple[int, str]:
        with pytest.raises(HTTPException) as exc_info:
            await resolve(*args, **kwargs)
        return exc_info.value.status_code, exc_info.value.detail

    async def test_token_without_tenant(self, user):
        payload = {"sub": str(user.id), "type": "access"}
        status, detail = await self._status(payload, app_session(user=user), FakeManager())
        assert status == 400
        assert "tenant" in detail

    async def test_token_with_malformed_tenant(self, user):
        payload = {"sub": str(user.id), "tenant_id": "not-a-uuid", "type": "access"}
        status, _ = await self._status(payload, app_session(user=user), FakeManager())
        assert status == 400

    async def test_header_for_another_tenant(self, tenant, user):
        session = app_session(tenant, user, member(user, tenant))
        status, detail = await self._status(
            payload_for(user, tenant.id), session, FakeManager(), "someone-else"
        )
        assert status == 403
        assert detail == "Token tenant does not match request tenant"

    async def test_inactive_user(self, tenant):
        user = UserFactory.inactive()
        session = app_session(tenant, user, member(user, tenant))
        status, _ = await self._status(payload_for(user, tenant.id), session, FakeManager())
        assert status == 401

    async def test_non_member(self, tenant, user):
        session = app_session(tenant, user)
        status, detail = await self._status(payload_for(user, tenant.id), session, FakeManager())
        assert status == 403
        assert detail == "User does not have access to this tenant"

    async def test_unknown_tenant(self, user):
        superuser = UserFactory.superuser()
        status, _ = await self._status(
            payload_for(superuser, uuid4()), app_session(user=superuser), FakeManager()
        )
        assert status == 404

    async def test_deleted_tenant(self, user):
        tenant = TenantFactory.deleted()
        session = app_session(tenant, user, member(user, tenant))
        status, _ = await self._status(payload_for(user, tenant.id), session, FakeManager())
        assert status == 410

    async def test_tenant_still_provisioning(self, user):
        tenant = TenantFactory.provisioning()
        session = app_session(tenant, user, member(user, tenant))
        status, detail = await self._status(payload_for(user, tenant.id), session, FakeManager())
        assert status == 503
        assert detail == "Tenant is provisioning"

    async def test_data_source_failure(self, tenant, user):
        session = app_session(tenant, user, member(user, tenant))
        manager = FakeManager(error=RuntimeError("connection refused"))
        status, detail = await self._status(payload_for(user, tenant.id), session, manager)
        assert status == 500
        assert detail == "Failed to initialize tenant context"
