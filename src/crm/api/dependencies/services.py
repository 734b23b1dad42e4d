"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.crm.api.dependencies.db import DataSources, DBSession
from src.crm.api.dependencies.repositories import MembershipRepo, TenantRepo, UserRepo
from src.crm.api.dependencies.tenant import TenantContext, ValidatedTenant
from src.crm.services import (
    AuthService,
    EventService,
    InvoiceService,
    OpportunityService,
    TenantService,
    UserService,
)


def get_auth_service(
    user_repo: UserRepo,
    membership_repo: MembershipRepo,
    tenant: ValidatedTenant,
) -> AuthService:
    return AuthService(user_repo, membership_repo, tenant.id)


def get_tenant_service(
    tenant_repo: TenantRepo, session: DBSession, manager: DataSources
) -> TenantService:
    return TenantService(tenant_repo, session, manager)


def user_service_for(
    ctx: TenantContext,
    user_repo: UserRepo,
    membership_repo: MembershipRepo,
    session: DBSession,
) -> UserService:
    return UserService(user_repo, membership_repo, session, ctx.tenant_id, ctx.custom_roles)


def opportunity_service_for(ctx: TenantContext) -> OpportunityService:
    return OpportunityService(ctx.session, ctx.data_source_tenant_id, ctx.user_id)


def invoice_service_for(ctx: TenantContext) -> InvoiceService:
    return InvoiceService(ctx.session, ctx.data_source_tenant_id, ctx.user_id)


def event_service_for(ctx: TenantContext, membership_repo: MembershipRepo) -> EventService:
    return EventService(
        ctx.session, ctx.data_source_tenant_id, ctx.user_id, membership_repo, ctx.tenant_id
    )


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
TenantServiceDep = Annotated[TenantService, Depends(get_tenant_service)]
