"""Tenant resolution: from the caller's token to a session on the tenant's data source."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm.api.dependencies.auth import TokenPayload, load_active_user
from src.crm.api.dependencies.db import DataSources, DBSession
from src.crm.core.db import get_data_session
from src.crm.core.logging import bind_tenant_context, get_logger
from src.crm.core.permissions import custom_roles_from_settings, has_permission
from src.crm.models.enums import MembershipRole, TenantStatus
from src.crm.models.public import Tenant
from src.crm.repositories import MembershipRepository, TenantRepository

logger = get_logger(__name__)


def check_tenant_available(tenant: Tenant | None) -> Tenant:
    """Reject tenants that cannot serve requests."""
    if tenant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tenant not found",
        )

    if tenant.deleted_at is not None:
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail="Tenant has been deleted",
        )

    if not tenant.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant is inactive",
        )

    if tenant.status != TenantStatus.READY.value:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Tenant is {tenant.status}",
        )

    return tenant


async def get_tenant_slug_from_header(
    x_tenant_slug: Annotated[str | None, Header()] = None,
) -> str:
    """Extract tenant slug from header."""
    if not x_tenant_slug:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-Slug header is required",
        )
    return x_tenant_slug


async def get_validated_tenant(
    tenant_slug: Annotated[str, Depends(get_tenant_slug_from_header)],
    session: DBSession,
) -> Tenant:
    """Tenant named by X-Tenant-Slug; must exist, be active and be ready."""
    return check_tenant_available(await TenantRepository(session).get_by_slug(tenant_slug))


ValidatedTenant = Annotated[Tenant, Depends(get_validated_tenant)]


@dataclass(frozen=True)
class Principal:
    user_id: UUID
    email: str
    role: str
    is_superuser: bool = False


@dataclass(frozen=True)
class TenantContext:
    """Everything a request needs to touch one tenant's data.

    ``session`` is bound to the tenant's data source and every row there is
    filtered on ``data_source_tenant_id``, which may differ from ``tenant_id``.
    """

    session: AsyncSession
    tenant_id: UUID
    data_source_tenant_id: UUID
    principal: Principal
    tenant: Tenant

    @property
    def user_id(self) -> UUID:
        return self.principal.user_id

    @property
    def custom_roles(self) -> list[Any]:
        return custom_roles_from_settings(self.tenant.settings)


async def get_tenant_context(
    payload: TokenPayload,
    session: DBSession,
    manager: DataSources,
    x_tenant_slug: Annotated[str | None, Header()] = None,
) -> AsyncGenerator[TenantContext]:
    """Resolve the caller's tenant and open a session on its data source."""
    raw_tenant_id = payload.get("tenant_id")
    if not raw_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User session is missing tenant information",
        )
    try:
        tenant_id = UUID(str(raw_tenant_id))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User session is missing tenant information",
        ) from e

    tenant = await session.get(Tenant, tenant_id)

    if x_tenant_slug and (tenant is None or tenant.slug != x_tenant_slug):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token tenant does not match request tenant",
        )

    user = await load_active_user(session, payload)

    membership = await MembershipRepository(session).get_active_membership(user.id, tenant_id)
    if membership is None and not user.is_superuser:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User does not have access to this tenant",
        )
    role = membership.role if membership is not None else MembershipRole.ADMIN.value

    tenant = check_tenant_available(tenant)

    try:
        engine = await manager.get_engine_for_tenant(tenant.id)
        data_source_tenant_id = await manager.get_tenant_id_in_data_source(tenant.id)
    except Exception as e:
        logger.exception(
            "Failed to initialize tenant context",
            tenant_id=str(tenant.id),
            error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to initialize tenant context",
        ) from e

    bind_tenant_context(user.id, tenant.id, data_source_tenant_id, user.email)
    logger.debug(
        "Tenant context resolved",
        tenant_slug=tenant.slug,
        data_source_tenant_id=str(data_source_tenant_id),
        role=role,
    )

    principal = Principal(
        user_id=user.id,
        email=user.email,
        role=role,
        is_superuser=user.is_superuser,
    )
    async with get_data_session(engine) as data_session:
        yield TenantContext(
            session=data_session,
            tenant_id=tenant.id,
            data_source_tenant_id=data_source_tenant_id,
            principal=principal,
            tenant=tenant,
        )


TenantCtx = Annotated[TenantContext, Depends(get_tenant_context)]


def require_permission(
    module: str, action: str
) -> Callable[[TenantContext], Awaitable[TenantContext]]:
    """Dependency factory: the tenant context, if the member's role allows ``action``."""

    async def dependency(ctx: TenantCtx) -> TenantContext:
        principal = ctx.principal
        if principal.is_superuser or has_permission(
            principal.role, module, action, ctx.custom_roles
        ):
            return ctx
        logger.info(
            "Permission denied",
            role=principal.role,
            module=module,
            action=action,
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")

    return dependency


def require_role(*roles: str) -> Callable[[TenantContext], Awaitable[TenantContext]]:
    """Dependency factory: the tenant context, if the member holds one of ``roles``."""

    async def dependency(ctx: TenantCtx) -> TenantContext:
        if ctx.principal.is_superuser or ctx.principal.role in roles:
            return ctx
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")

    return dependency
