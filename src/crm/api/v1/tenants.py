"""Tenant registry and data source endpoints (superuser only)."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Query, status

from src.crm.api.dependencies import SuperUser, TenantServiceDep
from src.crm.models.enums import TenantStatus
from src.crm.schemas.data_source import ConnectionInfoRead, ConnectionTestRead, DataSourceUpdate
from src.crm.schemas.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PaginatedResponse
from src.crm.schemas.tenant import (
    TenantCreate,
    TenantProvisioningResponse,
    TenantRead,
    TenantStatusResponse,
)
from src.crm.services import provision_tenant

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.post(
    "",
    response_model=TenantProvisioningResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        202: {
            "description": "Tenant provisioning started",
            "content": {
                "application/json": {
                    "example": {
                        "tenant_id": "550e8400-e29b-41d4-a716-446655440000",
                        "slug": "acme-corp",
                        "status": "provisioning",
                    }
                }
            },
        },
        409: {"description": "Tenant slug already exists"},
    },
)
async def create_tenant(
    request: TenantCreate,
    service: TenantServiceDep,
    background_tasks: BackgroundTasks,
    _user: SuperUser,
) -> TenantProvisioningResponse:
    """Register a tenant and provision its data source in the background.

    Returns immediately. Poll /tenants/{slug}/status for progress.
    """
    tenant = await service.create_tenant(request)
    background_tasks.add_task(provision_tenant, tenant.id)
    return TenantProvisioningResponse(
        tenant_id=tenant.id,
        slug=tenant.slug,
        status=tenant.status,
    )


@router.get(
    "/{slug}/status",
    response_model=TenantStatusResponse,
    responses={
        200: {
            "description": "Tenant status retrieved",
            "content": {
                "application/json": {
                    "examples": {
                        "ready": {
                            "summary": "Tenant is ready",
                            "value": {
                                "status": "ready",
                                "tenant": {
                                    "id": "550e8400-e29b-41d4-a716-446655440000",
                                    "name": "Acme Corporation",
                                    "slug": "acme-corp",
                                    "status": "ready",
                                },
                            },
                        },
                        "provisioning": {
                            "summary": "Tenant is provisioning",
                            "value": {"status": "provisioning", "tenant": None},
                        },
                    }
                }
            },
        },
        404: {"description": "Tenant not found"},
    },
)
async def get_tenant_status(
    slug: str, service: TenantServiceDep, _user: SuperUser
) -> TenantStatusResponse:
    """Provisioning status: provisioning, ready or failed."""
    tenant = await service.get_by_slug(slug)
    is_ready = tenant.status == TenantStatus.READY.value
    return TenantStatusResponse(
        status=tenant.status,
        tenant=TenantRead.model_validate(tenant) if is_ready else None,
    )


@router.get("", response_model=PaginatedResponse[TenantRead])
async def list_tenants(
    service: TenantServiceDep,
    _user: SuperUser,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[
        int, Query(ge=1, le=MAX_PAGE_SIZE, description="Number of items per page")
    ] = DEFAULT_PAGE_SIZE,
    active_only: bool = True,
) -> PaginatedResponse[TenantRead]:
    """List tenants, newest first. Deleted tenants are never listed."""
    tenants, next_cursor, has_more = await service.list_tenants(cursor, limit, active_only)
    return PaginatedResponse(
        items=[TenantRead.model_validate(t) for t in tenants],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.put(
    "/{slug}/data-source",
    response_model=TenantRead,
    responses={
        404: {"description": "Tenant not found"},
        422: {"description": "Invalid data source definition"},
    },
)
async def update_data_source(
    slug: str, data: DataSourceUpdate, service: TenantServiceDep, _user: SuperUser
) -> TenantRead:
    """Move the tenant to a dedicated data source.

    Credentials are stored encrypted and the tenant's cached connections are
    dropped, so the next request connects to the new target.
    """
    tenant = await service.update_data_source(slug, data)
    return TenantRead.model_validate(tenant)


@router.get(
    "/{slug}/data-source",
    response_model=ConnectionInfoRead,
    responses={
        404: {"description": "Tenant not found"},
        500: {"description": "Stored data source cannot be used"},
    },
)
async def get_data_source(
    slug: str, service: TenantServiceDep, _user: SuperUser
) -> ConnectionInfoRead:
    """Where the tenant's data lives. Passwords are masked."""
    info = await service.get_connection_info(slug)
    return ConnectionInfoRead.model_validate(info)


@router.post(
    "/{slug}/data-source/test",
    response_model=ConnectionTestRead,
    responses={404: {"description": "Tenant not found"}},
)
async def test_data_source(
    slug: str, service: TenantServiceDep, _user: SuperUser
) -> ConnectionTestRead:
    """Connect, query and run a tenant-filtered probe. Failures are reported in the body."""
    result = await service.test_connection(slug)
    return ConnectionTestRead.model_validate(result)
