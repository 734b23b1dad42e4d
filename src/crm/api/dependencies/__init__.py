"""FastAPI dependency injection definitions - Lobby Pattern.

Re-exports all dependencies for convenience.
"""

# Auth
from src.crm.api.dependencies.auth import (
    AuthenticatedUser,
    SuperUser,
    TokenPayload,
    get_authenticated_user,
    get_token_payload,
    require_superuser,
)

# Database
from src.crm.api.dependencies.db import DataSources, DBSession, get_db_session

# Repositories
from src.crm.api.dependencies.repositories import (
    MembershipRepo,
    TenantRepo,
    UserRepo,
    get_membership_repository,
    get_tenant_repository,
    get_user_repository,
)

# Services
from src.crm.api.dependencies.services import (
    AuthServiceDep,
    TenantServiceDep,
    event_service_for,
    get_auth_service,
    get_tenant_service,
    invoice_service_for,
    opportunity_service_for,
    user_service_for,
)

# Tenant
from src.crm.api.dependencies.tenant import (
    Principal,
    TenantContext,
    TenantCtx,
    ValidatedTenant,
    get_tenant_context,
    get_validated_tenant,
    require_permission,
    require_role,
)

__all__ = [
    # Database
    "DBSession",
    "DataSources",
    "get_db_session",
    # Auth
    "AuthenticatedUser",
    "SuperUser",
    "TokenPayload",
    "get_authenticated_user",
    "get_token_payload",
    "require_superuser",
    # Tenant
    "Principal",
    "TenantContext",
    "TenantCtx",
    "ValidatedTenant",
    "get_tenant_context",
    "get_validated_tenant",
    "require_permission",
    "require_role",
    # Repositories
    "MembershipRepo",
    "TenantRepo",
    "UserRepo",
    "get_membership_repository",
    "get_tenant_repository",
    "get_user_repository",
    # Services
    "AuthServiceDep",
    "TenantServiceDep",
    "event_service_for",
    "get_auth_service",
    "get_tenant_service",
    "invoice_service_for",
    "opportunity_service_for",
    "user_service_for",
]
