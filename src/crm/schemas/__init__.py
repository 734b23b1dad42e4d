from src.crm.schemas.auth import LoginRequest, LoginResponse
from src.crm.schemas.data_source import (
    CacheStatsRead,
    ConnectionInfoRead,
    DatabaseCredentialsInput,
    DataSourceUpdate,
)
from src.crm.schemas.pagination import PaginatedResponse
from src.crm.schemas.tenant import TenantCreate, TenantRead
from src.crm.schemas.user import MemberCreate, MemberRead, UserRead

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    # Data sources
    "CacheStatsRead",
    "ConnectionInfoRead",
    "DatabaseCredentialsInput",
    "DataSourceUpdate",
    # Pagination
    "PaginatedResponse",
    # Tenant
    "TenantCreate",
    "TenantRead",
    # User
    "MemberCreate",
    "MemberRead",
    "UserRead",
]
