"""Tenant data source routing."""

from src.crm.datasources.manager import (
    DataSourceManager,
    close_data_source_manager,
    engine_url,
    get_data_source_manager,
)
from src.crm.datasources.types import (
    CacheStats,
    ConnectionInfo,
    ConnectionTestResult,
    DatabaseCredentials,
    PoolConfig,
    TenantConnectionConfig,
)

__all__ = [
    "CacheStats",
    "ConnectionInfo",
    "ConnectionTestResult",
    "DataSourceManager",
    "DatabaseCredentials",
    "PoolConfig",
    "TenantConnectionConfig",
    "close_data_source_manager",
    "engine_url",
    "get_data_source_manager",
]
