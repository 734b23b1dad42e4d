"""Schemas for administering tenant data sources."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, SecretStr, field_validator


class DatabaseCredentialsInput(BaseModel):
    username: str = Field(min_length=1, max_length=255)
    password: SecretStr

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if ":" in v:
            raise ValueError("Username must not contain ':'")
        return v


class DataSourceUpdate(BaseModel):
    """Point a tenant at a dedicated data source.

    The URL should not embed a password; credentials are stored encrypted.
    """

    url: str = Field(
        min_length=1,
        max_length=500,
        json_schema_extra={"examples": ["postgresql+asyncpg://db-eu-1.internal:5432/crm"]},
    )
    service_credentials: DatabaseCredentialsInput
    restricted_credentials: DatabaseCredentialsInput | None = None
    region: str | None = Field(default=None, max_length=50)
    pool_config: dict[str, Any] | None = None
    tenant_id_in_data_source: UUID | None = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("postgresql://", "postgresql+asyncpg://")):
            raise ValueError("Data source URL must be a postgresql:// or postgresql+asyncpg:// URL")
        return v


class ConnectionInfoRead(BaseModel):
    tenant_id: UUID
    url: str
    region: str | None = None
    pool_config: dict[str, Any]
    tenant_id_in_data_source: UUID
    is_shared: bool
    is_cached: bool
    cache_expiry: datetime | None = None

    model_config = {"from_attributes": True}


class ConnectionDiagnosticsRead(BaseModel):
    can_connect: bool
    can_query: bool
    tenant_filter_ok: bool

    model_config = {"from_attributes": True}


class ConnectionTestRead(BaseModel):
    success: bool
    response_time_ms: float
    error: str | None = None
    diagnostics: ConnectionDiagnosticsRead

    model_config = {"from_attributes": True}


class CacheStatsRead(BaseModel):
    config_cache_size: int
    client_cache_size: int
    engine_count: int

    model_config = {"from_attributes": True}


class DataSourceMigrationFailure(BaseModel):
    tenant_slug: str
    error: str


class DataSourceMigrationRead(BaseModel):
    """Outcome of bringing every data source to the latest revision.

    ``migrated`` counts distinct databases, so tenants sharing one are
    migrated once.
    """

    migrated: int
    failed: list[DataSourceMigrationFailure] = Field(default_factory=list)
