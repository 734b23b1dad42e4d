"""Tenant model - registry in the application database."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.crm.core.security.validators import MAX_TENANT_SLUG_LENGTH
from src.crm.models.base import utc_now
from src.crm.models.enums import TenantStatus


class Tenant(SQLModel, table=True):
    """Tenant registry in public schema.

    The ``data_source_*`` columns point the tenant at the physical database
    that holds its business rows. Keys are stored encrypted. A tenant without
    ``data_source_url`` lives in the shared data source.
    """

    __tablename__ = "tenants"
    __table_args__ = {"schema": "public"}

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=100, index=True)
    slug: str = Field(max_length=MAX_TENANT_SLUG_LENGTH, unique=True, index=True)
    status: str = Field(default=TenantStatus.PROVISIONING.value)
    is_active: bool = Field(default=True)
    settings: dict[str, Any] = Field(default_factory=dict, sa_type=JSONB)

    data_source_url: str | None = Field(default=None, max_length=500)
    data_source_service_key: str | None = Field(default=None, max_length=1000)
    data_source_restricted_key: str | None = Field(default=None, max_length=1000)
    data_source_region: str | None = Field(default=None, max_length=50)
    connection_pool_config: dict[str, Any] | None = Field(default=None, sa_type=JSONB)
    tenant_id_in_data_source: UUID | None = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: datetime | None = Field(default=None)

    @property
    def status_enum(self) -> TenantStatus:
        """Get status as TenantStatus enum."""
        return TenantStatus(self.status)

    @property
    def is_deleted(self) -> bool:
        """Check if tenant is soft-deleted."""
        return self.deleted_at is not None

    @property
    def has_dedicated_data_source(self) -> bool:
        return self.data_source_url is not None
