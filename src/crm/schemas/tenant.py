from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.crm.core.security.validators import (
    MAX_TENANT_SLUG_LENGTH,
    validate_tenant_slug_format,
)
from src.crm.schemas.data_source import DataSourceUpdate


class TenantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(
        min_length=1,
        max_length=MAX_TENANT_SLUG_LENGTH,
        json_schema_extra={
            "examples": ["acme-corp", "my-company"],
            "description": "Lowercase alphanumeric with single hyphens.",
        },
    )
    settings: dict[str, Any] = Field(default_factory=dict)
    data_source: DataSourceUpdate | None = Field(
        default=None,
        description="Dedicated data source. Omit to keep the tenant in the shared one.",
    )

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        return validate_tenant_slug_format(v)


class TenantRead(BaseModel):
    id: UUID
    name: str
    slug: str
    status: str
    is_active: bool
    has_dedicated_data_source: bool
    data_source_region: str | None = None
    created_at: datetime
    deleted_at: datetime | None = None

    model_config = {"from_attributes": True}


class TenantProvisioningResponse(BaseModel):
    """Response when tenant provisioning is started."""

    tenant_id: UUID
    slug: str
    status: str = "provisioning"


class TenantStatusResponse(BaseModel):
    status: str  # "provisioning", "ready", "failed"
    tenant: TenantRead | None = None
