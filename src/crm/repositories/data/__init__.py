"""Data source repositories."""

from src.crm.repositories.data.scoped import (
    PROTECTED_FIELDS,
    TenantScopedRepository,
    with_audit_fields,
)

__all__ = [
    "PROTECTED_FIELDS",
    "TenantScopedRepository",
    "with_audit_fields",
]
