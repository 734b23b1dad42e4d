"""Repository layer - data access abstraction."""

from src.crm.repositories.base import BaseRepository
from src.crm.repositories.data import TenantScopedRepository, with_audit_fields
from src.crm.repositories.public import (
    MembershipRepository,
    TenantRepository,
    UserRepository,
)

__all__ = [
    # Base
    "BaseRepository",
    # Application database
    "MembershipRepository",
    "TenantRepository",
    "UserRepository",
    # Data sources
    "TenantScopedRepository",
    "with_audit_fields",
]
