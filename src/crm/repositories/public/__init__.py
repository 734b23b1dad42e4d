"""Application database repositories (tenants, users, memberships)."""

from src.crm.repositories.public.membership import MembershipRepository
from src.crm.repositories.public.tenant import TenantRepository
from src.crm.repositories.public.user import UserRepository

__all__ = [
    "MembershipRepository",
    "TenantRepository",
    "UserRepository",
]
