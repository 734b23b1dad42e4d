"""Application database models - Lobby Pattern.

Tenants, users and memberships live in the application database.
Business data models go in models/data/ and live in tenant data sources.
"""

from src.crm.models.public.tenant import Tenant
from src.crm.models.public.user import User, UserTenantMembership

__all__ = [
    "Tenant",
    "User",
    "UserTenantMembership",
]
