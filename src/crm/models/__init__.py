"""Model exports - Lobby Pattern.

Import from here: `from src.crm.models import User, Tenant, Account`
"""

# Enums
from src.crm.models.enums import MembershipRole, TenantStatus

# Application database models
from src.crm.models.public import Tenant, User, UserTenantMembership

# Data source models
from src.crm.models.data import (
    Account,
    Communication,
    Contact,
    Contract,
    Event,
    EventDate,
    EventStaffAssignment,
    InventoryItem,
    Invoice,
    InvoiceLineItem,
    Lead,
    Opportunity,
    OpportunityLineItem,
    Payment,
    Quote,
)

__all__ = [
    # Enums
    "MembershipRole",
    "TenantStatus",
    # Application database models
    "Tenant",
    "User",
    "UserTenantMembership",
    # Data source models
    "Account",
    "Communication",
    "Contact",
    "Contract",
    "Event",
    "EventDate",
    "EventStaffAssignment",
    "InventoryItem",
    "Invoice",
    "InvoiceLineItem",
    "Lead",
    "Opportunity",
    "OpportunityLineItem",
    "Payment",
    "Quote",
]
