"""Data source models.

These tables live in tenant data sources (possibly a different server than
the application database) and are created by data-branch migrations. Every
row carries ``tenant_id``.
"""

from src.crm.models.data.billing import Invoice, InvoiceLineItem, Payment
from src.crm.models.data.crm import Account, Communication, Contact, Lead
from src.crm.models.data.events import Event, EventDate, EventStaffAssignment, InventoryItem
from src.crm.models.data.sales import Contract, Opportunity, OpportunityLineItem, Quote

__all__ = [
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
