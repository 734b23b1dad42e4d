from src.crm.services.auth_service import AuthService
from src.crm.services.event_service import EventService
from src.crm.services.invoice_service import InvoiceService
from src.crm.services.opportunity_service import OpportunityService
from src.crm.services.tenant_service import TenantService, provision_tenant
from src.crm.services.user_service import UserService

__all__ = [
    "AuthService",
    "EventService",
    "InvoiceService",
    "OpportunityService",
    "TenantService",
    "UserService",
    "provision_tenant",
]
