"""Shared enums for models.

Models store these as plain strings; schemas validate against the enums.
"""

from enum import Enum


class TenantStatus(str, Enum):
    """Tenant provisioning status."""

    PROVISIONING = "provisioning"
    READY = "ready"
    FAILED = "failed"


class MembershipRole(str, Enum):
    """System roles a user can hold within a tenant."""

    ADMIN = "admin"
    TENANT_ADMIN = "tenant_admin"
    SALES_REP = "sales_rep"
    OPERATIONS_MANAGER = "operations_manager"
    USER = "user"
    STAFF = "staff"


class RecordStatus(str, Enum):
    """Status of accounts and contacts."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class AccountType(str, Enum):
    INDIVIDUAL = "individual"
    COMPANY = "company"


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    LOST = "lost"


class LeadType(str, Enum):
    PERSONAL = "personal"
    COMPANY = "company"


class OpportunityStage(str, Enum):
    PROSPECTING = "prospecting"
    QUALIFICATION = "qualification"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


class OpportunityStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class DateType(str, Enum):
    SINGLE_DAY = "single_day"
    MULTI_DAY = "multi_day"


class EventStatus(str, Enum):
    PLANNING = "planning"
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EventDateStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StaffAssignmentStatus(str, Enum):
    ASSIGNED = "assigned"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InvoiceStatus(str, Enum):
    """Invoice lifecycle plus the payment-derived statuses set on recalculation."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    PAID_IN_FULL = "paid_in_full"
    PARTIALLY_PAID = "partially_paid"
    NO_PAYMENTS_RECEIVED = "no_payments_received"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class ContractStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    SIGNED = "signed"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class InventoryStatus(str, Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class InventoryCondition(str, Enum):
    NEW = "new"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DAMAGED = "damaged"


class CommunicationType(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    CALL = "call"
    MEETING = "meeting"
    NOTE = "note"


class CommunicationDirection(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"
