"""Schemas for invoices, invoice line items and payments."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from src.crm.models.enums import InvoiceStatus, PaymentStatus
from src.crm.schemas.common import (
    EntityRead,
    EntityWrite,
    LineItemCreate,
    LineItemRead,
    Money,
    PartialUpdate,
    TaxRate,
)


class InvoiceCreate(EntityWrite):
    invoice_number: str | None = Field(default=None, min_length=1, max_length=100)
    account_id: UUID | None = None
    contact_id: UUID | None = None
    opportunity_id: UUID | None = None
    event_id: UUID | None = None
    issue_date: date | None = None
    due_date: date | None = None
    tax_rate: TaxRate = Decimal("0")
    status: InvoiceStatus | None = None
    terms: str | None = None
    notes: str | None = None
    owner_id: UUID | None = None


class InvoiceUpdate(PartialUpdate, InvoiceCreate):
    non_nullable = frozenset({"invoice_number", "issue_date", "tax_rate", "status"})

    tax_rate: TaxRate | None = None  # type: ignore[assignment]


class InvoiceRead(EntityRead):
    invoice_number: str
    account_id: UUID | None = None
    contact_id: UUID | None = None
    opportunity_id: UUID | None = None
    event_id: UUID | None = None
    issue_date: date
    due_date: date | None = None
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    status: str
    terms: str | None = None
    notes: str | None = None
    owner_id: UUID | None = None


class InvoiceLineItemCreate(LineItemCreate):
    pass


class InvoiceLineItemRead(LineItemRead):
    invoice_id: UUID


class PaymentCreate(EntityWrite):
    invoice_id: UUID | None = None
    account_id: UUID | None = None
    payment_date: date | None = None
    amount: Money = Field(gt=0)
    payment_method: str | None = Field(default=None, max_length=50)
    reference_number: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    status: PaymentStatus | None = None


class InvoicePaymentCreate(EntityWrite):
    """Payment recorded against a specific invoice (invoice id comes from the path)."""

    payment_date: date | None = None
    amount: Money = Field(gt=0)
    payment_method: str | None = Field(default=None, max_length=50)
    reference_number: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    status: PaymentStatus | None = None


class PaymentUpdate(PartialUpdate, PaymentCreate):
    non_nullable = frozenset({"payment_date", "amount", "status"})

    amount: Money | None = Field(default=None, gt=0)  # type: ignore[assignment]


class PaymentRead(EntityRead):
    invoice_id: UUID | None = None
    account_id: UUID | None = None
    payment_date: date
    amount: Decimal
    payment_method: str | None = None
    reference_number: str | None = None
    notes: str | None = None
    status: str
