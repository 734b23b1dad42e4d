"""Invoices, invoice line items and payments."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from src.crm.models.base import TenantScopedBase
from src.crm.models.data.common import LineItemFields
from src.crm.models.enums import InvoiceStatus, PaymentStatus


class Invoice(TenantScopedBase, table=True):
    __tablename__ = "invoices"
    __table_args__ = (UniqueConstraint("tenant_id", "invoice_number"),)

    invoice_number: str = Field(max_length=100)
    account_id: UUID | None = Field(default=None, foreign_key="accounts.id", ondelete="SET NULL")
    contact_id: UUID | None = Field(default=None, foreign_key="contacts.id", ondelete="SET NULL")
    opportunity_id: UUID | None = Field(
        default=None, foreign_key="opportunities.id", ondelete="SET NULL"
    )
    event_id: UUID | None = Field(default=None, foreign_key="events.id", ondelete="SET NULL")
    issue_date: date
    due_date: date | None = Field(default=None)
    subtotal: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    tax_rate: Decimal = Field(default=Decimal("0"), max_digits=5, decimal_places=4)
    tax_amount: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    total: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    amount_paid: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    balance_due: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    status: str = Field(default=InvoiceStatus.DRAFT.value, max_length=50)
    terms: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    owner_id: UUID | None = Field(default=None)


class InvoiceLineItem(TenantScopedBase, LineItemFields, table=True):
    __tablename__ = "invoice_line_items"

    invoice_id: UUID = Field(foreign_key="invoices.id", ondelete="CASCADE", index=True)


class Payment(TenantScopedBase, table=True):
    __tablename__ = "payments"

    invoice_id: UUID | None = Field(
        default=None, foreign_key="invoices.id", ondelete="SET NULL", index=True
    )
    account_id: UUID | None = Field(default=None, foreign_key="accounts.id", ondelete="SET NULL")
    payment_date: date
    amount: Decimal = Field(max_digits=15, decimal_places=2)
    payment_method: str | None = Field(default=None, max_length=50)
    reference_number: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None)
    status: str = Field(default=PaymentStatus.COMPLETED.value, max_length=50)
