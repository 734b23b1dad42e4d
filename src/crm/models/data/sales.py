"""Opportunities, their line items, quotes and contracts."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from src.crm.models.base import TenantScopedBase
from src.crm.models.data.common import LineItemFields, MailingAddressFields
from src.crm.models.enums import (
    ContractStatus,
    DateType,
    OpportunityStage,
    OpportunityStatus,
    QuoteStatus,
)


class Opportunity(TenantScopedBase, MailingAddressFields, table=True):
    __tablename__ = "opportunities"

    name: str = Field(max_length=255, index=True)
    account_id: UUID | None = Field(default=None, foreign_key="accounts.id", ondelete="SET NULL")
    contact_id: UUID | None = Field(default=None, foreign_key="contacts.id", ondelete="SET NULL")
    lead_id: UUID | None = Field(default=None, foreign_key="leads.id", ondelete="SET NULL")
    stage: str = Field(default=OpportunityStage.QUALIFICATION.value, max_length=100)
    status: str = Field(default=OpportunityStatus.OPEN.value, max_length=50)
    amount: Decimal | None = Field(default=None, max_digits=15, decimal_places=2)
    probability: int = Field(default=0, ge=0, le=100)
    close_date: date | None = Field(default=None)
    description: str | None = Field(default=None)
    owner_id: UUID | None = Field(default=None)
    lead_source: str | None = Field(default=None, max_length=100)
    type: str | None = Field(default=None, max_length=100)
    next_step: str | None = Field(default=None)
    date_type: str = Field(default=DateType.SINGLE_DAY.value, max_length=50)
    is_converted: bool = Field(default=False)
    converted_at: datetime | None = Field(default=None)
    converted_event_id: UUID | None = Field(default=None)


class OpportunityLineItem(TenantScopedBase, LineItemFields, table=True):
    __tablename__ = "opportunity_line_items"

    opportunity_id: UUID = Field(foreign_key="opportunities.id", ondelete="CASCADE", index=True)


class Quote(TenantScopedBase, table=True):
    __tablename__ = "quotes"
    __table_args__ = (UniqueConstraint("tenant_id", "quote_number"),)

    quote_number: str = Field(max_length=100)
    account_id: UUID | None = Field(default=None, foreign_key="accounts.id", ondelete="SET NULL")
    contact_id: UUID | None = Field(default=None, foreign_key="contacts.id", ondelete="SET NULL")
    opportunity_id: UUID | None = Field(
        default=None, foreign_key="opportunities.id", ondelete="SET NULL"
    )
    issue_date: date
    expiration_date: date | None = Field(default=None)
    subtotal: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    tax_rate: Decimal = Field(default=Decimal("0"), max_digits=5, decimal_places=4)
    tax_amount: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    total: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    status: str = Field(default=QuoteStatus.DRAFT.value, max_length=50)
    terms: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    owner_id: UUID | None = Field(default=None)


class Contract(TenantScopedBase, table=True):
    __tablename__ = "contracts"
    __table_args__ = (UniqueConstraint("tenant_id", "contract_number"),)

    contract_number: str = Field(max_length=100)
    title: str = Field(max_length=255)
    account_id: UUID | None = Field(default=None, foreign_key="accounts.id", ondelete="SET NULL")
    contact_id: UUID | None = Field(default=None, foreign_key="contacts.id", ondelete="SET NULL")
    opportunity_id: UUID | None = Field(
        default=None, foreign_key="opportunities.id", ondelete="SET NULL"
    )
    event_id: UUID | None = Field(default=None, foreign_key="events.id", ondelete="SET NULL")
    start_date: date | None = Field(default=None)
    end_date: date | None = Field(default=None)
    value: Decimal | None = Field(default=None, max_digits=15, decimal_places=2)
    status: str = Field(default=ContractStatus.DRAFT.value, max_length=50)
    terms: str | None = Field(default=None)
    owner_id: UUID | None = Field(default=None)
