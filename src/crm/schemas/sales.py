"""Schemas for opportunities, quotes and contracts."""

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from src.crm.models.enums import (
    ContractStatus,
    DateType,
    EventStatus,
    OpportunityStage,
    OpportunityStatus,
    QuoteStatus,
)
from src.crm.schemas.common import (
    EntityRead,
    EntityWrite,
    LineItemCreate,
    LineItemRead,
    MailingAddress,
    Money,
    PartialUpdate,
    TaxRate,
)


class OpportunityCreate(MailingAddress):
    name: str = Field(min_length=1, max_length=255)
    account_id: UUID | None = None
    contact_id: UUID | None = None
    lead_id: UUID | None = None
    stage: OpportunityStage | None = None
    status: OpportunityStatus | None = None
    amount: Money | None = None
    probability: int = Field(default=0, ge=0, le=100)
    close_date: date | None = None
    description: str | None = None
    owner_id: UUID | None = None
    lead_source: str | None = Field(default=None, max_length=100)
    type: str | None = Field(default=None, max_length=100)
    next_step: str | None = None
    date_type: DateType | None = None


class OpportunityUpdate(PartialUpdate, OpportunityCreate):
    non_nullable = frozenset({"name", "stage", "status", "probability", "date_type"})

    name: str | None = Field(default=None, min_length=1, max_length=255)  # type: ignore[assignment]
    probability: int | None = Field(default=None, ge=0, le=100)  # type: ignore[assignment]


class OpportunityRead(EntityRead):
    name: str
    account_id: UUID | None = None
    contact_id: UUID | None = None
    lead_id: UUID | None = None
    stage: str
    status: str
    amount: Decimal | None = None
    probability: int
    close_date: date | None = None
    description: str | None = None
    owner_id: UUID | None = None
    lead_source: str | None = None
    type: str | None = None
    next_step: str | None = None
    mailing_address_line1: str | None = None
    mailing_address_line2: str | None = None
    mailing_city: str | None = None
    mailing_state: str | None = None
    mailing_postal_code: str | None = None
    mailing_country: str | None = None
    date_type: str
    is_converted: bool
    converted_at: datetime | None = None
    converted_event_id: UUID | None = None


class OpportunityLineItemCreate(LineItemCreate):
    pass


class OpportunityLineItemRead(LineItemRead):
    opportunity_id: UUID


class ConvertToEventRequest(EntityWrite):
    """Optional overrides for the event created from an opportunity."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    event_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    status: EventStatus | None = None
    type: str | None = Field(default=None, max_length=100)
    description: str | None = None


class ConvertToEventResponse(BaseModel):
    event_id: UUID
    opportunity_id: UUID
    account_id: UUID | None = None
    contact_id: UUID | None = None
    invoice_id: UUID | None = None
    lead_converted: bool = False
    event_dates_moved: int = 0


class StageStats(BaseModel):
    stage: str
    count: int
    amount: Decimal


class OpportunityStats(BaseModel):
    total_count: int
    total_amount: Decimal
    open_pipeline_value: Decimal
    weighted_pipeline_value: Decimal
    by_stage: list[StageStats]


class QuoteCreate(EntityWrite):
    quote_number: str | None = Field(default=None, min_length=1, max_length=100)
    account_id: UUID | None = None
    contact_id: UUID | None = None
    opportunity_id: UUID | None = None
    issue_date: date | None = None
    expiration_date: date | None = None
    subtotal: Money = Decimal("0")
    tax_rate: TaxRate = Decimal("0")
    status: QuoteStatus | None = None
    terms: str | None = None
    notes: str | None = None
    owner_id: UUID | None = None


class QuoteUpdate(PartialUpdate, QuoteCreate):
    non_nullable = frozenset({"quote_number", "issue_date", "subtotal", "tax_rate", "status"})

    subtotal: Money | None = None  # type: ignore[assignment]
    tax_rate: TaxRate | None = None  # type: ignore[assignment]


class QuoteRead(EntityRead):
    quote_number: str
    account_id: UUID | None = None
    contact_id: UUID | None = None
    opportunity_id: UUID | None = None
    issue_date: date
    expiration_date: date | None = None
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    status: str
    terms: str | None = None
    notes: str | None = None
    owner_id: UUID | None = None


class ContractCreate(EntityWrite):
    contract_number: str | None = Field(default=None, min_length=1, max_length=100)
    title: str = Field(min_length=1, max_length=255)
    account_id: UUID | None = None
    contact_id: UUID | None = None
    opportunity_id: UUID | None = None
    event_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    value: Money | None = None
    status: ContractStatus | None = None
    terms: str | None = None
    owner_id: UUID | None = None


class ContractUpdate(PartialUpdate, ContractCreate):
    non_nullable = frozenset({"contract_number", "title", "status"})

    title: str | None = Field(default=None, min_length=1, max_length=255)  # type: ignore[assignment]


class ContractRead(EntityRead):
    contract_number: str
    title: str
    account_id: UUID | None = None
    contact_id: UUID | None = None
    opportunity_id: UUID | None = None
    event_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    value: Decimal | None = None
    status: str
    terms: str | None = None
    owner_id: UUID | None = None
