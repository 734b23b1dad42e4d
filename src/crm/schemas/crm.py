"""Schemas for accounts, contacts, leads and communications."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from src.crm.models.enums import (
    AccountType,
    CommunicationDirection,
    CommunicationType,
    LeadStatus,
    LeadType,
    RecordStatus,
)
from src.crm.schemas.common import (
    EntityRead,
    EntityWrite,
    MailingAddress,
    PartialUpdate,
    Website,
)


class AccountCreate(EntityWrite):
    name: str = Field(min_length=1, max_length=255)
    account_type: AccountType | None = None
    industry: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    website: Website = None
    billing_address_line1: str | None = Field(default=None, max_length=255)
    billing_address_line2: str | None = Field(default=None, max_length=255)
    billing_city: str | None = Field(default=None, max_length=100)
    billing_state: str | None = Field(default=None, max_length=50)
    billing_postal_code: str | None = Field(default=None, max_length=20)
    billing_country: str | None = Field(default=None, max_length=100)
    description: str | None = None
    owner_id: UUID | None = None
    status: RecordStatus | None = None


class AccountUpdate(PartialUpdate, AccountCreate):
    non_nullable = frozenset({"name", "account_type", "status"})

    name: str | None = Field(default=None, min_length=1, max_length=255)  # type: ignore[assignment]


class AccountRead(EntityRead):
    name: str
    account_type: str
    industry: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    billing_address_line1: str | None = None
    billing_address_line2: str | None = None
    billing_city: str | None = None
    billing_state: str | None = None
    billing_postal_code: str | None = None
    billing_country: str | None = None
    description: str | None = None
    owner_id: UUID | None = None
    status: str


class ContactCreate(MailingAddress):
    account_id: UUID | None = None
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    mobile: str | None = Field(default=None, max_length=50)
    title: str | None = Field(default=None, max_length=100)
    department: str | None = Field(default=None, max_length=100)
    description: str | None = None
    owner_id: UUID | None = None
    status: RecordStatus | None = None


class ContactUpdate(PartialUpdate, ContactCreate):
    non_nullable = frozenset({"status"})


class ContactRead(EntityRead):
    account_id: UUID | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    mobile: str | None = None
    title: str | None = None
    department: str | None = None
    mailing_address_line1: str | None = None
    mailing_address_line2: str | None = None
    mailing_city: str | None = None
    mailing_state: str | None = None
    mailing_postal_code: str | None = None
    mailing_country: str | None = None
    description: str | None = None
    owner_id: UUID | None = None
    status: str


class LeadCreate(EntityWrite):
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50, pattern=r"^\+?[1-9]\d{0,15}$")
    company: str | None = Field(default=None, max_length=255)
    title: str | None = Field(default=None, max_length=100)
    lead_type: LeadType | None = None
    status: LeadStatus | None = None
    source: str | None = Field(default=None, max_length=100)
    rating: str | None = Field(default=None, max_length=50)
    description: str | None = None
    owner_id: UUID | None = None


class LeadUpdate(PartialUpdate, LeadCreate):
    non_nullable = frozenset({"lead_type", "status"})


class LeadRead(EntityRead):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    title: str | None = None
    lead_type: str
    status: str
    source: str | None = None
    rating: str | None = None
    description: str | None = None
    owner_id: UUID | None = None
    is_converted: bool
    converted_at: datetime | None = None
    converted_account_id: UUID | None = None
    converted_contact_id: UUID | None = None


class CommunicationCreate(EntityWrite):
    type: CommunicationType
    direction: CommunicationDirection | None = None
    subject: str | None = Field(default=None, max_length=255)
    body: str | None = None
    from_address: str | None = Field(default=None, max_length=255)
    to_address: str | None = Field(default=None, max_length=255)
    status: str | None = Field(default=None, max_length=50)
    sent_at: datetime | None = None
    related_to_type: str | None = Field(default=None, max_length=50)
    related_to_id: UUID | None = None


class CommunicationUpdate(PartialUpdate, CommunicationCreate):
    non_nullable = frozenset({"type"})

    type: CommunicationType | None = None  # type: ignore[assignment]


class CommunicationRead(EntityRead):
    type: str
    direction: str | None = None
    subject: str | None = None
    body: str | None = None
    from_address: str | None = None
    to_address: str | None = None
    status: str | None = None
    sent_at: datetime | None = None
    related_to_type: str | None = None
    related_to_id: UUID | None = None
