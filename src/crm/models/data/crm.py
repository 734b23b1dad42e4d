"""Accounts, contacts, leads and the communications log."""

from datetime import datetime
from uuid import UUID

from sqlmodel import Field

from src.crm.models.base import TenantScopedBase
from src.crm.models.data.common import MailingAddressFields
from src.crm.models.enums import AccountType, LeadStatus, LeadType, RecordStatus


class Account(TenantScopedBase, table=True):
    __tablename__ = "accounts"

    name: str = Field(max_length=255, index=True)
    account_type: str = Field(default=AccountType.COMPANY.value, max_length=50)
    industry: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    website: str | None = Field(default=None, max_length=255)
    billing_address_line1: str | None = Field(default=None, max_length=255)
    billing_address_line2: str | None = Field(default=None, max_length=255)
    billing_city: str | None = Field(default=None, max_length=100)
    billing_state: str | None = Field(default=None, max_length=50)
    billing_postal_code: str | None = Field(default=None, max_length=20)
    billing_country: str | None = Field(default="US", max_length=100)
    description: str | None = Field(default=None)
    owner_id: UUID | None = Field(default=None)
    status: str = Field(default=RecordStatus.ACTIVE.value, max_length=50)


class Contact(TenantScopedBase, MailingAddressFields, table=True):
    __tablename__ = "contacts"

    account_id: UUID | None = Field(default=None, foreign_key="accounts.id", ondelete="SET NULL")
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=255, index=True)
    phone: str | None = Field(default=None, max_length=50)
    mobile: str | None = Field(default=None, max_length=50)
    title: str | None = Field(default=None, max_length=100)
    department: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None)
    owner_id: UUID | None = Field(default=None)
    status: str = Field(default=RecordStatus.ACTIVE.value, max_length=50)


class Lead(TenantScopedBase, table=True):
    __tablename__ = "leads"

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=255)
    title: str | None = Field(default=None, max_length=100)
    lead_type: str = Field(default=LeadType.PERSONAL.value, max_length=50)
    status: str = Field(default=LeadStatus.NEW.value, max_length=50)
    source: str | None = Field(default=None, max_length=100)
    rating: str | None = Field(default=None, max_length=50)
    description: str | None = Field(default=None)
    owner_id: UUID | None = Field(default=None)
    is_converted: bool = Field(default=False)
    converted_at: datetime | None = Field(default=None)
    converted_account_id: UUID | None = Field(default=None, foreign_key="accounts.id")
    converted_contact_id: UUID | None = Field(default=None, foreign_key="contacts.id")


class Communication(TenantScopedBase, table=True):
    __tablename__ = "communications"

    type: str = Field(max_length=50)
    direction: str | None = Field(default=None, max_length=20)
    subject: str | None = Field(default=None, max_length=255)
    body: str | None = Field(default=None)
    from_address: str | None = Field(default=None, max_length=255)
    to_address: str | None = Field(default=None, max_length=255)
    status: str | None = Field(default=None, max_length=50)
    sent_at: datetime | None = Field(default=None)
    related_to_type: str | None = Field(default=None, max_length=50)
    related_to_id: UUID | None = Field(default=None, index=True)
