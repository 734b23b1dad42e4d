"""Schemas for events, event dates, staff assignments and inventory."""

from datetime import date, time
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from pydantic import BeforeValidator, Field

from src.crm.models.enums import (
    DateType,
    EventDateStatus,
    EventStatus,
    InventoryCondition,
    InventoryStatus,
    StaffAssignmentStatus,
)
from src.crm.schemas.common import EntityRead, EntityWrite, MailingAddress, Money, PartialUpdate


def _legacy_event_status(value: Any) -> Any:
    # Older clients send "upcoming" for scheduled events
    return EventStatus.SCHEDULED.value if value == "upcoming" else value


EventStatusInput = Annotated[EventStatus | None, BeforeValidator(_legacy_event_status)]


class EventCreate(MailingAddress):
    name: str = Field(min_length=1, max_length=255)
    account_id: UUID | None = None
    contact_id: UUID | None = None
    opportunity_id: UUID | None = None
    event_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    status: EventStatusInput = None
    type: str | None = Field(default=None, max_length=100)
    description: str | None = None
    owner_id: UUID | None = None
    date_type: DateType | None = None


class EventUpdate(PartialUpdate, EventCreate):
    non_nullable = frozenset({"name", "status", "date_type"})

    name: str | None = Field(default=None, min_length=1, max_length=255)  # type: ignore[assignment]


class EventRead(EntityRead):
    name: str
    account_id: UUID | None = None
    contact_id: UUID | None = None
    opportunity_id: UUID | None = None
    event_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    status: str
    type: str | None = None
    description: str | None = None
    owner_id: UUID | None = None
    mailing_address_line1: str | None = None
    mailing_address_line2: str | None = None
    mailing_city: str | None = None
    mailing_state: str | None = None
    mailing_postal_code: str | None = None
    mailing_country: str | None = None
    date_type: str
    converted_from_opportunity_id: UUID | None = None


class EventDateCreate(EntityWrite):
    event_date: date
    start_time: time | None = None
    end_time: time | None = None
    location: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    status: EventDateStatus | None = None


class EventDateRead(EntityRead):
    opportunity_id: UUID | None = None
    event_id: UUID | None = None
    event_date: date
    start_time: time | None = None
    end_time: time | None = None
    location: str | None = None
    notes: str | None = None
    status: str


class StaffAssignmentCreate(EntityWrite):
    user_id: UUID
    role: str | None = Field(default=None, max_length=100)
    assignment_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    hourly_rate: Money | None = None
    notes: str | None = None
    status: StaffAssignmentStatus | None = None


class StaffAssignmentRead(EntityRead):
    event_id: UUID
    user_id: UUID
    role: str | None = None
    assignment_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    hourly_rate: Decimal | None = None
    notes: str | None = None
    status: str


class InventoryItemCreate(EntityWrite):
    name: str = Field(min_length=1, max_length=255)
    serial_number: str | None = Field(default=None, max_length=255)
    category: str | None = Field(default=None, max_length=100)
    description: str | None = None
    purchase_date: date | None = None
    purchase_cost: Money | None = None
    current_value: Money | None = None
    condition: InventoryCondition | None = None
    location: str | None = Field(default=None, max_length=255)
    status: InventoryStatus | None = None
    notes: str | None = None


class InventoryItemUpdate(PartialUpdate, InventoryItemCreate):
    non_nullable = frozenset({"name", "condition", "status"})

    name: str | None = Field(default=None, min_length=1, max_length=255)  # type: ignore[assignment]


class InventoryItemRead(EntityRead):
    name: str
    serial_number: str | None = None
    category: str | None = None
    description: str | None = None
    purchase_date: date | None = None
    purchase_cost: Decimal | None = None
    current_value: Decimal | None = None
    condition: str
    location: str | None = None
    status: str
    notes: str | None = None
