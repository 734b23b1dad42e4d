"""Events, their dates and staffing, and the equipment inventory."""

from datetime import date, time
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field

from src.crm.models.base import TenantScopedBase
from src.crm.models.data.common import MailingAddressFields
from src.crm.models.enums import (
    DateType,
    EventDateStatus,
    EventStatus,
    InventoryCondition,
    InventoryStatus,
    StaffAssignmentStatus,
)


class Event(TenantScopedBase, MailingAddressFields, table=True):
    __tablename__ = "events"

    name: str = Field(max_length=255, index=True)
    account_id: UUID | None = Field(default=None, foreign_key="accounts.id", ondelete="SET NULL")
    contact_id: UUID | None = Field(default=None, foreign_key="contacts.id", ondelete="SET NULL")
    opportunity_id: UUID | None = Field(
        default=None, foreign_key="opportunities.id", ondelete="SET NULL"
    )
    event_date: date | None = Field(default=None)
    start_time: time | None = Field(default=None)
    end_time: time | None = Field(default=None)
    status: str = Field(default=EventStatus.PLANNING.value, max_length=50)
    type: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None)
    owner_id: UUID | None = Field(default=None)
    date_type: str = Field(default=DateType.SINGLE_DAY.value, max_length=50)
    converted_from_opportunity_id: UUID | None = Field(default=None)


class EventDate(TenantScopedBase, table=True):
    """A scheduled day belonging to exactly one opportunity or one event."""

    __tablename__ = "event_dates"
    __table_args__ = (
        CheckConstraint(
            "(opportunity_id IS NOT NULL AND event_id IS NULL) OR "
            "(opportunity_id IS NULL AND event_id IS NOT NULL)",
            name="ck_event_dates_single_owner",
        ),
    )

    opportunity_id: UUID | None = Field(
        default=None, foreign_key="opportunities.id", ondelete="CASCADE", index=True
    )
    event_id: UUID | None = Field(
        default=None, foreign_key="events.id", ondelete="CASCADE", index=True
    )
    event_date: date
    start_time: time | None = Field(default=None)
    end_time: time | None = Field(default=None)
    location: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None)
    status: str = Field(default=EventDateStatus.SCHEDULED.value, max_length=50)


class EventStaffAssignment(TenantScopedBase, table=True):
    __tablename__ = "event_staff_assignments"
    __table_args__ = (UniqueConstraint("event_id", "user_id", "assignment_date"),)

    event_id: UUID = Field(foreign_key="events.id", ondelete="CASCADE", index=True)
    # References public.users in the application database, which may be another server
    user_id: UUID = Field(index=True)
    role: str | None = Field(default=None, max_length=100)
    assignment_date: date | None = Field(default=None)
    start_time: time | None = Field(default=None)
    end_time: time | None = Field(default=None)
    hourly_rate: Decimal | None = Field(default=None, max_digits=10, decimal_places=2)
    notes: str | None = Field(default=None)
    status: str = Field(default=StaffAssignmentStatus.ASSIGNED.value, max_length=50)


class InventoryItem(TenantScopedBase, table=True):
    __tablename__ = "inventory_items"

    name: str = Field(max_length=255, index=True)
    serial_number: str | None = Field(default=None, max_length=255)
    category: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None)
    purchase_date: date | None = Field(default=None)
    purchase_cost: Decimal | None = Field(default=None, max_digits=15, decimal_places=2)
    current_value: Decimal | None = Field(default=None, max_digits=15, decimal_places=2)
    condition: str = Field(default=InventoryCondition.GOOD.value, max_length=50)
    location: str | None = Field(default=None, max_length=255)
    status: str = Field(default=InventoryStatus.AVAILABLE.value, max_length=50)
    notes: str | None = Field(default=None)
