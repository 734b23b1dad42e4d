"""Event dates and staff assignments."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from src.crm.core.logging import get_logger
from src.crm.models.data import Event, EventDate, EventStaffAssignment
from src.crm.repositories.data import TenantScopedRepository
from src.crm.repositories.public import MembershipRepository
from src.crm.schemas.events import EventDateCreate, StaffAssignmentCreate

logger = get_logger(__name__)


class EventService:
    """Event sub-resources.

    Staff assignments reference users in the application database, which may
    live on another server, so membership is checked through
    ``membership_repo`` rather than a foreign key.
    """

    def __init__(
        self,
        session: AsyncSession,
        tenant_id: UUID,
        user_id: UUID | None,
        membership_repo: MembershipRepository,
        app_tenant_id: UUID,
    ):
        self.session = session
        self.user_id = user_id
        self.membership_repo = membership_repo
        self.app_tenant_id = app_tenant_id
        self.events = TenantScopedRepository(session, tenant_id, Event)
        self.dates = TenantScopedRepository(session, tenant_id, EventDate)
        self.staff = TenantScopedRepository(session, tenant_id, EventStaffAssignment)

    async def get_event(self, event_id: UUID) -> Event:
        event = await self.events.get(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        return event

    # Dates

    async def list_dates(self, event_id: UUID) -> list[EventDate]:
        await self.get_event(event_id)
        dates = await self.dates.list_all(event_id=event_id)
        return sorted(dates, key=lambda d: d.event_date)

    async def add_date(self, event_id: UUID, data: EventDateCreate) -> EventDate:
        event = await self.get_event(event_id)
        try:
            values = data.model_dump(exclude_none=True)
            values["event_id"] = event.id
            event_date = self.dates.create(values, self.user_id)
            await self.session.commit()
            await self.session.refresh(event_date)
            return event_date
        except Exception:
            await self.session.rollback()
            raise

    async def delete_date(self, event_id: UUID, date_id: UUID) -> None:
        event = await self.get_event(event_id)
        event_date = await self.dates.get(date_id)
        if event_date is None or event_date.event_id != event.id:
            raise NotFoundError("Event date not found")
        try:
            await self.session.delete(event_date)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    # Staff

    async def list_staff(self, event_id: UUID) -> list[EventStaffAssignment]:
        await self.get_event(event_id)
        return await self.staff.list_all(event_id=event_id)

    async def assign_staff(
        self, event_id: UUID, data: StaffAssignmentCreate
    ) -> EventStaffAssignment:
        event = await self.get_event(event_id)

        if not await self.membership_repo.user_has_active_membership(
            data.user_id, self.app_tenant_id
        ):
            raise BusinessRuleError("User is not an active member of this tenant")

        existing = await self.staff.list_all(
            event_id=event.id, user_id=data.user_id, assignment_date=data.assignment_date
        )
        if existing:
            raise ConflictError("User is already assigned to this event on that date")

        try:
            values = data.model_dump(exclude_none=True)
            values["event_id"] = event.id
            assignment = self.staff.create(values, self.user_id)
            await self.session.commit()
            await self.session.refresh(assignment)
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("User is already assigned to this event on that date") from e
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Staff assigned to event",
            event_id=str(event.id),
            user_id=str(data.user_id),
        )
        return assignment

    async def remove_staff(self, event_id: UUID, assignment_id: UUID) -> None:
        event = await self.get_event(event_id)
        assignment = await self.staff.get(assignment_id)
        if assignment is None or assignment.event_id != event.id:
            raise NotFoundError("Staff assignment not found")
        try:
            await self.session.delete(assignment)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
