"""Staff assignments check tenant membership and reject double bookings."""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from src.crm.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from src.crm.models.data import Event, EventStaffAssignment
from src.crm.schemas.events import StaffAssignmentCreate
from src.crm.services.event_service import EventService
from tests.helpers import RecordingSession

pytestmark = pytest.mark.unit

TENANT_ID = uuid4()
APP_TENANT_ID = uuid4()
USER_ID = uuid4()


class FakeMembershipRepo:
    def __init__(self, *members):
        self.members = set(members)
        self.checked: list[tuple] = []

    async def user_has_active_membership(self, user_id, tenant_id):
        self.checked.append((user_id, tenant_id))
        return user_id in self.members


class UniqueViolationSession(RecordingSession):
    """Commit fails as it would when a concurrent request booked the same slot."""

    async def commit(self) -> None:
        raise IntegrityError("INSERT INTO event_staff_assignments", {}, Exception("duplicate"))


def make_event() -> Event:
    return Event(tenant_id=TENANT_ID, name="Harbor Gala")


def make_service(event, assignments=(), members=(), session_cls=RecordingSession):
    session = session_cls(
        tables={
            Event: [event] if event else [],
            EventStaffAssignment: list(assignments),
        }
    )
    memberships = FakeMembershipRepo(*members)
    service = EventService(session, TENANT_ID, USER_ID, memberships, APP_TENANT_ID)
    return service, session, memberships


class TestAssignStaff:
    async def test_active_member_is_assigned(self):
        event = make_event()
        staff_id = uuid4()
        service, session, memberships = make_service(event, members=[staff_id])

        assignment = await service.assign_staff(
            event.id,
            StaffAssignmentCreate(user_id=staff_id, assignment_date=date(2026, 6, 1), role="Lead"),
        )

        assert assignment.event_id == event.id
        assert assignment.tenant_id == TENANT_ID
        assert assignment.status == "assigned"
        assert memberships.checked == [(staff_id, APP_TENANT_ID)]
        assert session.commits == 1

    async def test_non_member_rejected(self):
        event = make_event()
        service, session, _ = make_service(event)

        with pytest.raises(BusinessRuleError, match="not an active member") as exc_info:
            await service.assign_staff(event.id, StaffAssignmentCreate(user_id=uuid4()))

        assert exc_info.value.status_code == 400
        assert session.added == []

    async def test_same_user_and_date_conflicts(self):
        event = make_event()
        staff_id = uuid4()
        booked = EventStaffAssignment(
            tenant_id=TENANT_ID,
            event_id=event.id,
            user_id=staff_id,
            assignment_date=date(2026, 6, 1),
        )
        service, session, _ = make_service(event, assignments=[booked], members=[staff_id])

        with pytest.raises(ConflictError) as exc_info:
            await service.assign_staff(
                event.id, StaffAssignmentCreate(user_id=staff_id, assignment_date=date(2026, 6, 1))
            )

        assert exc_info.value.status_code == 409
        assert session.commits == 0

    async def test_concurrent_booking_becomes_conflict(self):
        event = make_event()
        staff_id = uuid4()
        service, session, _ = make_service(
            event, members=[staff_id], session_cls=UniqueViolationSession
        )

        with pytest.raises(ConflictError):
            await service.assign_staff(
                event.id, StaffAssignmentCreate(user_id=staff_id, assignment_date=date(2026, 6, 1))
            )

        assert session.rollbacks == 1

    async def test_unknown_event(self):
        service, _, memberships = make_service(None, members=[USER_ID])

        with pytest.raises(NotFoundError, match="Event not found"):
            await service.assign_staff(uuid4(), StaffAssignmentCreate(user_id=USER_ID))

        assert memberships.checked == []
