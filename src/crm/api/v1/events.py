"""Event dates and staff assignments."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.crm.api.dependencies import (
    MembershipRepo,
    TenantContext,
    event_service_for,
    require_permission,
)
from src.crm.schemas.events import (
    EventDateCreate,
    EventDateRead,
    StaffAssignmentCreate,
    StaffAssignmentRead,
)

router = APIRouter(prefix="/events", tags=["events"])

CanView = Annotated[TenantContext, Depends(require_permission("events", "view"))]
CanEdit = Annotated[TenantContext, Depends(require_permission("events", "edit"))]


@router.get("/{event_id}/dates", response_model=list[EventDateRead])
async def list_dates(
    event_id: UUID, ctx: CanView, membership_repo: MembershipRepo
) -> list[EventDateRead]:
    dates = await event_service_for(ctx, membership_repo).list_dates(event_id)
    return [EventDateRead.model_validate(d) for d in dates]


@router.post(
    "/{event_id}/dates",
    response_model=EventDateRead,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Event not found"}},
)
async def add_date(
    event_id: UUID, data: EventDateCreate, ctx: CanEdit, membership_repo: MembershipRepo
) -> EventDateRead:
    event_date = await event_service_for(ctx, membership_repo).add_date(event_id, data)
    return EventDateRead.model_validate(event_date)


@router.delete(
    "/{event_id}/dates/{date_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Event or date not found"}},
)
async def delete_date(
    event_id: UUID, date_id: UUID, ctx: CanEdit, membership_repo: MembershipRepo
) -> None:
    await event_service_for(ctx, membership_repo).delete_date(event_id, date_id)


@router.get("/{event_id}/staff", response_model=list[StaffAssignmentRead])
async def list_staff(
    event_id: UUID, ctx: CanView, membership_repo: MembershipRepo
) -> list[StaffAssignmentRead]:
    assignments = await event_service_for(ctx, membership_repo).list_staff(event_id)
    return [StaffAssignmentRead.model_validate(a) for a in assignments]


@router.post(
    "/{event_id}/staff",
    response_model=StaffAssignmentRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "User is not an active member of the tenant"},
        404: {"description": "Event not found"},
        409: {"description": "User already assigned on that date"},
    },
)
async def assign_staff(
    event_id: UUID,
    data: StaffAssignmentCreate,
    ctx: CanEdit,
    membership_repo: MembershipRepo,
) -> StaffAssignmentRead:
    assignment = await event_service_for(ctx, membership_repo).assign_staff(event_id, data)
    return StaffAssignmentRead.model_validate(assignment)


@router.delete(
    "/{event_id}/staff/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Event or assignment not found"}},
)
async def remove_staff(
    event_id: UUID, assignment_id: UUID, ctx: CanEdit, membership_repo: MembershipRepo
) -> None:
    await event_service_for(ctx, membership_repo).remove_staff(event_id, assignment_id)
