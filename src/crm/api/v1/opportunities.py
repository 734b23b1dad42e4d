"""Opportunity line items, conversion to events and pipeline statistics."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.crm.api.dependencies import TenantContext, opportunity_service_for, require_permission
from src.crm.schemas.events import EventDateCreate, EventDateRead
from src.crm.schemas.sales import (
    ConvertToEventRequest,
    ConvertToEventResponse,
    OpportunityLineItemCreate,
    OpportunityLineItemRead,
    OpportunityStats,
)

router = APIRouter(prefix="/opportunities", tags=["opportunities"])

CanView = Annotated[TenantContext, Depends(require_permission("opportunities", "view"))]
CanEdit = Annotated[TenantContext, Depends(require_permission("opportunities", "edit"))]
CanCreateEvents = Annotated[TenantContext, Depends(require_permission("events", "create"))]


@router.get("/stats", response_model=OpportunityStats)
async def get_stats(ctx: CanView) -> OpportunityStats:
    """Count and amount per stage, open pipeline value and weighted value."""
    return await opportunity_service_for(ctx).stats()


@router.get("/{opportunity_id}/line-items", response_model=list[OpportunityLineItemRead])
async def list_line_items(opportunity_id: UUID, ctx: CanView) -> list[OpportunityLineItemRead]:
    items = await opportunity_service_for(ctx).list_line_items(opportunity_id)
    return [OpportunityLineItemRead.model_validate(item) for item in items]


@router.post(
    "/{opportunity_id}/line-items",
    response_model=OpportunityLineItemRead,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Opportunity not found"}},
)
async def add_line_item(
    opportunity_id: UUID, data: OpportunityLineItemCreate, ctx: CanEdit
) -> OpportunityLineItemRead:
    """Add a line item; the opportunity amount becomes the sum of its line totals."""
    item = await opportunity_service_for(ctx).add_line_item(opportunity_id, data)
    return OpportunityLineItemRead.model_validate(item)


@router.delete(
    "/{opportunity_id}/line-items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Opportunity or line item not found"}},
)
async def delete_line_item(opportunity_id: UUID, item_id: UUID, ctx: CanEdit) -> None:
    await opportunity_service_for(ctx).delete_line_item(opportunity_id, item_id)


@router.get("/{opportunity_id}/dates", response_model=list[EventDateRead])
async def list_dates(opportunity_id: UUID, ctx: CanView) -> list[EventDateRead]:
    dates = await opportunity_service_for(ctx).list_dates(opportunity_id)
    return [EventDateRead.model_validate(d) for d in dates]


@router.post(
    "/{opportunity_id}/dates",
    response_model=EventDateRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Opportunity not found"},
        409: {"description": "Opportunity already converted"},
    },
)
async def add_date(opportunity_id: UUID, data: EventDateCreate, ctx: CanEdit) -> EventDateRead:
    """Add a tentative date. Conversion moves it to the new event."""
    event_date = await opportunity_service_for(ctx).add_date(opportunity_id, data)
    return EventDateRead.model_validate(event_date)


@router.delete(
    "/{opportunity_id}/dates/{date_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Opportunity or date not found"}},
)
async def delete_date(opportunity_id: UUID, date_id: UUID, ctx: CanEdit) -> None:
    await opportunity_service_for(ctx).delete_date(opportunity_id, date_id)


@router.post(
    "/{opportunity_id}/convert-to-event",
    response_model=ConvertToEventResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Opportunity not found"},
        409: {"description": "Opportunity already converted"},
    },
)
async def convert_to_event(
    opportunity_id: UUID,
    ctx: CanCreateEvents,
    overrides: ConvertToEventRequest | None = None,
) -> ConvertToEventResponse:
    """Turn a won opportunity into an event.

    Converts the lead first when the opportunity has no account, moves the
    opportunity's dates to the event and drafts an invoice from an accepted
    quote, all in one transaction.
    """
    return await opportunity_service_for(ctx).convert_to_event(
        opportunity_id, overrides or ConvertToEventRequest()
    )
