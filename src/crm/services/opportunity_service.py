"""Opportunity line items, conversion to events, and pipeline statistics."""

from datetime import timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from src.crm.core.exceptions import ConflictError, NotFoundError
from src.crm.core.logging import get_logger
from src.crm.models.base import utc_now
from src.crm.models.data import (
    Account,
    Contact,
    Event,
    EventDate,
    Invoice,
    Lead,
    Opportunity,
    OpportunityLineItem,
    Quote,
)
from src.crm.models.data.common import MAILING_ADDRESS_COLUMNS
from src.crm.models.enums import (
    AccountType,
    DateType,
    EventDateStatus,
    EventStatus,
    InvoiceStatus,
    LeadStatus,
    OpportunityStage,
    OpportunityStatus,
    QuoteStatus,
    RecordStatus,
)
from src.crm.repositories.data import TenantScopedRepository
from src.crm.schemas.events import EventDateCreate
from src.crm.schemas.sales import (
    ConvertToEventRequest,
    ConvertToEventResponse,
    OpportunityLineItemCreate,
    OpportunityStats,
    StageStats,
)
from src.crm.services.calculations import (
    ZERO,
    document_totals,
    line_total,
    sum_line_totals,
    to_cents,
)
from src.crm.services.numbering import INVOICE_PREFIX, next_document_number

logger = get_logger(__name__)

INVOICE_DUE_DAYS = 30
_CLOSED_STAGES = (OpportunityStage.CLOSED_WON.value, OpportunityStage.CLOSED_LOST.value)


class OpportunityService:
    def __init__(self, session: AsyncSession, tenant_id: UUID, user_id: UUID | None):
        self.session = session
        self.user_id = user_id
        self.opportunities = TenantScopedRepository(session, tenant_id, Opportunity)
        self.line_items = TenantScopedRepository(session, tenant_id, OpportunityLineItem)
        self.leads = TenantScopedRepository(session, tenant_id, Lead)
        self.accounts = TenantScopedRepository(session, tenant_id, Account)
        self.contacts = TenantScopedRepository(session, tenant_id, Contact)
        self.events = TenantScopedRepository(session, tenant_id, Event)
        self.event_dates = TenantScopedRepository(session, tenant_id, EventDate)
        self.quotes = TenantScopedRepository(session, tenant_id, Quote)
        self.invoices = TenantScopedRepository(session, tenant_id, Invoice)

    async def get_opportunity(self, opportunity_id: UUID) -> Opportunity:
        opportunity = await self.opportunities.get(opportunity_id)
        if opportunity is None:
            raise NotFoundError("Opportunity not found")
        return opportunity

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    async def list_line_items(self, opportunity_id: UUID) -> list[OpportunityLineItem]:
        await self.get_opportunity(opportunity_id)
        return await self.line_items.list_all(opportunity_id=opportunity_id)

    async def _recalculate_amount(self, opportunity: Opportunity) -> None:
        items = await self.line_items.list_all(opportunity_id=opportunity.id)
        opportunity.amount = sum_line_totals(item.total for item in items)
        opportunity.updated_at = utc_now()
        opportunity.updated_by = self.user_id
        self.session.add(opportunity)

    async def add_line_item(
        self, opportunity_id: UUID, data: OpportunityLineItemCreate
    ) -> OpportunityLineItem:
        opportunity = await self.get_opportunity(opportunity_id)
        try:
            values = data.model_dump()
            values["total"] = line_total(
                data.quantity, data.unit_price, data.discount_percentage
            )
            values["opportunity_id"] = opportunity.id
            item = self.line_items.create(values, self.user_id)
            await self.session.flush()
            await self._recalculate_amount(opportunity)
            await self.session.commit()
            await self.session.refresh(item)
            return item
        except Exception:
            await self.session.rollback()
            raise

    async def delete_line_item(self, opportunity_id: UUID, item_id: UUID) -> None:
        opportunity = await self.get_opportunity(opportunity_id)
        item = await self.line_items.get(item_id)
        if item is None or item.opportunity_id != opportunity.id:
            raise NotFoundError("Line item not found")
        try:
            await self.session.delete(item)
            await self.session.flush()
            await self._recalculate_amount(opportunity)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    # ------------------------------------------------------------------
    # Tentative dates
    # ------------------------------------------------------------------

    async def list_dates(self, opportunity_id: UUID) -> list[EventDate]:
        await self.get_opportunity(opportunity_id)
        dates = await self.event_dates.list_all(opportunity_id=opportunity_id)
        return sorted(dates, key=lambda d: d.event_date)

    async def add_date(self, opportunity_id: UUID, data: EventDateCreate) -> EventDate:
        opportunity = await self.get_opportunity(opportunity_id)
        if opportunity.is_converted:
            raise ConflictError("Opportunity has already been converted to an event")
        try:
            values = data.model_dump(exclude_none=True)
            values["opportunity_id"] = opportunity.id
            event_date = self.event_dates.create(values, self.user_id)
            await self.session.commit()
            await self.session.refresh(event_date)
            return event_date
        except Exception:
            await self.session.rollback()
            raise

    async def delete_date(self, opportunity_id: UUID, date_id: UUID) -> None:
        opportunity = await self.get_opportunity(opportunity_id)
        event_date = await self.event_dates.get(date_id)
        if event_date is None or event_date.opportunity_id != opportunity.id:
            raise NotFoundError("Opportunity date not found")
        try:
            await self.session.delete(event_date)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    async def _convert_lead(self, opportunity: Opportunity) -> tuple[UUID, UUID | None]:
        """Turn the opportunity's lead into an account (and contact for companies)."""
        lead = await self.leads.get(opportunity.lead_id)  # type: ignore[arg-type]
        if lead is None:
            raise NotFoundError("Lead not found for conversion")

        has_company = bool(lead.company and lead.company.strip())
        person = " ".join(p for p in (lead.first_name, lead.last_name) if p).strip()

        account = self.accounts.create(
            {
                "name": lead.company.strip() if has_company else (person or "Unnamed lead"),  # type: ignore[union-attr]
                "account_type": (
                    AccountType.COMPANY.value if has_company else AccountType.INDIVIDUAL.value
                ),
                "email": lead.email,
                "phone": lead.phone,
                "status": RecordStatus.ACTIVE.value,
                "description": f"Converted from lead: {person}" if person else None,
                "owner_id": lead.owner_id,
            },
            self.user_id,
        )

        contact_id: UUID | None = None
        if has_company:
            contact = self.contacts.create(
                {
                    "account_id": account.id,
                    "first_name": lead.first_name,
                    "last_name": lead.last_name,
                    "email": lead.email,
                    "phone": lead.phone,
                    "title": lead.title,
                    "status": RecordStatus.ACTIVE.value,
                },
                self.user_id,
            )
            contact_id = contact.id

        lead.is_converted = True
        lead.converted_at = utc_now()
        lead.converted_account_id = account.id
        lead.converted_contact_id = contact_id
        lead.status = LeadStatus.CONVERTED.value
        lead.updated_by = self.user_id
        lead.updated_at = utc_now()
        self.session.add(lead)

        opportunity.account_id = account.id
        opportunity.contact_id = contact_id
        return account.id, contact_id

    async def _invoice_from_accepted_quote(
        self, opportunity: Opportunity, event: Event
    ) -> Invoice | None:
        result = await self.session.execute(
            self.quotes.query()
            .where(
                Quote.opportunity_id == opportunity.id,
                Quote.status == QuoteStatus.ACCEPTED.value,
            )
            .order_by(Quote.created_at.desc())  # type: ignore[attr-defined]
            .limit(1)
        )
        quote = result.scalar_one_or_none()
        if quote is None:
            return None

        issue_date = utc_now().date()
        totals = document_totals(quote.subtotal, quote.tax_rate)
        return self.invoices.create(
            {
                "invoice_number": await next_document_number(
                    self.invoices, "invoice_number", INVOICE_PREFIX
                ),
                "account_id": event.account_id,
                "contact_id": event.contact_id,
                "opportunity_id": opportunity.id,
                "event_id": event.id,
                "issue_date": issue_date,
                "due_date": (event.event_date or issue_date) + timedelta(days=INVOICE_DUE_DAYS),
                "subtotal": totals.subtotal,
                "tax_rate": quote.tax_rate,
                "tax_amount": totals.tax_amount,
                "total": totals.total,
                "balance_due": totals.total,
                "status": InvoiceStatus.DRAFT.value,
                "notes": quote.notes,
            },
            self.user_id,
        )

    async def convert_to_event(
        self, opportunity_id: UUID, overrides: ConvertToEventRequest
    ) -> ConvertToEventResponse:
        """Create an event from an opportunity and mark the opportunity won.

        Runs in one transaction: a failure at any step leaves nothing behind.
        """
        opportunity = await self.get_opportunity(opportunity_id)
        if opportunity.is_converted:
            raise ConflictError("Opportunity has already been converted to an event")

        try:
            lead_converted = False
            if opportunity.lead_id and not opportunity.account_id:
                await self._convert_lead(opportunity)
                lead_converted = True

            dates = await self.event_dates.list_all(opportunity_id=opportunity.id)
            dates.sort(key=lambda d: d.event_date)

            event_values = {
                "name": opportunity.name,
                "account_id": opportunity.account_id,
                "contact_id": opportunity.contact_id,
                "opportunity_id": opportunity.id,
                "converted_from_opportunity_id": opportunity.id,
                "description": opportunity.description,
                "owner_id": opportunity.owner_id,
                "status": EventStatus.SCHEDULED.value,
                "event_date": dates[0].event_date if dates else None,
                "start_time": dates[0].start_time if dates else None,
                "end_time": dates[0].end_time if dates else None,
                "date_type": (
                    DateType.MULTI_DAY.value if len(dates) > 1 else opportunity.date_type
                ),
                **{column: getattr(opportunity, column) for column in MAILING_ADDRESS_COLUMNS},
            }
            event_values.update(overrides.model_dump(exclude_none=True))
            event = self.events.create(event_values, self.user_id)

            for event_date in dates:
                event_date.opportunity_id = None
                event_date.event_id = event.id
                event_date.status = EventDateStatus.SCHEDULED.value
                event_date.updated_by = self.user_id
                event_date.updated_at = utc_now()
                self.session.add(event_date)

            opportunity.is_converted = True
            opportunity.converted_at = utc_now()
            opportunity.converted_event_id = event.id
            opportunity.stage = OpportunityStage.CLOSED_WON.value
            opportunity.status = OpportunityStatus.CLOSED.value
            opportunity.updated_by = self.user_id
            opportunity.updated_at = utc_now()
            self.session.add(opportunity)

            await self.session.flush()
            invoice = await self._invoice_from_accepted_quote(opportunity, event)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Opportunity converted to event",
            opportunity_id=str(opportunity.id),
            event_id=str(event.id),
            lead_converted=lead_converted,
            event_dates=len(dates),
            invoice_created=invoice is not None,
        )

        return ConvertToEventResponse(
            event_id=event.id,
            opportunity_id=opportunity.id,
            account_id=opportunity.account_id,
            contact_id=opportunity.contact_id,
            invoice_id=invoice.id if invoice is not None else None,
            lead_converted=lead_converted,
            event_dates_moved=len(dates),
        )

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    async def stats(self) -> OpportunityStats:
        amount = func.coalesce(func.sum(Opportunity.amount), 0)
        per_stage = await self.session.execute(
            self.opportunities.scope(
                select(Opportunity.stage, func.count(), amount).group_by(Opportunity.stage)
            )
        )
        by_stage = [
            StageStats(stage=stage, count=count, amount=to_cents(Decimal(total)))
            for stage, count, total in per_stage.all()
        ]

        open_rows = await self.session.execute(
            self.opportunities.scope(
                select(Opportunity.amount, Opportunity.probability).where(
                    Opportunity.status == OpportunityStatus.OPEN.value,
                    Opportunity.stage.not_in(_CLOSED_STAGES),  # type: ignore[attr-defined]
                )
            )
        )
        open_value = ZERO
        weighted = ZERO
        for value, probability in open_rows.all():
            value = value or ZERO
            open_value += value
            weighted += value * Decimal(probability or 0) / Decimal(100)

        return OpportunityStats(
            total_count=sum(s.count for s in by_stage),
            total_amount=to_cents(sum((s.amount for s in by_stage), ZERO)),
            open_pipeline_value=to_cents(open_value),
            weighted_pipeline_value=to_cents(weighted),
            by_stage=sorted(by_stage, key=lambda s: s.stage),
        )
