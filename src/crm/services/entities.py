"""Registry of the tenant entities served by the generic CRUD routes.

Each entry names the model, its schemas, how it is searched and filtered,
which permission module guards it, and the defaults and hooks applied on
writes. Hooks run inside the request's transaction; the route commits.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm.models.base import TenantScopedBase, utc_now
from src.crm.models.data import (
    Account,
    Communication,
    Contact,
    Contract,
    Event,
    InventoryItem,
    Invoice,
    Lead,
    Opportunity,
    Payment,
    Quote,
)
from src.crm.models.enums import (
    AccountType,
    ContractStatus,
    EventStatus,
    InventoryCondition,
    InventoryStatus,
    InvoiceStatus,
    LeadStatus,
    OpportunityStage,
    OpportunityStatus,
    PaymentStatus,
    QuoteStatus,
    RecordStatus,
)
from src.crm.repositories.data import TenantScopedRepository
from src.crm.schemas import billing, crm, events, sales
from src.crm.services.calculations import ZERO, document_totals
from src.crm.services.invoice_service import InvoiceService
from src.crm.services.numbering import (
    CONTRACT_PREFIX,
    INVOICE_PREFIX,
    QUOTE_PREFIX,
    next_document_number,
)


@dataclass(frozen=True)
class WriteScope:
    session: AsyncSession
    tenant_id: UUID  # data source tenant id
    user_id: UUID | None

    def repository(self, model: type[TenantScopedBase]) -> TenantScopedRepository[Any]:
        return TenantScopedRepository(self.session, self.tenant_id, model)


PrepareCreate = Callable[[WriteScope, dict[str, Any]], Awaitable[None]]
PrepareUpdate = Callable[[WriteScope, Any, dict[str, Any]], Awaitable[None]]
# (scope, row after the write or None when deleted, column values before the write or None)
AfterChange = Callable[[WriteScope, Any | None, Mapping[str, Any] | None], Awaitable[None]]


@dataclass(frozen=True)
class EntityConfig:
    name: str
    model: type[TenantScopedBase]
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    read_schema: type[BaseModel]
    permission_module: str
    search_fields: tuple[str, ...] = ()
    # query parameter -> column
    filter_fields: Mapping[str, str] = field(default_factory=dict)
    defaults: Mapping[str, Any] = field(default_factory=dict)
    prepare_create: PrepareCreate | None = None
    prepare_update: PrepareUpdate | None = None
    after_change: AfterChange | None = None

    @property
    def label(self) -> str:
        return self.model.__name__


async def _prepare_quote(scope: WriteScope, values: dict[str, Any]) -> None:
    if not values.get("quote_number"):
        values["quote_number"] = await next_document_number(
            scope.repository(Quote), "quote_number", QUOTE_PREFIX
        )
    values.setdefault("issue_date", utc_now().date())
    totals = document_totals(values.get("subtotal", ZERO), values.get("tax_rate", ZERO))
    values.update(subtotal=totals.subtotal, tax_amount=totals.tax_amount, total=totals.total)


async def _update_quote_totals(scope: WriteScope, quote: Quote, values: dict[str, Any]) -> None:
    if "subtotal" in values or "tax_rate" in values:
        totals = document_totals(
            values.get("subtotal", quote.subtotal), values.get("tax_rate", quote.tax_rate)
        )
        values.update(subtotal=totals.subtotal, tax_amount=totals.tax_amount, total=totals.total)


async def _prepare_contract(scope: WriteScope, values: dict[str, Any]) -> None:
    if not values.get("contract_number"):
        values["contract_number"] = await next_document_number(
            scope.repository(Contract), "contract_number", CONTRACT_PREFIX
        )


async def _prepare_invoice(scope: WriteScope, values: dict[str, Any]) -> None:
    if not values.get("invoice_number"):
        values["invoice_number"] = await next_document_number(
            scope.repository(Invoice), "invoice_number", INVOICE_PREFIX
        )
    values.setdefault("issue_date", utc_now().date())


def _invoices(scope: WriteScope) -> InvoiceService:
    return InvoiceService(scope.session, scope.tenant_id, scope.user_id)


async def _recalculate_invoice(
    scope: WriteScope, invoice: Invoice | None, previous: Mapping[str, Any] | None
) -> None:
    if invoice is not None:
        await _invoices(scope).recalculate(invoice.id)


async def _prepare_payment(scope: WriteScope, values: dict[str, Any]) -> None:
    values.setdefault("payment_date", utc_now().date())
    if values.get("invoice_id") is not None:
        invoice = await _invoices(scope).check_payment(values["invoice_id"], values["amount"])
        values.setdefault("account_id", invoice.account_id)


async def _check_payment_update(
    scope: WriteScope, payment: Payment, values: dict[str, Any]
) -> None:
    """Only the part of a completed payment its invoice did not count yet needs room."""
    invoice_id = values.get("invoice_id", payment.invoice_id)
    if invoice_id is None or values.get("status", payment.status) != PaymentStatus.COMPLETED:
        return
    counted = (
        payment.amount
        if payment.invoice_id == invoice_id and payment.status == PaymentStatus.COMPLETED
        else ZERO
    )
    increase = values.get("amount", payment.amount) - counted
    if increase > ZERO:
        await _invoices(scope).check_payment(invoice_id, increase)


async def _recalculate_paid_invoices(
    scope: WriteScope, payment: Payment | None, previous: Mapping[str, Any] | None
) -> None:
    """Refresh the invoice a payment belongs to, and the one it left."""
    invoice_ids = {
        payment.invoice_id if payment is not None else None,
        previous.get("invoice_id") if previous is not None else None,
    }
    service = _invoices(scope)
    for invoice_id in invoice_ids - {None}:
        await service.recalculate(invoice_id)  # type: ignore[arg-type]


ENTITIES: tuple[EntityConfig, ...] = (
    EntityConfig(
        name="accounts",
        model=Account,
        create_schema=crm.AccountCreate,
        update_schema=crm.AccountUpdate,
        read_schema=crm.AccountRead,
        permission_module="accounts",
        search_fields=("name", "email", "industry"),
        filter_fields={"status": "status", "type": "account_type"},
        defaults={"account_type": AccountType.COMPANY.value, "status": RecordStatus.ACTIVE.value},
    ),
    EntityConfig(
        name="contacts",
        model=Contact,
        create_schema=crm.ContactCreate,
        update_schema=crm.ContactUpdate,
        read_schema=crm.ContactRead,
        permission_module="contacts",
        search_fields=("first_name", "last_name", "email"),
        filter_fields={"status": "status", "account_id": "account_id"},
        defaults={"status": RecordStatus.ACTIVE.value},
    ),
    EntityConfig(
        name="leads",
        model=Lead,
        create_schema=crm.LeadCreate,
        update_schema=crm.LeadUpdate,
        read_schema=crm.LeadRead,
        permission_module="leads",
        search_fields=("first_name", "last_name", "email", "company"),
        filter_fields={"status": "status", "type": "lead_type"},
        defaults={"status": LeadStatus.NEW.value},
    ),
    EntityConfig(
        name="opportunities",
        model=Opportunity,
        create_schema=sales.OpportunityCreate,
        update_schema=sales.OpportunityUpdate,
        read_schema=sales.OpportunityRead,
        permission_module="opportunities",
        search_fields=("name",),
        filter_fields={"status": "status", "type": "type", "stage": "stage"},
        defaults={
            "stage": OpportunityStage.QUALIFICATION.value,
            "status": OpportunityStatus.OPEN.value,
        },
    ),
    EntityConfig(
        name="events",
        model=Event,
        create_schema=events.EventCreate,
        update_schema=events.EventUpdate,
        read_schema=events.EventRead,
        permission_module="events",
        search_fields=("name",),
        filter_fields={"status": "status", "type": "type", "account_id": "account_id"},
        defaults={"status": EventStatus.PLANNING.value},
    ),
    EntityConfig(
        name="invoices",
        model=Invoice,
        create_schema=billing.InvoiceCreate,
        update_schema=billing.InvoiceUpdate,
        read_schema=billing.InvoiceRead,
        permission_module="invoices",
        search_fields=("invoice_number",),
        filter_fields={"status": "status", "account_id": "account_id", "event_id": "event_id"},
        defaults={"status": InvoiceStatus.DRAFT.value},
        prepare_create=_prepare_invoice,
        after_change=_recalculate_invoice,
    ),
    EntityConfig(
        name="payments",
        model=Payment,
        create_schema=billing.PaymentCreate,
        update_schema=billing.PaymentUpdate,
        read_schema=billing.PaymentRead,
        permission_module="invoices",
        search_fields=("reference_number",),
        filter_fields={"status": "status", "invoice_id": "invoice_id"},
        defaults={"status": PaymentStatus.COMPLETED.value},
        prepare_create=_prepare_payment,
        prepare_update=_check_payment_update,
        after_change=_recalculate_paid_invoices,
    ),
    EntityConfig(
        name="quotes",
        model=Quote,
        create_schema=sales.QuoteCreate,
        update_schema=sales.QuoteUpdate,
        read_schema=sales.QuoteRead,
        permission_module="opportunities",
        search_fields=("quote_number",),
        filter_fields={"status": "status", "opportunity_id": "opportunity_id"},
        defaults={"status": QuoteStatus.DRAFT.value},
        prepare_create=_prepare_quote,
        prepare_update=_update_quote_totals,
    ),
    EntityConfig(
        name="contracts",
        model=Contract,
        create_schema=sales.ContractCreate,
        update_schema=sales.ContractUpdate,
        read_schema=sales.ContractRead,
        permission_module="contracts",
        search_fields=("contract_number", "title"),
        filter_fields={"status": "status", "account_id": "account_id"},
        defaults={"status": ContractStatus.DRAFT.value},
        prepare_create=_prepare_contract,
    ),
    EntityConfig(
        name="inventory-items",
        model=InventoryItem,
        create_schema=events.InventoryItemCreate,
        update_schema=events.InventoryItemUpdate,
        read_schema=events.InventoryItemRead,
        permission_module="events",
        search_fields=("name", "serial_number", "category"),
        filter_fields={"status": "status", "type": "category"},
        defaults={
            "status": InventoryStatus.AVAILABLE.value,
            "condition": InventoryCondition.GOOD.value,
        },
    ),
    EntityConfig(
        name="communications",
        model=Communication,
        create_schema=crm.CommunicationCreate,
        update_schema=crm.CommunicationUpdate,
        read_schema=crm.CommunicationRead,
        permission_module="contacts",
        search_fields=("subject", "from_address", "to_address"),
        filter_fields={"status": "status", "type": "type", "related_to_id": "related_to_id"},
    ),
)

ENTITY_REGISTRY: dict[str, EntityConfig] = {config.name: config for config in ENTITIES}
