"""Invoice line items, payments and the totals derived from them."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.crm.core.exceptions import BusinessRuleError, NotFoundError
from src.crm.core.logging import get_logger
from src.crm.models.base import utc_now
from src.crm.models.data import Invoice, InvoiceLineItem, Payment
from src.crm.models.enums import InvoiceStatus, PaymentStatus
from src.crm.repositories.data import TenantScopedRepository
from src.crm.schemas.billing import InvoiceLineItemCreate, InvoicePaymentCreate
from src.crm.services.calculations import (
    document_totals,
    is_settled,
    line_total,
    sum_line_totals,
    summarize_payments,
)

logger = get_logger(__name__)


class InvoiceService:
    """Keeps an invoice's subtotal, tax, total and balance consistent.

    Methods that change rows commit; ``recalculate`` only stages the new
    totals so the generic entity routes can fold it into their own commit.
    """

    def __init__(self, session: AsyncSession, tenant_id: UUID, user_id: UUID | None):
        self.session = session
        self.user_id = user_id
        self.invoices = TenantScopedRepository(session, tenant_id, Invoice)
        self.line_items = TenantScopedRepository(session, tenant_id, InvoiceLineItem)
        self.payments = TenantScopedRepository(session, tenant_id, Payment)

    async def get_invoice(self, invoice_id: UUID) -> Invoice:
        invoice = await self.invoices.get(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return invoice

    async def _apply_payments(self, invoice: Invoice) -> None:
        payments = await self.payments.list_all(invoice_id=invoice.id)
        summary = summarize_payments(
            invoice.total, [(p.amount, p.status) for p in payments], invoice.status
        )
        invoice.amount_paid = summary.amount_paid
        invoice.balance_due = summary.balance_due
        invoice.status = summary.status

    async def _apply_line_items(self, invoice: Invoice) -> None:
        items = await self.line_items.list_all(invoice_id=invoice.id)
        invoice.subtotal = sum_line_totals(item.total for item in items)

    def _apply_tax(self, invoice: Invoice) -> None:
        totals = document_totals(invoice.subtotal, invoice.tax_rate)
        invoice.subtotal = totals.subtotal
        invoice.tax_amount = totals.tax_amount
        invoice.total = totals.total

    def _touch(self, invoice: Invoice) -> None:
        invoice.updated_at = utc_now()
        invoice.updated_by = self.user_id
        self.session.add(invoice)

    async def recalculate(
        self, invoice_id: UUID, include_line_items: bool = False
    ) -> Invoice | None:
        """Recompute tax, total, amount paid, balance and status. No commit.

        The subtotal is only rebuilt from line items when asked to, since
        invoices created from a quote carry a subtotal without line items.
        Returns None when the invoice does not exist (e.g. a payment was
        detached from a deleted invoice).
        """
        invoice = await self.invoices.get(invoice_id)
        if invoice is None:
            return None
        await self.session.flush()
        if include_line_items:
            await self._apply_line_items(invoice)
        self._apply_tax(invoice)
        await self._apply_payments(invoice)
        self._touch(invoice)
        return invoice

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    async def list_line_items(self, invoice_id: UUID) -> list[InvoiceLineItem]:
        await self.get_invoice(invoice_id)
        return await self.line_items.list_all(invoice_id=invoice_id)

    async def add_line_item(
        self, invoice_id: UUID, data: InvoiceLineItemCreate
    ) -> InvoiceLineItem:
        invoice = await self.get_invoice(invoice_id)
        try:
            values = data.model_dump()
            values["total"] = line_total(data.quantity, data.unit_price, data.discount_percentage)
            values["invoice_id"] = invoice.id
            item = self.line_items.create(values, self.user_id)
            await self.recalculate(invoice.id, include_line_items=True)
            await self.session.commit()
            await self.session.refresh(item)
            return item
        except Exception:
            await self.session.rollback()
            raise

    async def delete_line_item(self, invoice_id: UUID, item_id: UUID) -> None:
        invoice = await self.get_invoice(invoice_id)
        item = await self.line_items.get(item_id)
        if item is None or item.invoice_id != invoice.id:
            raise NotFoundError("Line item not found")
        try:
            await self.session.delete(item)
            await self.recalculate(invoice.id, include_line_items=True)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def list_payments(self, invoice_id: UUID) -> list[Payment]:
        await self.get_invoice(invoice_id)
        return await self.payments.list_all(invoice_id=invoice_id)

    @staticmethod
    def _check_payment_allowed(invoice: Invoice, amount: Decimal) -> None:
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise BusinessRuleError("Cannot record a payment against a cancelled invoice")
        if is_settled(invoice.status):
            raise BusinessRuleError("Invoice is already paid in full")
        if amount > invoice.balance_due:
            raise BusinessRuleError(
                f"Payment amount {amount} exceeds balance due {invoice.balance_due}"
            )

    async def check_payment(self, invoice_id: UUID, amount: Decimal) -> Invoice:
        """Load the invoice and reject a payment of ``amount`` it cannot take."""
        invoice = await self.get_invoice(invoice_id)
        self._check_payment_allowed(invoice, amount)
        return invoice

    async def add_payment(self, invoice_id: UUID, data: InvoicePaymentCreate) -> Payment:
        invoice = await self.check_payment(invoice_id, data.amount)

        try:
            values = data.model_dump(exclude_none=True)
            values.setdefault("payment_date", utc_now().date())
            values.setdefault("status", PaymentStatus.COMPLETED.value)
            values["invoice_id"] = invoice.id
            values["account_id"] = invoice.account_id
            payment = self.payments.create(values, self.user_id)
            await self.recalculate(invoice.id)
            await self.session.commit()
            await self.session.refresh(payment)
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Payment recorded",
            invoice_id=str(invoice.id),
            payment_id=str(payment.id),
            invoice_status=invoice.status,
        )
        return payment
