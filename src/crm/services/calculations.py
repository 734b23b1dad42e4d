"""Money arithmetic for line items, invoices and quotes.

All amounts are Decimals rounded half-up to cents.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from src.crm.models.enums import InvoiceStatus, PaymentStatus

CENTS = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def line_total(quantity: Decimal, unit_price: Decimal, discount_percentage: Decimal) -> Decimal:
    """quantity * unit_price, less the percentage discount."""
    gross = quantity * unit_price
    return to_cents(gross * (HUNDRED - discount_percentage) / HUNDRED)


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


def document_totals(subtotal: Decimal, tax_rate: Decimal) -> DocumentTotals:
    """Totals for an invoice or quote. ``tax_rate`` is a fraction (0.0825 = 8.25%)."""
    subtotal = to_cents(subtotal)
    tax_amount = to_cents(subtotal * tax_rate)
    return DocumentTotals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)


def sum_line_totals(totals: Iterable[Decimal]) -> Decimal:
    return to_cents(sum(totals, ZERO))


@dataclass(frozen=True)
class PaymentSummary:
    amount_paid: Decimal
    balance_due: Decimal
    status: str


def summarize_payments(
    total: Decimal,
    payments: Iterable[tuple[Decimal, str]],
    current_status: str,
) -> PaymentSummary:
    """Derive paid amount, balance and status from an invoice's payments.

    Only ``completed`` payments count. A draft invoice with nothing paid stays
    a draft; cancelled invoices keep their status.
    """
    amount_paid = to_cents(
        sum(
            (amount for amount, status in payments if status == PaymentStatus.COMPLETED.value),
            ZERO,
        )
    )
    balance_due = to_cents(total - amount_paid)

    if current_status == InvoiceStatus.CANCELLED.value:
        status = current_status
    elif amount_paid > ZERO and balance_due <= ZERO:
        status = InvoiceStatus.PAID_IN_FULL.value
    elif amount_paid > ZERO:
        status = InvoiceStatus.PARTIALLY_PAID.value
    elif current_status == InvoiceStatus.DRAFT.value:
        status = current_status
    else:
        status = InvoiceStatus.NO_PAYMENTS_RECEIVED.value

    return PaymentSummary(amount_paid=amount_paid, balance_due=balance_due, status=status)


def is_settled(status: str) -> bool:
    return status in (InvoiceStatus.PAID.value, InvoiceStatus.PAID_IN_FULL.value)
