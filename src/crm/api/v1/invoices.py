"""Invoice line items and payments."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.crm.api.dependencies import TenantContext, invoice_service_for, require_permission
from src.crm.schemas.billing import (
    InvoiceLineItemCreate,
    InvoiceLineItemRead,
    InvoicePaymentCreate,
    PaymentRead,
)

router = APIRouter(prefix="/invoices", tags=["invoices"])

CanView = Annotated[TenantContext, Depends(require_permission("invoices", "view"))]
CanEdit = Annotated[TenantContext, Depends(require_permission("invoices", "edit"))]


@router.get("/{invoice_id}/line-items", response_model=list[InvoiceLineItemRead])
async def list_line_items(invoice_id: UUID, ctx: CanView) -> list[InvoiceLineItemRead]:
    items = await invoice_service_for(ctx).list_line_items(invoice_id)
    return [InvoiceLineItemRead.model_validate(item) for item in items]


@router.post(
    "/{invoice_id}/line-items",
    response_model=InvoiceLineItemRead,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Invoice not found"}},
)
async def add_line_item(
    invoice_id: UUID, data: InvoiceLineItemCreate, ctx: CanEdit
) -> InvoiceLineItemRead:
    """Add a line item and recompute subtotal, tax, total and balance."""
    item = await invoice_service_for(ctx).add_line_item(invoice_id, data)
    return InvoiceLineItemRead.model_validate(item)


@router.delete(
    "/{invoice_id}/line-items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Invoice or line item not found"}},
)
async def delete_line_item(invoice_id: UUID, item_id: UUID, ctx: CanEdit) -> None:
    await invoice_service_for(ctx).delete_line_item(invoice_id, item_id)


@router.get("/{invoice_id}/payments", response_model=list[PaymentRead])
async def list_payments(invoice_id: UUID, ctx: CanView) -> list[PaymentRead]:
    payments = await invoice_service_for(ctx).list_payments(invoice_id)
    return [PaymentRead.model_validate(p) for p in payments]


@router.post(
    "/{invoice_id}/payments",
    response_model=PaymentRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invoice already paid, cancelled, or amount exceeds balance"},
        404: {"description": "Invoice not found"},
    },
)
async def add_payment(invoice_id: UUID, data: InvoicePaymentCreate, ctx: CanEdit) -> PaymentRead:
    """Record a payment and update the invoice's paid amount, balance and status."""
    payment = await invoice_service_for(ctx).add_payment(invoice_id, data)
    return PaymentRead.model_validate(payment)
