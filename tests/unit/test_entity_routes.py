"""HTTP tests for the generic entity routes with an in-memory tenant context."""

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from src.crm.api.dependencies import Principal, TenantContext, get_tenant_context
from src.crm.main import create_app
from src.crm.models.data import Account, Invoice, Payment
from src.crm.models.enums import InvoiceStatus, PaymentStatus
from tests.factories import TenantFactory
from tests.helpers import RecordingSession, compile_sql

pytestmark = pytest.mark.unit


class ContextHolder:
    def __init__(self):
        self.tenant = TenantFactory.build()
        self.data_source_tenant_id = uuid4()
        self.user_id = uuid4()
        self.role = "admin"
        self.session = RecordingSession()

    def build(self) -> TenantContext:
        return TenantContext(
            session=self.session,  # type: ignore[arg-type]
            tenant_id=self.tenant.id,
            data_source_tenant_id=self.data_source_tenant_id,
            principal=Principal(user_id=self.user_id, email="rep@example.com", role=self.role),
            tenant=self.tenant,
        )


@pytest.fixture
def holder() -> ContextHolder:
    return ContextHolder()


@pytest.fixture
async def client(holder: ContextHolder) -> AsyncGenerator[AsyncClient]:
    app = create_app()

    async def _context() -> AsyncGenerator[TenantContext]:
        yield holder.build()

    app.dependency_overrides[get_tenant_context] = _context
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def test_requires_authentication():
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/accounts")

    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication required"
    assert "request_id" in response.json()


class TestList:
    async def test_empty_page_scoped_to_data_source_tenant(self, client, holder):
        response = await client.get("/api/v1/accounts", params={"search": "acme"})

        assert response.status_code == 200
        assert response.json() == {"items": [], "next_cursor": None, "has_more": False}
        sql, params = compile_sql(holder.session.statements[0])
        assert "accounts.tenant_id = " in sql
        assert holder.data_source_tenant_id in params.values()
        assert holder.tenant.id not in params.values()

    async def test_typed_filter(self, client, holder):
        account_id = uuid4()
        response = await client.get("/api/v1/contacts", params={"account_id": str(account_id)})

        assert response.status_code == 200
        _, params = compile_sql(holder.session.statements[0])
        assert account_id in params.values()

    async def test_malformed_filter_value(self, client):
        response = await client.get("/api/v1/contacts", params={"account_id": "nope"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid value for 'account_id'"

    async def test_limit_is_bounded(self, client):
        response = await client.get("/api/v1/accounts", params={"limit": 1000})
        assert response.status_code == 422


class TestGet:
    async def test_missing_row(self, client):
        response = await client.get(f"/api/v1/accounts/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"] == "Account not found"

    async def test_found(self, client, holder):
        account = Account(name="Acme", tenant_id=holder.data_source_tenant_id)
        holder.session.rows = [account]

        response = await client.get(f"/api/v1/accounts/{account.id}")

        assert response.status_code == 200
        assert response.json()["name"] == "Acme"
        assert response.json()["account_type"] == "company"


class TestCreate:
    async def test_create_stamps_tenant_and_user(self, client, holder):
        holder.role = "sales_rep"

        response = await client.post(
            "/api/v1/accounts", json={"name": "Acme Events", "website": "https://acme.test"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Acme Events"
        assert body["status"] == "active"
        assert body["created_by"] == str(holder.user_id)
        [account] = holder.session.added
        assert account.tenant_id == holder.data_source_tenant_id
        assert holder.session.commits == 1

    async def test_client_cannot_choose_tenant(self, client, holder):
        response = await client.post(
            "/api/v1/accounts", json={"name": "Acme", "tenant_id": str(uuid4())}
        )

        assert response.status_code == 201
        assert holder.session.added[0].tenant_id == holder.data_source_tenant_id

    async def test_validation_error(self, client, holder):
        response = await client.post("/api/v1/accounts", json={"website": "ftp://nope"})

        assert response.status_code == 422
        assert holder.session.commits == 0


class TestPermissions:
    async def test_sales_rep_cannot_delete(self, client, holder):
        holder.role = "sales_rep"

        response = await client.delete(f"/api/v1/leads/{uuid4()}")

        assert response.status_code == 403
        assert response.json()["detail"] == "Permission denied"

    async def test_staff_cannot_read_accounts(self, client, holder):
        holder.role = "staff"
        response = await client.get("/api/v1/accounts")
        assert response.status_code == 403

    async def test_quotes_follow_opportunity_permissions(self, client, holder):
        holder.role = "operations_manager"

        assert (await client.get("/api/v1/quotes")).status_code == 200
        assert (await client.post("/api/v1/quotes", json={})).status_code == 403

    async def test_custom_role_from_tenant_settings(self, client, holder):
        holder.tenant.settings = {
            "custom_roles": [{"id": "auditor", "permissions": {"invoices": {"view": True}}}]
        }
        holder.role = "auditor"

        assert (await client.get("/api/v1/invoices")).status_code == 200
        assert (await client.get("/api/v1/accounts")).status_code == 403


class TestDelete:
    async def test_delete_missing_row(self, client):
        response = await client.delete(f"/api/v1/accounts/{uuid4()}")
        assert response.status_code == 404

    async def test_delete(self, client, holder):
        account = Account(name="Acme", tenant_id=holder.data_source_tenant_id)
        holder.session.rows = [account]

        response = await client.delete(f"/api/v1/accounts/{account.id}")

        assert response.status_code == 204
        assert holder.session.deleted == [account]
        assert holder.session.commits == 1


async def test_stats_route_is_not_shadowed_by_entity_id(client):
    response = await client.get("/api/v1/opportunities/stats")

    assert response.status_code == 200
    assert response.json()["total_count"] == 0


class TestPaymentRules:
    """Payments written through the generic routes obey the invoice payment rules."""

    @pytest.fixture
    def invoice(self, holder) -> Invoice:
        invoice = Invoice(
            tenant_id=holder.data_source_tenant_id,
            invoice_number="INV-00001",
            account_id=uuid4(),
            issue_date=date(2026, 3, 1),
            subtotal=Decimal("100.00"),
            total=Decimal("100.00"),
            balance_due=Decimal("100.00"),
            status=InvoiceStatus.SENT.value,
        )
        holder.session.tables = {Invoice: [invoice], Payment: []}
        return invoice

    def add_payment(self, holder, invoice: Invoice, amount: str, **overrides) -> Payment:
        values = {
            "tenant_id": holder.data_source_tenant_id,
            "invoice_id": invoice.id,
            "payment_date": date(2026, 3, 2),
            "amount": Decimal(amount),
            "status": PaymentStatus.COMPLETED.value,
        }
        values.update(overrides)
        payment = Payment(**values)
        holder.session.tables[Payment].append(payment)
        return payment

    async def test_create_within_balance(self, client, holder, invoice):
        response = await client.post(
            "/api/v1/payments", json={"invoice_id": str(invoice.id), "amount": "40.00"}
        )

        assert response.status_code == 201
        assert response.json()["account_id"] == str(invoice.account_id)
        assert invoice.balance_due == Decimal("60.00")
        assert invoice.status == InvoiceStatus.PARTIALLY_PAID.value
        assert holder.session.commits == 1

    async def test_create_on_paid_invoice_rejected(self, client, holder, invoice):
        self.add_payment(holder, invoice, "100.00")
        invoice.balance_due = Decimal("0.00")
        invoice.status = InvoiceStatus.PAID_IN_FULL.value

        response = await client.post(
            "/api/v1/payments", json={"invoice_id": str(invoice.id), "amount": "500.00"}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invoice is already paid in full"
        assert len(holder.session.tables[Payment]) == 1
        assert invoice.balance_due == Decimal("0.00")
        assert holder.session.commits == 0
        assert holder.session.rollbacks == 1

    async def test_create_over_balance_rejected(self, client, holder, invoice):
        response = await client.post(
            "/api/v1/payments", json={"invoice_id": str(invoice.id), "amount": "100.01"}
        )

        assert response.status_code == 400
        assert "exceeds balance due" in response.json()["detail"]
        assert holder.session.tables[Payment] == []

    async def test_create_on_cancelled_invoice_rejected(self, client, holder, invoice):
        invoice.status = InvoiceStatus.CANCELLED.value

        response = await client.post(
            "/api/v1/payments", json={"invoice_id": str(invoice.id), "amount": "10.00"}
        )

        assert response.status_code == 400
        assert "cancelled" in response.json()["detail"]

    async def test_raising_amount_past_balance_rejected(self, client, holder, invoice):
        payment = self.add_payment(holder, invoice, "60.00")
        invoice.balance_due = Decimal("40.00")

        response = await client.patch(f"/api/v1/payments/{payment.id}", json={"amount": "150.00"})

        assert response.status_code == 400
        assert payment.amount == Decimal("60.00")
        assert holder.session.commits == 0

    async def test_raising_amount_up_to_balance(self, client, holder, invoice):
        payment = self.add_payment(holder, invoice, "60.00")
        invoice.balance_due = Decimal("40.00")

        response = await client.patch(f"/api/v1/payments/{payment.id}", json={"amount": "100.00"})

        assert response.status_code == 200
        assert invoice.balance_due == Decimal("0.00")
        assert invoice.status == InvoiceStatus.PAID_IN_FULL.value

    async def test_completing_pending_payment_needs_balance(self, client, holder, invoice):
        payment = self.add_payment(holder, invoice, "80.00", status=PaymentStatus.PENDING.value)
        self.add_payment(holder, invoice, "50.00")
        invoice.balance_due = Decimal("50.00")

        response = await client.patch(
            f"/api/v1/payments/{payment.id}", json={"status": "completed"}
        )

        assert response.status_code == 400

    async def test_notes_on_paid_invoice_can_change(self, client, holder, invoice):
        payment = self.add_payment(holder, invoice, "100.00")
        invoice.balance_due = Decimal("0.00")
        invoice.status = InvoiceStatus.PAID_IN_FULL.value

        response = await client.patch(
            f"/api/v1/payments/{payment.id}", json={"notes": "Wire transfer"}
        )

        assert response.status_code == 200
        assert invoice.status == InvoiceStatus.PAID_IN_FULL.value
