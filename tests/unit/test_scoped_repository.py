"""Tests that every tenant-scoped statement filters on the data source tenant id."""

from uuid import uuid4

import pytest

from src.crm.models.data import Account, Invoice
from src.crm.repositories.data import TenantScopedRepository
from src.crm.repositories.data.scoped import with_audit_fields
from src.crm.services.numbering import format_number, next_document_number
from tests.helpers import RecordingSession, compile_sql

pytestmark = pytest.mark.unit


@pytest.fixture
def tenant_id():
    return uuid4()


def repo_for(session, tenant_id, model=Account, search_fields=("name", "email")):
    return TenantScopedRepository(session, tenant_id, model, search_fields)


class TestTenantFilter:
    async def test_get_filters_on_tenant(self, tenant_id):
        session = RecordingSession()
        entity_id = uuid4()

        assert await repo_for(session, tenant_id).get(entity_id) is None

        sql, params = compile_sql(session.statements[0])
        assert "accounts.tenant_id = " in sql
        assert "accounts.id = " in sql
        assert tenant_id in params.values()
        assert entity_id in params.values()

    async def test_list_filters_on_tenant_and_orders_newest_first(self, tenant_id):
        session = RecordingSession()

        items, next_cursor, has_more = await repo_for(session, tenant_id).list(limit=10)

        assert (items, next_cursor, has_more) == ([], None, False)
        sql, params = compile_sql(session.statements[0])
        assert "accounts.tenant_id = " in sql
        assert "ORDER BY accounts.created_at DESC, accounts.id DESC" in sql
        assert tenant_id in params.values()
        # one extra row tells whether there is another page
        assert 11 in params.values()

    async def test_search_is_case_insensitive_and_escaped(self, tenant_id):
        session = RecordingSession()

        await repo_for(session, tenant_id).list(search="50%_off")

        sql, params = compile_sql(session.statements[0])
        assert "ILIKE" in sql.upper()
        assert "%50\\%\\_off%" in params.values()

    async def test_filters_skip_none(self, tenant_id):
        session = RecordingSession()

        await repo_for(session, tenant_id).list(filters={"status": "active", "industry": None})

        sql, params = compile_sql(session.statements[0])
        assert "accounts.status = " in sql
        assert "accounts.industry" not in sql.split("WHERE", 1)[1]
        assert "active" in params.values()

    async def test_list_all_filters_on_tenant(self, tenant_id):
        session = RecordingSession()
        invoice_id = uuid4()

        await repo_for(session, tenant_id, Invoice, ()).list_all(id=invoice_id)

        sql, params = compile_sql(session.statements[0])
        assert "invoices.tenant_id = " in sql
        assert tenant_id in params.values()


class TestWrites:
    def test_create_stamps_tenant_and_creator(self, tenant_id):
        session = RecordingSession()
        user_id = uuid4()
        other_tenant = uuid4()

        entity = repo_for(session, tenant_id).create(
            {"name": "Acme", "tenant_id": other_tenant, "id": uuid4()}, user_id
        )

        assert entity.tenant_id == tenant_id
        assert entity.created_by == user_id
        assert entity.updated_by == user_id
        assert session.added == [entity]

    async def test_update_of_foreign_row_returns_none(self, tenant_id):
        session = RecordingSession(rows=[])

        assert await repo_for(session, tenant_id).update(uuid4(), {"name": "x"}, uuid4()) is None
        assert session.added == []

    async def test_delete_of_foreign_row_returns_false(self, tenant_id):
        session = RecordingSession(rows=[])

        assert await repo_for(session, tenant_id).delete(uuid4()) is False
        assert session.deleted == []

    def test_protected_fields_are_stripped_on_update(self):
        user_id = uuid4()
        values = with_audit_fields(
            {"name": "New", "tenant_id": uuid4(), "created_by": uuid4()}, user_id, "update"
        )

        assert values["name"] == "New"
        assert "tenant_id" not in values
        assert "created_by" not in values
        assert values["updated_by"] == user_id
        assert "updated_at" in values


class TestDocumentNumbers:
    def test_format(self):
        assert format_number("INV", 7) == "INV-00007"
        assert format_number("Q", 123456) == "Q-123456"

    async def test_next_number_follows_highest(self, tenant_id):
        session = RecordingSession(
            rows=[("INV-00003",), ("INV-00010",), ("INV-custom",), (None,)]
        )
        repo = repo_for(session, tenant_id, Invoice, ())

        assert await next_document_number(repo, "invoice_number", "INV") == "INV-00011"

        sql, params = compile_sql(session.statements[0])
        assert "invoices.tenant_id = " in sql
        assert "INV-%" in params.values()

    async def test_first_number(self, tenant_id):
        repo = repo_for(RecordingSession(), tenant_id, Invoice, ())
        assert await next_document_number(repo, "invoice_number", "INV") == "INV-00001"
