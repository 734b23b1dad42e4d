"""Tenant data source tables

Revision ID: 002
Revises: 001
Create Date: 2025-01-06 00:00:01.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op
from src.alembic.migration_utils import is_data_migration

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

String = sqlmodel.sql.sqltypes.AutoString


def _scoped_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _mailing_address_columns() -> list[sa.Column]:
    return [
        sa.Column("mailing_address_line1", String(length=255), nullable=True),
        sa.Column("mailing_address_line2", String(length=255), nullable=True),
        sa.Column("mailing_city", String(length=100), nullable=True),
        sa.Column("mailing_state", String(length=50), nullable=True),
        sa.Column("mailing_postal_code", String(length=20), nullable=True),
        sa.Column("mailing_country", String(length=100), nullable=True),
    ]


def _line_item_columns() -> list[sa.Column]:
    return [
        sa.Column("description", String(length=2000), nullable=False),
        sa.Column("quantity", sa.Numeric(10, 2), nullable=False),
        sa.Column("unit_price", sa.Numeric(15, 2), nullable=False),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("total", sa.Numeric(15, 2), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=True),
    ]


def _money(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.Numeric(15, 2), nullable=True)
    return sa.Column(name, sa.Numeric(15, 2), nullable=False, server_default="0")


def _status(default: str) -> sa.Column:
    return sa.Column("status", String(length=50), nullable=False, server_default=default)


def _fk(column: str, table: str, ondelete: str = "SET NULL") -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint([column], [f"{table}.id"], ondelete=ondelete)


def _scoped_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_tenant_id", table, ["tenant_id"], unique=False)
    op.create_index(f"ix_{table}_created_at", table, ["created_at"], unique=False)


# Creation order; dropped in reverse
TABLES = (
    "accounts",
    "contacts",
    "leads",
    "opportunities",
    "opportunity_line_items",
    "events",
    "event_dates",
    "event_staff_assignments",
    "quotes",
    "contracts",
    "invoices",
    "invoice_line_items",
    "payments",
    "inventory_items",
    "communications",
)


def upgrade() -> None:
    if not is_data_migration():
        return

    op.create_table(
        "accounts",
        *_scoped_columns(),
        sa.Column("name", String(length=255), nullable=False),
        sa.Column("account_type", String(length=50), nullable=False, server_default="company"),
        sa.Column("industry", String(length=100), nullable=True),
        sa.Column("phone", String(length=50), nullable=True),
        sa.Column("email", String(length=255), nullable=True),
        sa.Column("website", String(length=255), nullable=True),
        sa.Column("billing_address_line1", String(length=255), nullable=True),
        sa.Column("billing_address_line2", String(length=255), nullable=True),
        sa.Column("billing_city", String(length=100), nullable=True),
        sa.Column("billing_state", String(length=50), nullable=True),
        sa.Column("billing_postal_code", String(length=20), nullable=True),
        sa.Column("billing_country", String(length=100), nullable=True),
        sa.Column("description", String(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        _status("active"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("accounts")
    op.create_index("ix_accounts_name", "accounts", ["name"], unique=False)

    op.create_table(
        "contacts",
        *_scoped_columns(),
        *_mailing_address_columns(),
        sa.Column("account_id", sa.Uuid(), nullable=True),
        sa.Column("first_name", String(length=100), nullable=True),
        sa.Column("last_name", String(length=100), nullable=True),
        sa.Column("email", String(length=255), nullable=True),
        sa.Column("phone", String(length=50), nullable=True),
        sa.Column("mobile", String(length=50), nullable=True),
        sa.Column("title", String(length=100), nullable=True),
        sa.Column("department", String(length=100), nullable=True),
        sa.Column("description", String(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        _status("active"),
        _fk("account_id", "accounts"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("contacts")
    op.create_index("ix_contacts_email", "contacts", ["email"], unique=False)

    op.create_table(
        "leads",
        *_scoped_columns(),
        sa.Column("first_name", String(length=100), nullable=True),
        sa.Column("last_name", String(length=100), nullable=True),
        sa.Column("email", String(length=255), nullable=True),
        sa.Column("phone", String(length=50), nullable=True),
        sa.Column("company", String(length=255), nullable=True),
        sa.Column("title", String(length=100), nullable=True),
        sa.Column("lead_type", String(length=50), nullable=False, server_default="personal"),
        _status("new"),
        sa.Column("source", String(length=100), nullable=True),
        sa.Column("rating", String(length=50), nullable=True),
        sa.Column("description", String(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        sa.Column("is_converted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("converted_at", sa.DateTime(), nullable=True),
        sa.Column("converted_account_id", sa.Uuid(), nullable=True),
        sa.Column("converted_contact_id", sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(["converted_account_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["converted_contact_id"], ["contacts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("leads")

    op.create_table(
        "opportunities",
        *_scoped_columns(),
        *_mailing_address_columns(),
        sa.Column("name", String(length=255), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=True),
        sa.Column("contact_id", sa.Uuid(), nullable=True),
        sa.Column("lead_id", sa.Uuid(), nullable=True),
        sa.Column("stage", String(length=100), nullable=False, server_default="qualification"),
        _status("open"),
        _money("amount", nullable=True),
        sa.Column("probability", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("close_date", sa.Date(), nullable=True),
        sa.Column("description", String(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        sa.Column("lead_source", String(length=100), nullable=True),
        sa.Column("type", String(length=100), nullable=True),
        sa.Column("next_step", String(), nullable=True),
        sa.Column("date_type", String(length=50), nullable=False, server_default="single_day"),
        sa.Column("is_converted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("converted_at", sa.DateTime(), nullable=True),
        sa.Column("converted_event_id", sa.Uuid(), nullable=True),
        sa.CheckConstraint(
            "probability >= 0 AND probability <= 100", name="ck_opportunities_probability"
        ),
        _fk("account_id", "accounts"),
        _fk("contact_id", "contacts"),
        _fk("lead_id", "leads"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("opportunities")
    op.create_index("ix_opportunities_name", "opportunities", ["name"], unique=False)
    op.create_index("ix_opportunities_tenant_stage", "opportunities", ["tenant_id", "stage"])

    op.create_table(
        "opportunity_line_items",
        *_scoped_columns(),
        *_line_item_columns(),
        sa.Column("opportunity_id", sa.Uuid(), nullable=False),
        _fk("opportunity_id", "opportunities", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("opportunity_line_items")
    op.create_index(
        "ix_opportunity_line_items_opportunity_id", "opportunity_line_items", ["opportunity_id"]
    )

    op.create_table(
        "events",
        *_scoped_columns(),
        *_mailing_address_columns(),
        sa.Column("name", String(length=255), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=True),
        sa.Column("contact_id", sa.Uuid(), nullable=True),
        sa.Column("opportunity_id", sa.Uuid(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        _status("planning"),
        sa.Column("type", String(length=100), nullable=True),
        sa.Column("description", String(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        sa.Column("date_type", String(length=50), nullable=False, server_default="single_day"),
        sa.Column("converted_from_opportunity_id", sa.Uuid(), nullable=True),
        _fk("account_id", "accounts"),
        _fk("contact_id", "contacts"),
        _fk("opportunity_id", "opportunities"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("events")
    op.create_index("ix_events_name", "events", ["name"], unique=False)

    op.create_table(
        "event_dates",
        *_scoped_columns(),
        sa.Column("opportunity_id", sa.Uuid(), nullable=True),
        sa.Column("event_id", sa.Uuid(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("location", String(length=255), nullable=True),
        sa.Column("notes", String(), nullable=True),
        _status("scheduled"),
        sa.CheckConstraint(
            "(opportunity_id IS NOT NULL AND event_id IS NULL) OR "
            "(opportunity_id IS NULL AND event_id IS NOT NULL)",
            name="ck_event_dates_single_owner",
        ),
        _fk("opportunity_id", "opportunities", ondelete="CASCADE"),
        _fk("event_id", "events", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("event_dates")
    op.create_index("ix_event_dates_opportunity_id", "event_dates", ["opportunity_id"])
    op.create_index("ix_event_dates_event_id", "event_dates", ["event_id"])

    op.create_table(
        "event_staff_assignments",
        *_scoped_columns(),
        sa.Column("event_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("role", String(length=100), nullable=True),
        sa.Column("assignment_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("notes", String(), nullable=True),
        _status("assigned"),
        _fk("event_id", "events", ondelete="CASCADE"),
        sa.UniqueConstraint("event_id", "user_id", "assignment_date"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("event_staff_assignments")
    op.create_index("ix_event_staff_assignments_event_id", "event_staff_assignments", ["event_id"])
    op.create_index("ix_event_staff_assignments_user_id", "event_staff_assignments", ["user_id"])

    op.create_table(
        "quotes",
        *_scoped_columns(),
        sa.Column("quote_number", String(length=100), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=True),
        sa.Column("contact_id", sa.Uuid(), nullable=True),
        sa.Column("opportunity_id", sa.Uuid(), nullable=True),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("expiration_date", sa.Date(), nullable=True),
        _money("subtotal"),
        sa.Column("tax_rate", sa.Numeric(5, 4), nullable=False, server_default="0"),
        _money("tax_amount"),
        _money("total"),
        _status("draft"),
        sa.Column("terms", String(), nullable=True),
        sa.Column("notes", String(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        _fk("account_id", "accounts"),
        _fk("contact_id", "contacts"),
        _fk("opportunity_id", "opportunities"),
        sa.UniqueConstraint("tenant_id", "quote_number"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("quotes")

    op.create_table(
        "contracts",
        *_scoped_columns(),
        sa.Column("contract_number", String(length=100), nullable=False),
        sa.Column("title", String(length=255), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=True),
        sa.Column("contact_id", sa.Uuid(), nullable=True),
        sa.Column("opportunity_id", sa.Uuid(), nullable=True),
        sa.Column("event_id", sa.Uuid(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        _money("value", nullable=True),
        _status("draft"),
        sa.Column("terms", String(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        _fk("account_id", "accounts"),
        _fk("contact_id", "contacts"),
        _fk("opportunity_id", "opportunities"),
        _fk("event_id", "events"),
        sa.UniqueConstraint("tenant_id", "contract_number"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("contracts")

    op.create_table(
        "invoices",
        *_scoped_columns(),
        sa.Column("invoice_number", String(length=100), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=True),
        sa.Column("contact_id", sa.Uuid(), nullable=True),
        sa.Column("opportunity_id", sa.Uuid(), nullable=True),
        sa.Column("event_id", sa.Uuid(), nullable=True),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        _money("subtotal"),
        sa.Column("tax_rate", sa.Numeric(5, 4), nullable=False, server_default="0"),
        _money("tax_amount"),
        _money("total"),
        _money("amount_paid"),
        _money("balance_due"),
        _status("draft"),
        sa.Column("terms", String(), nullable=True),
        sa.Column("notes", String(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        _fk("account_id", "accounts"),
        _fk("contact_id", "contacts"),
        _fk("opportunity_id", "opportunities"),
        _fk("event_id", "events"),
        sa.UniqueConstraint("tenant_id", "invoice_number"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("invoices")
    op.create_index("ix_invoices_tenant_status", "invoices", ["tenant_id", "status"])

    op.create_table(
        "invoice_line_items",
        *_scoped_columns(),
        *_line_item_columns(),
        sa.Column("invoice_id", sa.Uuid(), nullable=False),
        _fk("invoice_id", "invoices", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("invoice_line_items")
    op.create_index("ix_invoice_line_items_invoice_id", "invoice_line_items", ["invoice_id"])

    op.create_table(
        "payments",
        *_scoped_columns(),
        sa.Column("invoice_id", sa.Uuid(), nullable=True),
        sa.Column("account_id", sa.Uuid(), nullable=True),
        sa.Column("payment_date", sa.Date(), nullable=False),
        _money("amount"),
        sa.Column("payment_method", String(length=50), nullable=True),
        sa.Column("reference_number", String(length=255), nullable=True),
        sa.Column("notes", String(), nullable=True),
        _status("completed"),
        _fk("invoice_id", "invoices"),
        _fk("account_id", "accounts"),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("payments")
    op.create_index("ix_payments_invoice_id", "payments", ["invoice_id"])

    op.create_table(
        "inventory_items",
        *_scoped_columns(),
        sa.Column("name", String(length=255), nullable=False),
        sa.Column("serial_number", String(length=255), nullable=True),
        sa.Column("category", String(length=100), nullable=True),
        sa.Column("description", String(), nullable=True),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        _money("purchase_cost", nullable=True),
        _money("current_value", nullable=True),
        sa.Column("condition", String(length=50), nullable=False, server_default="good"),
        sa.Column("location", String(length=255), nullable=True),
        _status("available"),
        sa.Column("notes", String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("inventory_items")
    op.create_index("ix_inventory_items_name", "inventory_items", ["name"], unique=False)

    op.create_table(
        "communications",
        *_scoped_columns(),
        sa.Column("type", String(length=50), nullable=False),
        sa.Column("direction", String(length=20), nullable=True),
        sa.Column("subject", String(length=255), nullable=True),
        sa.Column("body", String(), nullable=True),
        sa.Column("from_address", String(length=255), nullable=True),
        sa.Column("to_address", String(length=255), nullable=True),
        sa.Column("status", String(length=50), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.Column("related_to_type", String(length=50), nullable=True),
        sa.Column("related_to_id", sa.Uuid(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    _scoped_indexes("communications")
    op.create_index("ix_communications_related_to_id", "communications", ["related_to_id"])


def downgrade() -> None:
    if not is_data_migration():
        return

    # Dropping a table drops its indexes
    for table in reversed(TABLES):
        op.drop_table(table)
