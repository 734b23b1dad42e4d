"""Column groups shared by several data source tables."""

from decimal import Decimal

from sqlmodel import Field, SQLModel


class MailingAddressFields(SQLModel):
    mailing_address_line1: str | None = Field(default=None, max_length=255)
    mailing_address_line2: str | None = Field(default=None, max_length=255)
    mailing_city: str | None = Field(default=None, max_length=100)
    mailing_state: str | None = Field(default=None, max_length=50)
    mailing_postal_code: str | None = Field(default=None, max_length=20)
    mailing_country: str | None = Field(default="US", max_length=100)


class LineItemFields(SQLModel):
    """Priced line. ``total`` is computed from the other columns on write."""

    description: str = Field(max_length=2000)
    quantity: Decimal = Field(default=Decimal("1"), max_digits=10, decimal_places=2)
    unit_price: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    discount_percentage: Decimal = Field(default=Decimal("0"), max_digits=5, decimal_places=2)
    total: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    sort_order: int | None = Field(default=None)


MAILING_ADDRESS_COLUMNS: tuple[str, ...] = tuple(MailingAddressFields.model_fields)
