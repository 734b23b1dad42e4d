"""Building blocks shared by the entity schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, ClassVar, Self
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from src.crm.core.security.validators import validate_website

Money = Annotated[Decimal, Field(ge=0, max_digits=15, decimal_places=2)]
Percentage = Annotated[Decimal, Field(ge=0, le=100, max_digits=5, decimal_places=2)]
TaxRate = Annotated[Decimal, Field(ge=0, le=1, max_digits=5, decimal_places=4)]
Quantity = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]
Website = Annotated[str | None, AfterValidator(validate_website)]


class EntityWrite(BaseModel):
    """Request bodies store enum values as plain strings."""

    model_config = ConfigDict(use_enum_values=True)


class EntityRead(BaseModel):
    """Columns every data source row exposes."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_by: UUID | None = None
    updated_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class PartialUpdate(EntityWrite):
    """PATCH body: only fields the client sent are applied.

    Fields listed in ``non_nullable`` may be omitted but not set to null.
    """

    non_nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_null_for_required_columns(self) -> Self:
        for field in self.non_nullable & self.model_fields_set:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class MailingAddress(EntityWrite):
    mailing_address_line1: str | None = Field(default=None, max_length=255)
    mailing_address_line2: str | None = Field(default=None, max_length=255)
    mailing_city: str | None = Field(default=None, max_length=100)
    mailing_state: str | None = Field(default=None, max_length=50)
    mailing_postal_code: str | None = Field(default=None, max_length=20)
    mailing_country: str | None = Field(default=None, max_length=100)


class LineItemCreate(EntityWrite):
    description: str = Field(min_length=1, max_length=2000)
    quantity: Quantity = Decimal("1")
    unit_price: Money = Decimal("0")
    discount_percentage: Percentage = Decimal("0")
    sort_order: int | None = None


class LineItemRead(EntityRead):
    description: str
    quantity: Decimal
    unit_price: Decimal
    discount_percentage: Decimal
    total: Decimal
    sort_order: int | None = None
