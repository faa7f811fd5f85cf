# File: src/carledger/models/sale_schemas.py
"""Pydantic schemas for Sale API."""

from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from carledger.core.validators import validate_currency, validate_no_future_date


class SaleCreate(BaseModel):
    """Schema for recording a new sale."""

    car_id: UUID
    buyer_id: UUID
    sale_price: Decimal = Field(..., ge=0, decimal_places=2)
    purchase_cost: Decimal = Field(..., ge=0, decimal_places=2)
    profit_loss: Decimal | None = Field(
        None, decimal_places=2, description="Defaults to sale_price - purchase_cost"
    )
    sale_date: date_type
    notes: str | None = Field(None, max_length=500)

    @field_validator("sale_price", "purchase_cost")
    @classmethod
    def validate_currency_fields(cls, v: Decimal) -> Decimal:
        return validate_currency(v)

    @field_validator("sale_date")
    @classmethod
    def validate_sale_date(cls, v: date_type) -> date_type:
        """Ensure sale date is not in the future."""
        return validate_no_future_date(v, "Sale date")


class SaleUpdate(BaseModel):
    """
    Schema for updating a sale. Only provided fields change.

    Amounts are not accepted here; sending sale_price, purchase_cost or
    profit_loss is a validation error.
    """

    sale_date: date_type | None = None
    notes: str | None = Field(None, max_length=500)

    model_config = ConfigDict(extra="forbid")

    @field_validator("sale_date")
    @classmethod
    def validate_sale_date(cls, v: date_type | None) -> date_type | None:
        if v is None:
            return None
        return validate_no_future_date(v, "Sale date")


class SaleRead(BaseModel):
    """Schema for reading a sale."""

    id: UUID
    car_id: UUID
    buyer_id: UUID
    sale_price: Decimal
    purchase_cost: Decimal
    profit_loss: Decimal
    sale_date: date_type
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
