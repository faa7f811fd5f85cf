"""Pydantic schemas for FinanceRecord API."""

from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from carledger.core.validators import validate_currency, validate_no_future_date
from carledger.models.enums import FinanceRecordType


class FinanceRecordCreate(BaseModel):
    """Schema for creating a finance record."""

    type: FinanceRecordType
    category: str | None = Field(None, max_length=100)
    cost: Decimal = Field(..., ge=0, decimal_places=2)
    record_date: date_type
    description: str | None = Field(None, max_length=255)

    @field_validator("cost")
    @classmethod
    def validate_cost(cls, v: Decimal) -> Decimal:
        return validate_currency(v)

    @field_validator("record_date")
    @classmethod
    def validate_record_date(cls, v: date_type) -> date_type:
        return validate_no_future_date(v, "Record date")


class FinanceRecordUpdate(BaseModel):
    """Schema for updating a finance record."""

    type: FinanceRecordType | None = None
    category: str | None = Field(None, max_length=100)
    cost: Decimal | None = Field(None, ge=0, decimal_places=2)
    record_date: date_type | None = None
    description: str | None = Field(None, max_length=255)

    @field_validator("cost")
    @classmethod
    def validate_cost(cls, v: Decimal | None) -> Decimal | None:
        if v is None:
            return None
        return validate_currency(v)

    @field_validator("record_date")
    @classmethod
    def validate_record_date(cls, v: date_type | None) -> date_type | None:
        if v is None:
            return None
        return validate_no_future_date(v, "Record date")


class FinanceRecordRead(BaseModel):
    """Schema for reading a finance record."""

    id: UUID
    type: FinanceRecordType
    category: str | None
    cost: Decimal
    record_date: date_type
    description: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
