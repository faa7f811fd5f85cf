# File: src/carledger/models/sale.py
"""Sale model: one vehicle sold to one buyer."""

import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carledger.core.db import Base
from carledger.utils.datetime import now_utc


class Sale(Base):
    """
    Represents a single vehicle sale.

    Attributes:
        id: Unique identifier (UUID v4)
        car_id: Car that was sold (owned by the inventory system)
        buyer_id: Buyer of the car (owned by the customer system)
        sale_price: Amount paid by the buyer
        purchase_cost: What the dealership paid for the car
        profit_loss: sale_price - purchase_cost, fixed when the sale is written
        sale_date: Calendar date of the sale, never in the future
    """

    __tablename__ = "sales"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    car_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )

    buyer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )

    sale_price: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )

    purchase_cost: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )

    profit_loss: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )

    sale_date: Mapped[date_type] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )

    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=now_utc,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=now_utc,
        onupdate=now_utc,
    )

    def __repr__(self) -> str:
        return (
            f"<Sale(id={self.id}, car_id={self.car_id}, "
            f"sale_date={self.sale_date}, profit_loss={self.profit_loss})>"
        )
