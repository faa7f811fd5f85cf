"""FinanceRecord model: income or expense entries outside of car sales."""

import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carledger.core.db import Base
from carledger.models.enums import FinanceRecordType
from carledger.utils.datetime import now_utc


class FinanceRecord(Base):
    """
    Represents a single finance ledger entry.

    Attributes:
        id: Unique identifier (UUID v4)
        type: income or expense
        category: Free-form grouping (rent, salaries, insurance...)
        cost: Amount, always non-negative; the sign comes from ``type``
        record_date: Date the entry belongs to
        description: Optional text description
    """

    __tablename__ = "finance_records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    type: Mapped[FinanceRecordType] = mapped_column(
        SQLEnum(
            FinanceRecordType,
            name="finance_record_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        index=True,
    )

    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    cost: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )

    record_date: Mapped[date_type] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )

    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Timestamps
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
            f"<FinanceRecord(id={self.id}, type={self.type}, "
            f"cost={self.cost}, record_date={self.record_date})>"
        )
