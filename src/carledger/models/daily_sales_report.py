# File: src/carledger/models/daily_sales_report.py
"""DailySalesReport model: one summary row per calendar date."""

import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Integer, Numeric, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carledger.core.db import Base
from carledger.utils.datetime import now_utc


class DailySalesReport(Base):
    """Sales summary for a single date. A zeroed row means "no sales that day"."""

    __tablename__ = "daily_sales_reports"

    report_date: Mapped[date_type] = mapped_column(Date, primary_key=True)

    total_sales: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    total_revenue: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    total_profit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    avg_profit_per_sale: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    most_profitable_car_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    highest_single_profit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=now_utc, onupdate=now_utc
    )

    def __repr__(self) -> str:
        return (
            f"<DailySalesReport(report_date={self.report_date}, "
            f"total_sales={self.total_sales}, total_profit={self.total_profit})>"
        )
