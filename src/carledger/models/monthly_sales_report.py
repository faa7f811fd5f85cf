# File: src/carledger/models/monthly_sales_report.py
"""MonthlySalesReport model: sales and finance summary per (year, month)."""

from datetime import date as date_type
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, DateTime, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from carledger.core.db import Base
from carledger.core.periods import MonthKey
from carledger.utils.datetime import now_utc


class MonthlySalesReport(Base):
    """
    Monthly rollup.

    Sales figures come straight from the month's sales, never from daily rows.
    Finance figures:
        finance_cost: sum of expense entries in the month
        total_finance_cost: expenses minus income (negative when income wins)
        net_profit: total_profit - total_finance_cost
    """

    __tablename__ = "monthly_sales_reports"
    __table_args__ = (
        CheckConstraint("month >= 1 AND month <= 12", name="ck_monthly_sales_reports_month"),
    )

    year: Mapped[int] = mapped_column(Integer, primary_key=True)
    month: Mapped[int] = mapped_column(Integer, primary_key=True)

    start_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    end_date: Mapped[date_type] = mapped_column(Date, nullable=False)

    total_sales: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_revenue: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )
    total_profit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )
    avg_daily_profit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    best_day: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    best_day_profit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    profit_margin: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )

    finance_cost: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )
    total_finance_cost: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )
    net_profit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=now_utc, onupdate=now_utc
    )

    @property
    def period(self) -> MonthKey:
        return MonthKey(self.year, self.month)

    def __repr__(self) -> str:
        return (
            f"<MonthlySalesReport(year={self.year}, month={self.month}, "
            f"total_profit={self.total_profit}, net_profit={self.net_profit})>"
        )
