# File: src/carledger/models/yearly_sales_report.py
"""YearlySalesReport model: top tier of the rollup."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from carledger.core.db import Base
from carledger.core.periods import YearKey
from carledger.utils.datetime import now_utc


class YearlySalesReport(Base):
    """Yearly rollup. Nothing is recomputed from changes to this table."""

    __tablename__ = "yearly_sales_reports"

    year: Mapped[int] = mapped_column(Integer, primary_key=True)

    total_sales: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_revenue: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )
    total_profit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )
    avg_monthly_profit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    best_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    best_month_profit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    profit_margin: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    # Percentage change of total_profit against the previous year's row
    yoy_growth: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )

    total_finance_cost: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )
    total_net_profit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0.00")
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=now_utc, onupdate=now_utc
    )

    @property
    def period(self) -> YearKey:
        return YearKey(self.year)

    def __repr__(self) -> str:
        return (
            f"<YearlySalesReport(year={self.year}, total_profit={self.total_profit}, "
            f"total_net_profit={self.total_net_profit})>"
        )
