"""Pydantic schemas for reports API."""

from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DailySalesReportRead(BaseModel):
    """Daily sales summary for a single date."""

    report_date: date_type
    total_sales: int
    total_revenue: Decimal
    total_profit: Decimal
    avg_profit_per_sale: Decimal
    most_profitable_car_id: UUID | None
    highest_single_profit: Decimal
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MonthlySalesReportRead(BaseModel):
    """Monthly sales and finance summary."""

    year: int
    month: int
    start_date: date_type
    end_date: date_type
    total_sales: int
    total_revenue: Decimal
    total_profit: Decimal
    avg_daily_profit: Decimal
    best_day: date_type | None
    best_day_profit: Decimal
    profit_margin: Decimal = Field(..., description="Total profit / total revenue, as a percentage")
    finance_cost: Decimal = Field(..., description="Sum of expense entries")
    total_finance_cost: Decimal = Field(..., description="Expenses minus income")
    net_profit: Decimal
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class YearlySalesReportRead(BaseModel):
    """Yearly sales and finance summary."""

    year: int
    total_sales: int
    total_revenue: Decimal
    total_profit: Decimal
    avg_monthly_profit: Decimal
    best_month: int | None
    best_month_profit: Decimal
    profit_margin: Decimal
    yoy_growth: Decimal = Field(..., description="Profit change against previous year, percent")
    total_finance_cost: Decimal
    total_net_profit: Decimal
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RegenerationResponse(BaseModel):
    """Result of an explicit month re-sync."""

    year: int
    month: int
    ok: bool
    error: str | None = None
