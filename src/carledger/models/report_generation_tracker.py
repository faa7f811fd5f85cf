# File: src/carledger/models/report_generation_tracker.py
"""ReportGenerationTracker model: watermarks for bulk/scheduled generation."""

import uuid
from datetime import date as date_type
from datetime import datetime

from sqlalchemy import Date, DateTime, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carledger.core.db import Base
from carledger.core.periods import MonthKey, YearKey
from carledger.utils.datetime import now_utc


class ReportGenerationTracker(Base):
    """Single-row table. Created lazily the first time the tracker is loaded."""

    __tablename__ = "report_generation_tracker"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    last_daily_report_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    last_monthly_report_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_monthly_report_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_yearly_report_year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=now_utc, onupdate=now_utc
    )

    @property
    def last_monthly_key(self) -> MonthKey | None:
        if self.last_monthly_report_year is None or self.last_monthly_report_month is None:
            return None
        return MonthKey(self.last_monthly_report_year, self.last_monthly_report_month)

    @property
    def last_yearly_key(self) -> YearKey | None:
        if self.last_yearly_report_year is None:
            return None
        return YearKey(self.last_yearly_report_year)

    def __repr__(self) -> str:
        return (
            f"<ReportGenerationTracker(daily={self.last_daily_report_date}, "
            f"monthly={self.last_monthly_key}, yearly={self.last_yearly_report_year})>"
        )
