"""Watermarks for the bulk/scheduled generation path.

The tracker row is loaded lazily through the report store and only the
auto-generation and initialization entry points move it. The per-event
cascade never reads or writes it.
"""

from dataclasses import dataclass
from datetime import date

from carledger.core.logging import get_logger
from carledger.core.periods import MonthKey, YearKey
from carledger.core.report_store import ReportStore
from carledger.models import ReportGenerationTracker

logger = get_logger(__name__)


@dataclass(frozen=True)
class Watermarks:
    """Latest period known to be generated, per tier. None means never."""

    daily: date | None = None
    monthly: MonthKey | None = None
    yearly: YearKey | None = None


class GenerationTracker:
    """Reads and advances the watermark row."""

    def __init__(self, store: ReportStore):
        self._store = store

    async def _row(self) -> ReportGenerationTracker:
        return await self._store.get_tracker()

    async def watermarks(self) -> Watermarks:
        row = await self._row()
        return Watermarks(
            daily=row.last_daily_report_date,
            monthly=row.last_monthly_key,
            yearly=row.last_yearly_key,
        )

    async def advance_daily(self, day: date) -> bool:
        """Move the daily watermark forward. Never moves it back."""
        row = await self._row()
        if row.last_daily_report_date is not None and day <= row.last_daily_report_date:
            return False
        row.last_daily_report_date = day
        await self._store.save_tracker(row)
        logger.info("tracker.advanced", tier="daily", watermark=str(day))
        return True

    async def advance_monthly(self, period: MonthKey) -> bool:
        row = await self._row()
        current = row.last_monthly_key
        if current is not None and period <= current:
            return False
        row.last_monthly_report_year = period.year
        row.last_monthly_report_month = period.month
        await self._store.save_tracker(row)
        logger.info("tracker.advanced", tier="monthly", watermark=str(period))
        return True

    async def advance_yearly(self, period: YearKey) -> bool:
        row = await self._row()
        current = row.last_yearly_key
        if current is not None and period <= current:
            return False
        row.last_yearly_report_year = period.year
        await self._store.save_tracker(row)
        logger.info("tracker.advanced", tier="yearly", watermark=str(period))
        return True

    async def set_watermarks(self, marks: Watermarks) -> Watermarks:
        """Overwrite all three watermarks, including setting them back to None."""
        row = await self._row()
        row.last_daily_report_date = marks.daily
        row.last_monthly_report_year = marks.monthly.year if marks.monthly else None
        row.last_monthly_report_month = marks.monthly.month if marks.monthly else None
        row.last_yearly_report_year = marks.yearly.year if marks.yearly else None
        await self._store.save_tracker(row)
        return marks
