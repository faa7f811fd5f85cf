"""Tests for the generation tracker and watermark-driven auto generation."""

from datetime import date
from decimal import Decimal

from carledger.core.errors import AggregationError
from carledger.core.periods import MonthKey, YearKey
from carledger.core.tracker import Watermarks
from tests.factories import SaleFactory


class TestGenerationTracker:
    async def test_tracker_row_is_created_lazily_and_empty(self, report_engine):
        marks = await report_engine.tracker.watermarks()

        assert marks == Watermarks()

    async def test_advance_only_moves_forward(self, report_engine):
        tracker = report_engine.tracker

        assert await tracker.advance_daily(date(2025, 7, 10)) is True
        assert await tracker.advance_daily(date(2025, 7, 1)) is False
        assert await tracker.advance_monthly(MonthKey(2025, 6)) is True
        assert await tracker.advance_monthly(MonthKey(2025, 6)) is False
        assert await tracker.advance_yearly(YearKey(2025)) is True

        assert await tracker.watermarks() == Watermarks(
            daily=date(2025, 7, 10), monthly=MonthKey(2025, 6), yearly=YearKey(2025)
        )

    async def test_event_cascade_leaves_tracker_alone(self, report_engine):
        await report_engine.writer.create_sale(
            **SaleFactory.values(date(2025, 7, 1), Decimal("900.00"))
        )

        assert await report_engine.tracker.watermarks() == Watermarks()


class TestAutoGeneration:
    async def test_first_run_generates_current_periods(self, report_engine):
        summary = await report_engine.service.auto_generate_reports_for_new_period(date(2025, 7, 15))

        assert [(o.tier, o.period) for o in summary.generated] == [
            ("daily", "2025-07-15"),
            ("monthly", "2025-07"),
            ("yearly", "2025"),
        ]
        assert summary.watermarks == Watermarks(
            daily=date(2025, 7, 15), monthly=MonthKey(2025, 7), yearly=YearKey(2025)
        )

    async def test_second_run_same_day_does_nothing(self, report_engine):
        service = report_engine.service
        await service.auto_generate_reports_for_new_period(date(2025, 7, 15))

        summary = await service.auto_generate_reports_for_new_period(date(2025, 7, 15))

        assert summary.outcomes == []

    async def test_default_today_comes_from_the_clock(self, report_engine):
        summary = await report_engine.service.auto_generate_reports_for_new_period()

        assert summary.today == date(2025, 7, 15)

    async def test_catches_up_from_watermarks(self, db_session, report_engine):
        service = report_engine.service
        await SaleFactory.create(db_session, sale_date=date(2025, 6, 30), profit_loss=Decimal("700.00"))
        await SaleFactory.create(db_session, sale_date=date(2025, 7, 1), profit_loss=Decimal("300.00"))
        await report_engine.tracker.set_watermarks(
            Watermarks(daily=date(2025, 6, 29), monthly=MonthKey(2025, 5), yearly=YearKey(2024))
        )

        summary = await service.auto_generate_reports_for_new_period(date(2025, 7, 2))

        assert [o.period for o in summary.generated if o.tier == "daily"] == [
            "2025-06-30",
            "2025-07-01",
            "2025-07-02",
        ]
        assert [o.period for o in summary.generated if o.tier == "monthly"] == ["2025-06", "2025-07"]
        assert [o.period for o in summary.generated if o.tier == "yearly"] == ["2025"]

        june = await report_engine.store.find_monthly(2025, 6)
        yearly = await report_engine.store.find_yearly(2025)
        assert june.total_profit == Decimal("700.00")
        assert yearly.total_profit == Decimal("1000.00")
        assert summary.watermarks.daily == date(2025, 7, 2)

    async def test_watermark_stops_before_first_failure(self, report_engine, monkeypatch):
        service = report_engine.service
        await report_engine.tracker.set_watermarks(Watermarks(daily=date(2025, 7, 12)))
        original = service.generate_daily_report

        async def flaky(report_date, cascade=True):
            if report_date == date(2025, 7, 14):
                raise AggregationError("bad data")
            return await original(report_date, cascade=cascade)

        monkeypatch.setattr(service, "generate_daily_report", flaky)

        summary = await service.auto_generate_reports_for_new_period(date(2025, 7, 15))

        assert [o.period for o in summary.failed] == ["2025-07-14"]
        assert await report_engine.store.find_daily(date(2025, 7, 15)) is not None
        assert summary.watermarks.daily == date(2025, 7, 13)
        assert summary.watermarks.monthly == MonthKey(2025, 7)
