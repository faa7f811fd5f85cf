"""Tests for the reports command line entry point."""

from datetime import date
from decimal import Decimal

import pytest

from carledger.core.errors import AggregationError
from carledger.core.report_generation import ReportGenerationService
from carledger.core.report_store import ReportStore
from carledger.scripts.reports import build_parser, one_year_before, run
from tests.conftest import fixed_today
from tests.factories import FinanceRecordFactory, SaleFactory


async def run_command(session_factory, *argv):
    return await run(list(argv), session_factory=session_factory, clock=fixed_today)


class TestParser:
    def test_check_missing_options(self):
        args = build_parser().parse_args(
            ["reports:check-missing", "--from", "2025-01-01", "--to", "2025-03-31", "--dry-run"]
        )

        assert args.from_date == date(2025, 1, 1)
        assert args.to_date == date(2025, 3, 31)
        assert args.dry_run is True

    def test_bad_date_exits_with_usage_error(self):
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args(["reports:generate-daily", "2025-13-45"])
        assert exc.value.code == 2

    def test_unknown_scheduled_tier_rejected(self):
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args(["reports:scheduled", "weekly"])
        assert exc.value.code == 2

    def test_one_year_before_leap_day(self):
        assert one_year_before(date(2024, 2, 29)) == date(2023, 2, 28)
        assert one_year_before(date(2025, 7, 15)) == date(2024, 7, 15)


class TestGenerateCommands:
    async def test_generate_daily_for_given_date(self, db_session, session_factory, capsys):
        await SaleFactory.create(db_session, sale_date=date(2025, 7, 10), profit_loss=Decimal("1200.00"))

        code = await run_command(session_factory, "reports:generate-daily", "2025-07-10")

        assert code == 0
        out = capsys.readouterr().out
        assert "✅ Daily report for 2025-07-10 generated" in out

        async with session_factory() as session:
            store = ReportStore(session)
            daily = await store.find_daily(date(2025, 7, 10))
            monthly = await store.find_monthly(2025, 7)
            yearly = await store.find_yearly(2025)
        assert daily.total_profit == Decimal("1200.00")
        assert monthly.total_profit == Decimal("1200.00")
        assert yearly.total_sales == 1

    async def test_generate_daily_defaults_to_today(self, session_factory, capsys):
        code = await run_command(session_factory, "reports:generate-daily")

        assert code == 0
        assert "2025-07-15" in capsys.readouterr().out

    async def test_generate_monthly_out_of_range(self, session_factory, capsys):
        code = await run_command(session_factory, "reports:generate-monthly", "2025", "13")

        assert code == 1
        assert "❌ Error:" in capsys.readouterr().out

    async def test_generate_yearly(self, db_session, session_factory, capsys):
        await SaleFactory.create(db_session, sale_date=date(2024, 3, 3), profit_loss=Decimal("400.00"))

        code = await run_command(session_factory, "reports:generate-yearly", "2024")

        assert code == 0
        assert "✅ Yearly report for 2024 generated" in capsys.readouterr().out

    async def test_generate_daily_failure_exits_nonzero(self, session_factory, monkeypatch, capsys):
        async def broken(self, report_date, cascade=True):
            raise AggregationError("cannot summarize")

        monkeypatch.setattr(ReportGenerationService, "generate_daily_report", broken)

        code = await run_command(session_factory, "reports:generate-daily", "2025-07-01")

        assert code == 1
        assert "❌ Failed to generate daily report: cannot summarize" in capsys.readouterr().out


class TestCheckMissing:
    async def test_no_sales_in_range(self, session_factory, capsys):
        code = await run_command(
            session_factory, "reports:check-missing", "--from", "2025-01-01", "--to", "2025-01-31"
        )

        assert code == 0
        assert "No sales found in the specified date range." in capsys.readouterr().out

    async def test_dry_run_writes_nothing(self, db_session, session_factory, capsys):
        await SaleFactory.create(db_session, sale_date=date(2025, 7, 1))
        await SaleFactory.create(db_session, sale_date=date(2025, 7, 3))

        code = await run_command(
            session_factory,
            "reports:check-missing",
            "--from",
            "2025-07-01",
            "--to",
            "2025-07-15",
            "--dry-run",
        )

        assert code == 0
        out = capsys.readouterr().out
        assert "DRY RUN MODE" in out
        assert "Found 2 unique sale dates" in out
        assert "Would generate reports for 2025-07-01" in out

        async with session_factory() as session:
            store = ReportStore(session)
            assert await store.list_daily() == []
            assert await store.find_monthly(2025, 7) is None

    async def test_dry_run_lists_every_sale_date(self, db_session, session_factory, capsys):
        await SaleFactory.create(db_session, sale_date=date(2025, 7, 1))
        await SaleFactory.create(db_session, sale_date=date(2025, 7, 3))
        await run_command(
            session_factory, "reports:check-missing", "--from", "2025-07-01", "--to", "2025-07-01"
        )
        capsys.readouterr()

        code = await run_command(
            session_factory,
            "reports:check-missing",
            "--from",
            "2025-07-01",
            "--to",
            "2025-07-15",
            "--dry-run",
        )

        assert code == 0
        out = capsys.readouterr().out
        assert "Would generate reports for 2025-07-01 (all reports exist, would regenerate)" in out
        assert "Would generate reports for 2025-07-03 (missing: daily)" in out
        assert "1 of 2 dates have missing reports." in out

    async def test_backfill_generates_every_tier(self, db_session, session_factory, capsys):
        await SaleFactory.create(db_session, sale_date=date(2025, 6, 28), profit_loss=Decimal("100.00"))
        await SaleFactory.create(db_session, sale_date=date(2025, 7, 2), profit_loss=Decimal("200.00"))

        code = await run_command(session_factory, "reports:check-missing")

        assert code == 0
        out = capsys.readouterr().out
        assert "- Reports generated: 2" in out
        assert "✅ All reports processed successfully!" in out

        async with session_factory() as session:
            store = ReportStore(session)
            assert len(await store.list_daily()) == 2
            assert (await store.find_monthly(2025, 6)).total_profit == Decimal("100.00")
            assert (await store.find_yearly(2025)).total_profit == Decimal("300.00")

    async def test_inverted_range_is_an_error(self, session_factory, capsys):
        code = await run_command(
            session_factory, "reports:check-missing", "--from", "2025-07-10", "--to", "2025-07-01"
        )

        assert code == 1
        assert "❌ Error: Start date 2025-07-10 is after end date 2025-07-01" in capsys.readouterr().out

    async def test_every_date_failing_exits_nonzero(
        self, db_session, session_factory, monkeypatch, capsys
    ):
        await SaleFactory.create(db_session, sale_date=date(2025, 7, 2))

        async def broken(self, report_date):
            raise AggregationError("bad amount")

        monkeypatch.setattr(ReportGenerationService, "force_generate_reports_for_date", broken)

        code = await run_command(session_factory, "reports:check-missing")

        assert code == 1
        assert "✗ Failed to generate reports for 2025-07-02: bad amount" in capsys.readouterr().out


class TestMaintenanceCommands:
    async def test_update_monthly_finance_costs(self, db_session, session_factory, capsys):
        assert await run_command(session_factory, "reports:generate-monthly", "2025", "6") == 0
        # Inserted directly, so the stored June report is now stale
        await FinanceRecordFactory.create(db_session, record_date=date(2025, 6, 5), cost=Decimal("2500.00"))
        await FinanceRecordFactory.create(db_session, record_date=date(2025, 6, 20), cost=Decimal("5000.00"))
        capsys.readouterr()

        code = await run_command(session_factory, "reports:update-monthly-finance-costs")

        assert code == 0
        out = capsys.readouterr().out
        assert "Updated report for 2025-06: total_finance_cost 0.00 -> 7500.00" in out

        async with session_factory() as session:
            june = await ReportStore(session).find_monthly(2025, 6)
        assert june.total_finance_cost == Decimal("7500.00")
        assert june.net_profit == Decimal("-7500.00")

        code = await run_command(session_factory, "reports:update-monthly-finance-costs")

        assert code == 0
        assert "already has correct total_finance_cost" in capsys.readouterr().out

    async def test_initialize_tracker(self, session_factory, capsys):
        await run_command(session_factory, "reports:generate-daily", "2025-07-03")
        capsys.readouterr()

        code = await run_command(session_factory, "reports:initialize-tracker")

        assert code == 0
        out = capsys.readouterr().out
        assert "Last daily report: 2025-07-03" in out
        assert "Last monthly report: 2025-07" in out
        assert "Last yearly report: 2025" in out

    async def test_auto_generate_twice(self, session_factory, capsys):
        assert await run_command(session_factory, "reports:auto-generate") == 0
        assert "Generated 3 reports, 0 failed" in capsys.readouterr().out

        assert await run_command(session_factory, "reports:auto-generate") == 0
        assert "Generated 0 reports, 0 failed" in capsys.readouterr().out


class TestScheduled:
    @pytest.mark.parametrize(
        ("tier", "expected"),
        [
            ("daily", "daily sales report for 2025-07-14"),
            ("monthly", "monthly sales report for 2025-06"),
            ("yearly", "yearly sales report for 2024"),
        ],
    )
    async def test_targets_the_period_that_just_closed(self, session_factory, capsys, tier, expected):
        code = await run_command(session_factory, "reports:scheduled", tier)

        assert code == 0
        assert expected in capsys.readouterr().out
