"""Report generation commands.

Usage:
    carledger reports:generate-daily [DATE]
    carledger reports:generate-monthly [YEAR] [MONTH]
    carledger reports:generate-yearly [YEAR]
    carledger reports:check-missing [--from DATE] [--to DATE] [--dry-run]
    carledger reports:initialize-tracker
    carledger reports:update-monthly-finance-costs
    carledger reports:auto-generate
    carledger reports:scheduled {daily,monthly,yearly}

Scheduler crontab:
    0 1 * * *   carledger reports:scheduled daily     (yesterday)
    0 2 1 * *   carledger reports:scheduled monthly   (previous month)
    0 3 1 1 *   carledger reports:scheduled yearly    (previous year)

Exit code 1 when every requested period failed, when facts could not be read
or when a period was out of range; 2 for unparseable arguments; otherwise 0.
"""

import argparse
import asyncio
import sys
from datetime import date, timedelta
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from carledger.core.cascade import run_guarded
from carledger.core.db import AsyncSessionLocal
from carledger.core.errors import AppError, FactLookupError
from carledger.core.logging import configure_logging, get_logger, new_run_id
from carledger.core.periods import MonthKey
from carledger.core.report_engine import ReportEngine, build_report_engine
from carledger.core.report_generation import month_key
from carledger.core.sentry import init_sentry
from carledger.utils.datetime import today_local

logger = get_logger(__name__)


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}") from e


def one_year_before(day: date) -> date:
    if day.month == 2 and day.day == 29:
        return date(day.year - 1, 2, 28)
    return day.replace(year=day.year - 1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="carledger", description="Sales report generation")
    commands = parser.add_subparsers(dest="command", required=True)

    daily = commands.add_parser("reports:generate-daily", help="Generate the daily report")
    daily.add_argument("date", nargs="?", type=_iso_date, help="Defaults to today")

    monthly = commands.add_parser("reports:generate-monthly", help="Generate a monthly report")
    monthly.add_argument("year", nargs="?", type=int, help="Defaults to the current year")
    monthly.add_argument("month", nargs="?", type=int, help="Defaults to the current month")

    yearly = commands.add_parser("reports:generate-yearly", help="Generate a yearly report")
    yearly.add_argument("year", nargs="?", type=int, help="Defaults to the current year")

    missing = commands.add_parser(
        "reports:check-missing",
        help="Generate every tier for each sale date in a range",
    )
    missing.add_argument("--from", dest="from_date", type=_iso_date, help="Defaults to one year ago")
    missing.add_argument("--to", dest="to_date", type=_iso_date, help="Defaults to today")
    missing.add_argument(
        "--dry-run", action="store_true", help="Show what would be generated without writing"
    )

    commands.add_parser(
        "reports:initialize-tracker",
        help="Point the tracker at the latest existing reports",
    )
    commands.add_parser(
        "reports:update-monthly-finance-costs",
        help="Re-sync finance figures of every monthly report",
    )
    commands.add_parser(
        "reports:auto-generate",
        help="Generate every period not yet covered by the tracker",
    )

    scheduled = commands.add_parser(
        "reports:scheduled", help="Entry point for the time-based scheduler"
    )
    scheduled.add_argument("tier", choices=["daily", "monthly", "yearly"])

    return parser


async def _generate_one(engine: ReportEngine, step: str, context: dict, operation) -> int:
    result = await run_guarded(
        engine.store.session, step, context, operation, propagate=(FactLookupError,)
    )
    if not result.ok:
        print(f"❌ Failed to generate {step} report: {result.error}")
        return 1
    return 0


async def generate_daily(engine: ReportEngine, report_date: date) -> int:
    print(f"Generating daily sales report for {report_date.isoformat()}...")
    code = await _generate_one(
        engine,
        "daily",
        {"report_date": report_date},
        lambda: engine.service.generate_daily_report(report_date),
    )
    if code == 0:
        report = await engine.store.find_daily(report_date)
        print(f"✅ Daily report for {report_date.isoformat()} generated")
        print(f"   Sales: {report.total_sales}  Revenue: {report.total_revenue}  Profit: {report.total_profit}")
    return code


async def generate_monthly(engine: ReportEngine, period: MonthKey) -> int:
    print(f"Generating monthly sales report for {period}...")
    code = await _generate_one(
        engine,
        "monthly",
        {"year": period.year, "month": period.month},
        lambda: engine.service.generate_monthly_report(period.year, period.month),
    )
    if code == 0:
        report = await engine.store.find_monthly(period.year, period.month)
        print(f"✅ Monthly report for {period} generated")
        print(
            f"   Sales: {report.total_sales}  Profit: {report.total_profit}  "
            f"Finance cost: {report.total_finance_cost}  Net: {report.net_profit}"
        )
    return code


async def generate_yearly(engine: ReportEngine, year: int) -> int:
    print(f"Generating yearly sales report for {year}...")
    code = await _generate_one(
        engine,
        "yearly",
        {"year": year},
        lambda: engine.service.generate_yearly_report(year),
    )
    if code == 0:
        report = await engine.store.find_yearly(year)
        print(f"✅ Yearly report for {year} generated")
        print(
            f"   Sales: {report.total_sales}  Profit: {report.total_profit}  "
            f"Net: {report.total_net_profit}  YoY: {report.yoy_growth}%"
        )
    return code


async def check_missing(
    engine: ReportEngine, from_date: date, to_date: date, dry_run: bool
) -> int:
    print(f"Checking for missing reports from {from_date.isoformat()} to {to_date.isoformat()}")
    if dry_run:
        print("DRY RUN MODE - No reports will be actually generated")

    summary = await engine.service.backfill_reports(from_date, to_date, dry_run=dry_run)
    if not summary.sale_dates:
        print("No sales found in the specified date range.")
        return 0

    print(f"Found {len(summary.sale_dates)} unique sale dates with sales data.")

    if dry_run:
        for presence in summary.planned:
            state = (
                f"missing: {', '.join(presence.missing)}"
                if presence.missing
                else "all reports exist, would regenerate"
            )
            print(f"✓ Would generate reports for {presence.report_date.isoformat()} ({state})")
        print(f"{len(summary.missing)} of {len(summary.sale_dates)} dates have missing reports.")
        return 0

    for outcome in summary.outcomes:
        if outcome.ok:
            print(f"✓ Generated reports for {outcome.period}")
        else:
            print(f"✗ Failed to generate reports for {outcome.period}: {outcome.error}")

    print("\nSummary:")
    print(f"- Total sale dates processed: {len(summary.sale_dates)}")
    print(f"- Reports generated: {len(summary.generated)}")
    print(f"- Errors: {len(summary.failed)}")

    if summary.failed and not summary.generated:
        print("❌ Every date failed. Check the logs for details.")
        return 1
    if summary.failed:
        print("Some reports failed to generate. Check the logs for details.")
        return 0
    print("✅ All reports processed successfully!")
    return 0


async def initialize_tracker(engine: ReportEngine) -> int:
    print("Initializing report generation tracker...")
    marks = await engine.service.initialize_tracker()
    print("✅ Tracker initialized")
    print(f"   Last daily report: {marks.daily.isoformat() if marks.daily else 'none'}")
    print(f"   Last monthly report: {marks.monthly or 'none'}")
    print(f"   Last yearly report: {marks.yearly or 'none'}")
    return 0


async def update_monthly_finance_costs(engine: ReportEngine) -> int:
    updates = await engine.service.update_monthly_finance_costs()
    print(f"Found {len(updates)} monthly reports to update.")

    for update in updates:
        if update.status == "updated":
            print(
                f"Updated report for {update.period}: total_finance_cost "
                f"{update.previous_total} -> {update.new_total}"
            )
        elif update.status == "unchanged":
            print(
                f"Report for {update.period} already has correct total_finance_cost "
                f"({update.new_total})"
            )
        else:
            print(f"✗ Failed to update report for {update.period}: {update.error}")

    updated = sum(1 for update in updates if update.status == "updated")
    skipped = sum(1 for update in updates if update.status == "unchanged")
    failed = len(updates) - updated - skipped
    print(f"Update complete. Updated {updated} reports, skipped {skipped} reports, failed {failed}.")
    return 1 if updates and failed == len(updates) else 0


async def auto_generate(engine: ReportEngine, today: date) -> int:
    summary = await engine.service.auto_generate_reports_for_new_period(today)
    for outcome in summary.outcomes:
        mark = "✓" if outcome.ok else "✗"
        suffix = f": {outcome.error}" if outcome.error else ""
        print(f"{mark} {outcome.tier} {outcome.period}{suffix}")

    marks = summary.watermarks
    print(
        f"Generated {len(summary.generated)} reports, {len(summary.failed)} failed. "
        f"Tracker: daily={marks.daily} monthly={marks.monthly} yearly={marks.yearly}"
    )
    return 1 if summary.outcomes and not summary.generated else 0


async def scheduled(engine: ReportEngine, tier: str, today: date) -> int:
    """Generate the period that just closed for the given tier."""
    if tier == "daily":
        return await generate_daily(engine, today - timedelta(days=1))
    if tier == "monthly":
        return await generate_monthly(engine, MonthKey.of(today).previous())
    return await generate_yearly(engine, today.year - 1)


async def dispatch(engine: ReportEngine, args: argparse.Namespace, today: date) -> int:
    command = args.command
    if command == "reports:generate-daily":
        return await generate_daily(engine, args.date or today)
    if command == "reports:generate-monthly":
        year = args.year if args.year is not None else today.year
        month = args.month if args.month is not None else today.month
        return await generate_monthly(engine, month_key(year, month))
    if command == "reports:generate-yearly":
        return await generate_yearly(engine, args.year if args.year is not None else today.year)
    if command == "reports:check-missing":
        from_date = args.from_date or one_year_before(today)
        to_date = args.to_date or today
        return await check_missing(engine, from_date, to_date, args.dry_run)
    if command == "reports:initialize-tracker":
        return await initialize_tracker(engine)
    if command == "reports:update-monthly-finance-costs":
        return await update_monthly_finance_costs(engine)
    if command == "reports:auto-generate":
        return await auto_generate(engine, today)
    return await scheduled(engine, args.tier, today)


async def run(
    argv: list[str] | None = None,
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
    clock: Callable[[], date] = today_local,
) -> int:
    """Parse arguments, run one command in its own session and commit it."""
    args = build_parser().parse_args(argv)
    run_id = new_run_id("cli")
    today = clock()
    logger.info("command.start", command=args.command, run_id=run_id)

    async with session_factory() as session:
        engine = build_report_engine(session, clock=clock)
        try:
            code = await dispatch(engine, args, today)
            await session.commit()
        except AppError as e:
            await session.rollback()
            logger.error("command.failed", command=args.command, code=e.code, error=e.message)
            print(f"❌ Error: {e.message}")
            return 1

    logger.info("command.complete", command=args.command, exit_code=code)
    return code


def main() -> None:
    configure_logging()
    init_sentry()
    try:
        sys.exit(asyncio.run(run(sys.argv[1:])))
    except KeyboardInterrupt:
        print("\n\n❌ Cancelled\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
