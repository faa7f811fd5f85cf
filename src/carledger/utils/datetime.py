# File: src/carledger/utils/datetime.py
"""Timezone-aware datetime utilities for the reporting calendar."""

import os
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

# Calendar used to decide what "today" and "this month" mean for report defaults
APP_TIMEZONE = ZoneInfo(os.getenv("APP_TIMEZONE", "UTC"))


def now_local() -> datetime:
    """Get current datetime in the reporting timezone."""
    return datetime.now(APP_TIMEZONE)


def today_local() -> date:
    """Get today's date in the reporting timezone."""
    return now_local().date()


def now_utc() -> datetime:
    """Get current UTC datetime as NAIVE for database storage."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
