"""Period keys for the three report tiers.

A day is a plain ``datetime.date``. Months and years get small frozen value
types so they sort, hash and print the same way everywhere they are used as
report keys or watermarks.
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator


@dataclass(frozen=True, order=True)
class YearKey:
    """Calendar year used as the yearly report key."""

    year: int

    def __post_init__(self) -> None:
        if not 1 <= self.year <= 9999:
            raise ValueError(f"Year out of range: {self.year}")

    @classmethod
    def of(cls, day: date) -> "YearKey":
        return cls(day.year)

    @property
    def start(self) -> date:
        return date(self.year, 1, 1)

    @property
    def end(self) -> date:
        return date(self.year, 12, 31)

    def previous(self) -> "YearKey":
        return YearKey(self.year - 1)

    def next(self) -> "YearKey":
        return YearKey(self.year + 1)

    def months(self) -> list["MonthKey"]:
        return [MonthKey(self.year, month) for month in range(1, 13)]

    def __str__(self) -> str:
        return f"{self.year:04d}"


@dataclass(frozen=True, order=True)
class MonthKey:
    """(year, month) pair used as the monthly report key."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {self.month}")
        YearKey(self.year)

    @classmethod
    def of(cls, day: date) -> "MonthKey":
        return cls(day.year, day.month)

    @property
    def year_key(self) -> YearKey:
        return YearKey(self.year)

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, self.days)

    @property
    def days(self) -> int:
        """Number of calendar days in the month."""
        return calendar.monthrange(self.year, self.month)[1]

    def previous(self) -> "MonthKey":
        if self.month == 1:
            return MonthKey(self.year - 1, 12)
        return MonthKey(self.year, self.month - 1)

    def next(self) -> "MonthKey":
        if self.month == 12:
            return MonthKey(self.year + 1, 1)
        return MonthKey(self.year, self.month + 1)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def days_after(watermark: date | None, upto: date) -> Iterator[date]:
    """Dates after ``watermark`` up to and including ``upto``.

    A missing watermark yields only ``upto``.
    """
    current = upto if watermark is None else watermark + timedelta(days=1)
    while current <= upto:
        yield current
        current += timedelta(days=1)


def months_after(watermark: MonthKey | None, upto: MonthKey) -> Iterator[MonthKey]:
    """Months after ``watermark`` up to and including ``upto``."""
    current = upto if watermark is None else watermark.next()
    while current <= upto:
        yield current
        current = current.next()


def years_after(watermark: YearKey | None, upto: YearKey) -> Iterator[YearKey]:
    """Years after ``watermark`` up to and including ``upto``."""
    current = upto if watermark is None else watermark.next()
    while current <= upto:
        yield current
        current = current.next()
