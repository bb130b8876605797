"""
Calendar period helpers for billing reports.

Turns a (mode, year, month, day) selector into inclusive [start, end] instants in the
clinic's reporting timezone, together with the boundaries of the unit immediately
before it so reports can compare against the previous month or year.

Nothing here reads the clock. Callers that need "the current month" pass `now` in.
"""

import calendar
import os
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

import pytz
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_REPORTING_TIMEZONE = os.getenv("REPORTING_TIMEZONE", "Asia/Kolkata")

PERIOD_MODES = ("day", "month", "year")


class InvalidPeriodError(ValueError):
    pass


class DateRange(BaseModel):
    start: datetime
    end: datetime

    class Config:
        frozen = True

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end

    def days(self) -> List[date]:
        """Every calendar day in the range, first to last."""
        first = self.start.date()
        count = (self.end.date() - first).days + 1
        return [first + timedelta(days=offset) for offset in range(count)]

    def months(self) -> List[date]:
        """The first day of every calendar month in the range."""
        year, month = self.start.year, self.start.month
        result = []
        while (year, month) <= (self.end.year, self.end.month):
            result.append(date(year, month, 1))
            year, month = normalize_month(year, month + 1)
        return result


class ResolvedPeriod(BaseModel):
    mode: str
    year: int
    month: Optional[int] = None
    day: Optional[int] = None
    current: DateRange
    previous: DateRange

    class Config:
        frozen = True


def get_timezone(name: Optional[str] = None):
    try:
        return pytz.timezone(name or DEFAULT_REPORTING_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        raise InvalidPeriodError(f"Unknown reporting timezone: {name}")


def normalize_month(year: int, month: int) -> Tuple[int, int]:
    """Fold an out-of-range month into the right year: (2024, 13) -> (2025, 1), (2024, 0) -> (2023, 12)."""
    shifted_year, zero_based = divmod(month - 1, 12)
    return year + shifted_year, zero_based + 1


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    return normalize_month(year, month + delta)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _start_of(tz, year: int, month: int, day: int) -> datetime:
    return tz.localize(datetime(year, month, day))


def _end_of(tz, year: int, month: int, day: int) -> datetime:
    return tz.localize(datetime(year, month, day, 23, 59, 59, 999999))


def day_range(year: int, month: int, day: int, tz=None) -> DateRange:
    tz = tz or get_timezone()
    return DateRange(start=_start_of(tz, year, month, day), end=_end_of(tz, year, month, day))


def month_range(year: int, month: int, tz=None) -> DateRange:
    tz = tz or get_timezone()
    return DateRange(
        start=_start_of(tz, year, month, 1),
        end=_end_of(tz, year, month, last_day_of_month(year, month)),
    )


def year_range(year: int, tz=None) -> DateRange:
    tz = tz or get_timezone()
    return DateRange(start=_start_of(tz, year, 1, 1), end=_end_of(tz, year, 12, 31))


def months_range(year: int, month: int, months_back: int, tz=None) -> DateRange:
    """The `months_back` whole months ending with (year, month)."""
    first_year, first_month = shift_month(year, month, -(months_back - 1))
    return DateRange(start=month_range(first_year, first_month, tz).start, end=month_range(year, month, tz).end)


def _validate(mode: str, year: int, month: Optional[int], day: Optional[int]):
    if mode not in PERIOD_MODES:
        raise InvalidPeriodError(f"Unknown period mode '{mode}'. Expected one of: {', '.join(PERIOD_MODES)}")
    if year is None or year < 1 or year > 9998:
        raise InvalidPeriodError(f"Year must be a positive calendar year, got {year}")
    if mode in ("day", "month"):
        if month is None:
            raise InvalidPeriodError(f"Month is required for a {mode} period")
        if month < 1 or month > 12:
            raise InvalidPeriodError(f"Month must be between 1 and 12, got {month}")
    if mode == "day":
        if day is None or day < 1 or day > last_day_of_month(year, month):
            raise InvalidPeriodError(f"Day {day} does not exist in {year}-{month:02d}")


def resolve_period(mode: str, year: int, month: Optional[int] = None, day: Optional[int] = None, tz=None) -> ResolvedPeriod:
    """
    Resolve a calendar unit and the unit before it.

    Raises InvalidPeriodError for a structurally invalid selector; values are never clamped.
    """
    _validate(mode, year, month, day)
    tz = tz or get_timezone()

    if mode == "year":
        current = year_range(year, tz)
        # Year 1 has no predecessor in the proleptic calendar; compare against itself.
        previous = year_range(year - 1, tz) if year > 1 else current
        return ResolvedPeriod(mode=mode, year=year, current=current, previous=previous)

    if mode == "month":
        prev_year, prev_month = shift_month(year, month, -1)
        current = month_range(year, month, tz)
        previous = month_range(prev_year, prev_month, tz) if prev_year >= 1 else current
        return ResolvedPeriod(mode=mode, year=year, month=month, current=current, previous=previous)

    current = day_range(year, month, day, tz)
    yesterday = date(year, month, day) - timedelta(days=1) if (year, month, day) != (1, 1, 1) else date(1, 1, 1)
    previous = day_range(yesterday.year, yesterday.month, yesterday.day, tz)
    return ResolvedPeriod(mode=mode, year=year, month=month, day=day, current=current, previous=previous)


def resolve_custom_period(start: date, end: date, tz=None) -> ResolvedPeriod:
    """
    Resolve an arbitrary inclusive range of local calendar days.

    The previous range is the window of the same length ending the day before `start`.
    """
    if start is None or end is None:
        raise InvalidPeriodError("A custom period needs both a start date and an end date")
    if start > end:
        raise InvalidPeriodError(f"Start date {start.isoformat()} is after end date {end.isoformat()}")
    tz = tz or get_timezone()

    length = end - start
    previous_end = start - timedelta(days=1) if start > date(1, 1, 1) else start
    previous_start = previous_end - length if previous_end - date(1, 1, 1) >= length else date(1, 1, 1)
    return ResolvedPeriod(
        mode="custom",
        year=start.year,
        current=DateRange(start=_start_of(tz, start.year, start.month, start.day), end=_end_of(tz, end.year, end.month, end.day)),
        previous=DateRange(
            start=_start_of(tz, previous_start.year, previous_start.month, previous_start.day),
            end=_end_of(tz, previous_end.year, previous_end.month, previous_end.day),
        ),
    )


def to_local(instant: datetime, tz=None) -> datetime:
    """Express a stored instant in the reporting timezone. Naive values are taken as already local."""
    tz = tz or get_timezone()
    if instant.tzinfo is None:
        return tz.localize(instant)
    return instant.astimezone(tz)


def current_year_month(now: datetime, tz=None) -> Tuple[int, int]:
    local_now = to_local(now, tz)
    return local_now.year, local_now.month


def period_display_text(period: ResolvedPeriod) -> str:
    if period.mode == "year":
        return f"Year {period.year}"
    if period.mode == "month":
        return f"{calendar.month_name[period.month]} {period.year}"
    if period.mode == "custom":
        return f"{period.current.start.strftime('%d/%m/%Y')} - {period.current.end.strftime('%d/%m/%Y')}"
    return date(period.year, period.month, period.day).strftime("%d/%m/%Y")
