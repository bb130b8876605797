from datetime import date, datetime

import pytest

from utils.periods import (
    InvalidPeriodError,
    current_year_month,
    get_timezone,
    month_range,
    months_range,
    normalize_month,
    period_display_text,
    resolve_custom_period,
    resolve_period,
    shift_month,
    to_local,
)
from conftest import IST, ist


def test_month_period_covers_whole_month_and_previous_month() -> None:
    period = resolve_period("month", 2024, 3, tz=IST)

    assert period.current.start == ist(2024, 3, 1, 0, 0)
    assert period.current.end.date() == date(2024, 3, 31)
    assert period.current.end.hour == 23 and period.current.end.minute == 59
    assert period.previous.start == ist(2024, 2, 1, 0, 0)
    assert period.previous.end.date() == date(2024, 2, 29)


def test_january_compares_against_december_of_previous_year() -> None:
    period = resolve_period("month", 2024, 1, tz=IST)
    assert period.previous.start.date() == date(2023, 12, 1)
    assert period.previous.end.date() == date(2023, 12, 31)


def test_year_period_and_previous_year() -> None:
    period = resolve_period("year", 2023, tz=IST)
    assert period.current.start.date() == date(2023, 1, 1)
    assert period.current.end.date() == date(2023, 12, 31)
    assert period.previous.start.date() == date(2022, 1, 1)
    assert len(period.current.months()) == 12


def test_day_period_previous_day_crosses_month_boundary() -> None:
    period = resolve_period("day", 2024, 3, 1, tz=IST)
    assert period.current.days() == [date(2024, 3, 1)]
    assert period.previous.days() == [date(2024, 2, 29)]


@pytest.mark.parametrize("year,days", [(2024, 29), (2023, 28), (2000, 29), (1900, 28)])
def test_february_length_follows_leap_years(year, days) -> None:
    assert len(month_range(year, 2, IST).days()) == days


@pytest.mark.parametrize(
    "mode,year,month,day",
    [
        ("month", 2024, 0, None),
        ("month", 2024, 13, None),
        ("month", 2024, None, None),
        ("day", 2023, 2, 29),
        ("year", 0, None, None),
        ("week", 2024, 1, None),
    ],
)
def test_invalid_selectors_are_rejected_not_clamped(mode, year, month, day) -> None:
    with pytest.raises(InvalidPeriodError):
        resolve_period(mode, year, month, day, tz=IST)


def test_invalid_period_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        resolve_period("month", 2024, 14)


def test_month_arithmetic_wraps_years() -> None:
    assert normalize_month(2024, 13) == (2025, 1)
    assert normalize_month(2024, 0) == (2023, 12)
    assert shift_month(2024, 3, -12) == (2023, 3)
    assert shift_month(2024, 11, 3) == (2025, 2)


def test_months_range_spans_trailing_whole_months() -> None:
    window = months_range(2024, 2, 3, IST)
    assert window.start.date() == date(2023, 12, 1)
    assert window.end.date() == date(2024, 2, 29)
    assert window.months() == [date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)]


def test_to_local_treats_naive_values_as_local() -> None:
    naive = datetime(2024, 3, 31, 23, 30)
    assert to_local(naive, IST) == ist(2024, 3, 31, 23, 30)


def test_current_year_month_uses_reporting_timezone() -> None:
    # 20:00 UTC on the last day of March is already April in India
    now = get_timezone("UTC").localize(datetime(2024, 3, 31, 20, 0))
    assert current_year_month(now, IST) == (2024, 4)
    assert current_year_month(now, get_timezone("UTC")) == (2024, 3)


def test_unknown_timezone_is_rejected() -> None:
    with pytest.raises(InvalidPeriodError):
        get_timezone("Mars/Olympus_Mons")


def test_display_text() -> None:
    assert period_display_text(resolve_period("month", 2024, 3, tz=IST)) == "March 2024"
    assert period_display_text(resolve_period("year", 2024, tz=IST)) == "Year 2024"
    assert period_display_text(resolve_period("day", 2024, 3, 5, tz=IST)) == "05/03/2024"


def test_custom_period_across_month_boundary() -> None:
    period = resolve_custom_period(date(2024, 2, 25), date(2024, 3, 5), tz=IST)

    assert period.mode == "custom"
    assert period.current.start == ist(2024, 2, 25, 0, 0)
    assert period.current.end.date() == date(2024, 3, 5)
    assert (period.current.end.hour, period.current.end.minute, period.current.end.second) == (23, 59, 59)
    assert period.current.end.microsecond >= 999000
    assert period.current.days()[4:6] == [date(2024, 2, 29), date(2024, 3, 1)]
    assert len(period.current.days()) == 10
    assert (period.previous.days()[0], period.previous.days()[-1]) == (date(2024, 2, 15), date(2024, 2, 24))
    assert len(period.previous.days()) == 10
    assert period_display_text(period) == "25/02/2024 - 05/03/2024"


def test_single_day_custom_period_compares_against_the_day_before() -> None:
    period = resolve_custom_period(date(2024, 3, 1), date(2024, 3, 1), tz=IST)
    assert period.current.days() == [date(2024, 3, 1)]
    assert period.previous.days() == [date(2024, 2, 29)]


def test_custom_period_rejects_reversed_range() -> None:
    with pytest.raises(InvalidPeriodError):
        resolve_custom_period(date(2024, 3, 5), date(2024, 2, 25), tz=IST)
    with pytest.raises(InvalidPeriodError):
        resolve_custom_period(None, date(2024, 2, 25), tz=IST)
