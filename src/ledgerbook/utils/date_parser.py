"""Date parsing utilities."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


PERIODS = (
    "this-month",
    "last-month",
    "this-quarter",
    "last-quarter",
    "this-year",
    "last-year",
)


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-03-15", "March 15, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    "last/this/next month|year" resolve to the first day of that month or year.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def month_range(year: int, month: int) -> tuple[date, date]:
    """Return the first and last day of a calendar month."""
    start = date(year, month, 1)
    return start, start + relativedelta(months=1) - timedelta(days=1)


def quarter_range(year: int, quarter: int) -> tuple[date, date]:
    """Return the first and last day of a calendar quarter (1-4)."""
    if quarter not in (1, 2, 3, 4):
        raise ValueError(f"Quarter must be 1-4, got {quarter}")
    start = date(year, 3 * (quarter - 1) + 1, 1)
    return start, start + relativedelta(months=3) - timedelta(days=1)


def get_date_range(period: str, today: date | None = None) -> tuple[date, date]:
    """Get start and end dates for an accounting period.

    Periods always cover whole calendar units, so "this-month" ends on the
    last day of the month rather than today.

    Args:
        period: A named period (this-month, last-month, this-quarter,
            last-quarter, this-year, last-year), or an explicit one:
            "2024" (year), "2024-03" (month) or "2024-Q1" (quarter)
        today: Reference date for named periods (defaults to today)

    Returns:
        Tuple of (start_date, end_date), both inclusive

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()
    current_quarter = (today.month - 1) // 3 + 1

    if period == "this-month":
        return month_range(today.year, today.month)

    elif period == "last-month":
        previous = today.replace(day=1) - timedelta(days=1)
        return month_range(previous.year, previous.month)

    elif period == "this-quarter":
        return quarter_range(today.year, current_quarter)

    elif period == "last-quarter":
        if current_quarter == 1:
            return quarter_range(today.year - 1, 4)
        return quarter_range(today.year, current_quarter - 1)

    elif period == "this-year":
        return date(today.year, 1, 1), date(today.year, 12, 31)

    elif period == "last-year":
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)

    match = re.fullmatch(r"(\d{4})(?:-(?:(\d{1,2})|q([1-4])))?", period)
    if match:
        year = int(match.group(1))
        if match.group(2):
            month = int(match.group(2))
            if not 1 <= month <= 12:
                raise ValueError(f"Invalid month in period '{period}'")
            return month_range(year, month)
        if match.group(3):
            return quarter_range(year, int(match.group(3)))
        return date(year, 1, 1), date(year, 12, 31)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}, "
        "YYYY, YYYY-MM, YYYY-Qn"
    )
