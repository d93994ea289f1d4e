"""Date parsing utilities."""

from datetime import date, timedelta
import re

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and the
    relative forms "today", "yesterday", "tomorrow" and
    "last/this/next month" (first day of that month).

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
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this month": today.replace(day=1),
        "next month": (today + relativedelta(months=1)).replace(day=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def month_period(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    start = date(year, month, 1)
    return start, start + relativedelta(months=1) - timedelta(days=1)


def parse_period(period: str) -> tuple[date, date]:
    """Parse a payroll period into (start_date, end_date).

    Accepts "YYYY-MM", "MM/YYYY", "this-month", "last-month" and
    "next-month".

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return month_period(today.year, today.month)
    elif period == "last-month":
        previous = today - relativedelta(months=1)
        return month_period(previous.year, previous.month)
    elif period == "next-month":
        following = today + relativedelta(months=1)
        return month_period(following.year, following.month)

    match = re.fullmatch(r"(\d{4})-(\d{1,2})", period) or re.fullmatch(r"(\d{1,2})/(\d{4})", period)
    if match is None:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: YYYY-MM, MM/YYYY, "
            "this-month, last-month, next-month"
        )
    first, second = match.groups()
    year, month = (int(first), int(second)) if len(first) == 4 else (int(second), int(first))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month in period '{period}'")
    return month_period(year, month)
