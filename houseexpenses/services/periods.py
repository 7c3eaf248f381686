"""Period window arithmetic for budgets and dashboards.

Windows are inclusive ``(start, end)`` date pairs: weeks start on Monday,
months and years follow the calendar.
"""
import calendar
from datetime import date, timedelta

from ..errors import InvalidPeriodError


def window_for(period: str, reference_date: date) -> tuple[date, date]:
    """Return the inclusive window of ``period`` containing ``reference_date``."""
    if period == "weekly":
        start = reference_date - timedelta(days=reference_date.weekday())
        return start, start + timedelta(days=6)
    if period == "monthly":
        last_day = calendar.monthrange(reference_date.year, reference_date.month)[1]
        return reference_date.replace(day=1), reference_date.replace(day=last_day)
    if period == "annual":
        return date(reference_date.year, 1, 1), date(reference_date.year, 12, 31)
    raise InvalidPeriodError(f"Unknown period: {period!r}")


def days_remaining(period: str, reference_date: date) -> int:
    """Whole days from ``reference_date`` to the end of its window (0 on the last day)."""
    _, end = window_for(period, reference_date)
    return (end - reference_date).days
