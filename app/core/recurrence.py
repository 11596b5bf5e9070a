"""Occurrence arithmetic for recurring transactions.

``next_occurrence`` is the single place where a template's schedule is
advanced. It is pure: the same reference date, frequency and interval always
give the same result, and the result is always strictly after the reference.
"""

import calendar
from datetime import date, timedelta
from typing import Iterator, Optional

from .errors import InvalidFrequency, InvalidInterval


DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"

FREQUENCIES = (DAILY, WEEKLY, MONTHLY, YEARLY)


def add_months(d: date, months: int) -> date:
    """Shift ``d`` by whole calendar months, clamping to the month's last day.

    add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    """
    index = d.year * 12 + (d.month - 1) + months
    y, m = divmod(index, 12)
    m += 1
    last = calendar.monthrange(y, m)[1]
    return date(y, m, min(d.day, last))


def _check_interval(interval) -> int:
    # bool is an int subclass; True is not a valid interval
    if isinstance(interval, bool) or not isinstance(interval, int):
        raise InvalidInterval(f"Interval must be a positive integer, got {interval!r}")
    if interval <= 0:
        raise InvalidInterval(f"Interval must be a positive integer, got {interval}")
    return interval


def next_occurrence(reference_date: date, frequency: str, interval: int = 1) -> date:
    interval = _check_interval(interval)
    if frequency not in FREQUENCIES:
        raise InvalidFrequency(f"Unknown frequency {frequency!r}; expected one of {', '.join(FREQUENCIES)}")

    try:
        if frequency == DAILY:
            return reference_date + timedelta(days=interval)
        if frequency == WEEKLY:
            return reference_date + timedelta(weeks=interval)
        if frequency == MONTHLY:
            return add_months(reference_date, interval)
        return add_months(reference_date, 12 * interval)
    except (OverflowError, ValueError) as e:
        raise InvalidInterval(
            f"Interval {interval} {frequency} from {reference_date.isoformat()} is past the last supported date"
        ) from e


def iter_occurrences(
    start: date,
    frequency: str,
    interval: int = 1,
    end: Optional[date] = None,
) -> Iterator[date]:
    """Yield ``start`` and each following occurrence, stopping after ``end``."""
    current = start
    while end is None or current <= end:
        yield current
        current = next_occurrence(current, frequency, interval)
