"""
Billing interval vocabulary and expiry arithmetic.

One canonical vocabulary (day, week, month, quarter, year) is used by plan
storage, purchase confirmation and renewal. Legacy spellings such as
"monthly" or "yearly" are normalised on the way in.

Calendar months clamp to the last day of the target month:
2024-01-31 + 1 month -> 2024-02-29, 2024-02-29 + 1 year -> 2025-02-28.
"""
import calendar
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Union


class BillingInterval(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


DEFAULT_INTERVAL = BillingInterval.MONTH

INTERVAL_ALIASES = {
    "day": BillingInterval.DAY,
    "daily": BillingInterval.DAY,
    "week": BillingInterval.WEEK,
    "weekly": BillingInterval.WEEK,
    "month": BillingInterval.MONTH,
    "monthly": BillingInterval.MONTH,
    "quarter": BillingInterval.QUARTER,
    "quarterly": BillingInterval.QUARTER,
    "year": BillingInterval.YEAR,
    "yearly": BillingInterval.YEAR,
    "annual": BillingInterval.YEAR,
    "annually": BillingInterval.YEAR,
}


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_interval(value: Union[str, BillingInterval, None]) -> BillingInterval:
    """Map any accepted spelling to the canonical interval; unknown -> month."""
    if isinstance(value, BillingInterval):
        return value
    if not value:
        return DEFAULT_INTERVAL
    return INTERVAL_ALIASES.get(str(value).strip().lower(), DEFAULT_INTERVAL)


def add_months(start: datetime, months: int) -> datetime:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def add_interval(start: datetime, interval: Union[str, BillingInterval, None], count: int = 1) -> datetime:
    """
    Compute the end of ``count`` billing periods starting at ``start``.

    Args:
        start: Period start (time of day is preserved)
        interval: Interval in any accepted spelling; unknown values bill monthly
        count: Number of periods

    Returns:
        Period end datetime
    """
    interval = normalize_interval(interval)

    if interval == BillingInterval.DAY:
        return start + timedelta(days=count)
    if interval == BillingInterval.WEEK:
        return start + timedelta(weeks=count)
    if interval == BillingInterval.QUARTER:
        return add_months(start, 3 * count)
    if interval == BillingInterval.YEAR:
        return add_months(start, 12 * count)
    return add_months(start, count)
