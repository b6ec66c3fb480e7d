"""Date manipulation utilities"""

import math
from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def subtract_months(moment: datetime, months: int) -> datetime:
    """
    Move back a number of calendar months, keeping day and time of day.

    A day that does not exist in the target month rolls over into the next
    month (May 31 minus 3 months is March 3, or March 2 in a leap year).
    """
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    first_of_month = moment.replace(year=year, month=month + 1, day=1)
    return first_of_month + timedelta(days=moment.day - 1)


def hours_between(earlier: datetime, later: datetime) -> float:
    """Signed number of hours from earlier to later"""
    return (later - earlier).total_seconds() / 3600


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3, -2.5 -> -2)"""
    return int(math.floor(value + 0.5))
