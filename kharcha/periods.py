from calendar import monthrange
from datetime import datetime, timedelta


def month_window(now: datetime) -> tuple[datetime, datetime]:
    """First and last instant of the calendar month containing now."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_day = monthrange(now.year, now.month)[1]
    end = now.replace(day=last_day, hour=23, minute=59, second=59, microsecond=999999)
    return start, end


def year_window(now: datetime) -> tuple[datetime, datetime]:
    start = now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    end = now.replace(month=12, day=31, hour=23, minute=59, second=59, microsecond=999999)
    return start, end


def period_id(now: datetime) -> str:
    return f"{now.year:04d}-{now.month:02d}"


def previous_period_id(now: datetime) -> str:
    if now.month == 1:
        return f"{now.year - 1:04d}-12"
    return f"{now.year:04d}-{now.month - 1:02d}"


def in_month(moment: datetime, now: datetime) -> bool:
    return moment.year == now.year and moment.month == now.month


def in_year(moment: datetime, now: datetime) -> bool:
    return moment.year == now.year


def in_recent_window(moment: datetime, now: datetime, days: int) -> bool:
    return now - timedelta(days=days) <= moment <= now


def add_months(moment: datetime, months: int, anchor_day: int | None = None) -> datetime:
    """Shift by whole calendar months, clamping the day to the target month's length.

    anchor_day is the preferred day-of-month; it lets a series that was clamped
    (Jan 31 -> Feb 28) return to the 31st in longer months.
    """
    total = moment.month - 1 + months
    year = moment.year + total // 12
    month = total % 12 + 1
    day = min(anchor_day or moment.day, monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
