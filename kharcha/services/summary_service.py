import math
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime

from kharcha.db.models import Expense
from kharcha.periods import in_month, in_recent_window, period_id, previous_period_id


def sum_by_category(expenses: Iterable[Expense]) -> dict[str, float]:
    buckets: dict[str, list[float]] = defaultdict(list)
    for e in expenses:
        buckets[e.category].append(e.amount)
    # fsum keeps totals independent of input order
    return {category: math.fsum(amounts) for category, amounts in buckets.items()}


def current_period_filter(expenses: Iterable[Expense], now: datetime) -> list[Expense]:
    return [e for e in expenses if in_month(e.date, now)]


def recent_window_filter(expenses: Iterable[Expense], now: datetime, days: int = 30) -> list[Expense]:
    return [e for e in expenses if in_recent_window(e.date, now, days)]


def total(expenses: Iterable[Expense]) -> float:
    return math.fsum(e.amount for e in expenses)


def monthly_totals(expenses: Iterable[Expense]) -> dict[str, float]:
    buckets: dict[str, list[float]] = defaultdict(list)
    for e in expenses:
        buckets[period_id(e.date)].append(e.amount)
    return {month: math.fsum(buckets[month]) for month in sorted(buckets)}


def month_over_month_change(expenses: Iterable[Expense], now: datetime) -> float:
    """Percentage change of this month's spend over last month's; 0 when either is missing."""
    totals = monthly_totals(expenses)
    current = totals.get(period_id(now))
    previous = totals.get(previous_period_id(now))
    if not current or not previous:
        return 0.0
    return (current - previous) / previous * 100


def average_monthly_spend(expenses: Iterable[Expense]) -> float:
    totals = monthly_totals(expenses)
    if not totals:
        return 0.0
    return math.fsum(totals.values()) / len(totals)


def top_categories(expenses: Iterable[Expense], now: datetime, limit: int = 5) -> list[dict]:
    sums = sum_by_category(current_period_filter(expenses, now))
    ranked = sorted(sums.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"category": c, "total": t} for c, t in ranked[:limit]]


def spending_summary(expenses: list[Expense], now: datetime) -> dict:
    this_month = current_period_filter(expenses, now)
    last_30 = recent_window_filter(expenses, now, 30)
    return {
        "total": total(expenses),
        "month_total": total(this_month),
        "last_30_days": total(last_30),
        "count": len(expenses),
        "month_over_month": month_over_month_change(expenses, now),
        "average_monthly": average_monthly_spend(expenses),
        "top_categories": top_categories(expenses, now),
    }
