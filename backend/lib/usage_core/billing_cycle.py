# backend/lib/usage_core/billing_cycle.py
from datetime import date, timedelta
from decimal import Decimal
from .models import BillingCycle, BillingCycleSummary

DEFAULT_BOUNDARY_DAY = 23


def _month_day(year: int, month: int, day: int) -> date:
    """date() that lets month run past 1..12 and rolls the year accordingly."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return date(year, month, day)


def billing_cycle_for(day: date, boundary_day: int = DEFAULT_BOUNDARY_DAY) -> BillingCycle:
    """
    Cycle that contains `day`: from boundary_day of one month to the day
    before boundary_day of the next.

    2024-03-10 -> [2024-02-23, 2024-03-22]
    2024-03-23 -> [2024-03-23, 2024-04-22]
    """
    if not 1 <= boundary_day <= 28:
        raise ValueError("boundary_day must be between 1 and 28")
    if day.day < boundary_day:
        start = _month_day(day.year, day.month - 1, boundary_day)
    else:
        start = date(day.year, day.month, boundary_day)
    end = _month_day(start.year, start.month + 1, boundary_day) - timedelta(days=1)
    return BillingCycle(start=start, end=end)


def summarize(store, cycle: BillingCycle) -> BillingCycleSummary:
    """
    Sum the stored daily records inside the cycle. Days without a record
    add nothing, so a cycle in progress under-reports.
    """
    records = store.query_range(cycle.start, cycle.end)
    total_kwh = sum((r.kwh for r in records), Decimal('0'))
    total_cost = sum((r.estimated_cost for r in records), Decimal('0'))
    return BillingCycleSummary(
        start=cycle.start,
        end=cycle.end,
        total_kwh=total_kwh,
        total_cost=total_cost,
        days_recorded=len(records),
    )
