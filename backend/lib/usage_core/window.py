# backend/lib/usage_core/window.py
"""
Local-day windows for the provider query.

The household is billed in JST (UTC+9). The provider speaks UTC, so a local
calendar day D maps to the UTC range [D 00:00 - 9h, D 23:59:59 - 9h]. The
provider does not promise inclusive bounds, so every reading is re-checked
against the local day with is_on_local_day() before it is summed.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional

JST = timezone(timedelta(hours=9), 'JST')


@dataclass(frozen=True)
class TimeWindow:
    target_date: date
    start_utc: datetime
    end_utc: datetime

    @property
    def start_iso(self) -> str:
        return self.start_utc.isoformat()

    @property
    def end_iso(self) -> str:
        return self.end_utc.isoformat()


def yesterday(now: Optional[datetime] = None) -> date:
    """Yesterday's local date relative to `now` (defaults to the current instant)."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(JST).date() - timedelta(days=1)


def resolve_window(target_date: Optional[date] = None, now: Optional[datetime] = None) -> TimeWindow:
    if target_date is None:
        target_date = yesterday(now)
    local_midnight = datetime.combine(target_date, time.min, tzinfo=JST)
    start_utc = local_midnight.astimezone(timezone.utc)
    end_utc = (local_midnight + timedelta(days=1) - timedelta(seconds=1)).astimezone(timezone.utc)
    return TimeWindow(target_date=target_date, start_utc=start_utc, end_utc=end_utc)


def local_day_of(ts: datetime) -> date:
    # naive timestamps are UTC on the wire
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(JST).date()


def is_on_local_day(ts: datetime, target_date: date) -> bool:
    return local_day_of(ts) == target_date


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end, both inclusive."""
    if start > end:
        raise ValueError(f"Range start {start} is after range end {end}")
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)
