# tests/test_window.py
from backend.lib.usage_core.window import (
    iter_dates,
    is_on_local_day,
    local_day_of,
    resolve_window,
    yesterday,
)
from datetime import date, datetime, timedelta, timezone
import pytest


def test_resolve_window_for_explicit_date():
    window = resolve_window(date(2024, 1, 15))
    assert window.target_date == date(2024, 1, 15)
    assert window.start_utc == datetime(2024, 1, 14, 15, 0, 0, tzinfo=timezone.utc)
    assert window.end_utc == datetime(2024, 1, 15, 14, 59, 59, tzinfo=timezone.utc)
    assert window.start_iso == "2024-01-14T15:00:00+00:00"


def test_resolve_window_crosses_year_boundary():
    window = resolve_window(date(2024, 1, 1))
    assert window.start_utc == datetime(2023, 12, 31, 15, 0, tzinfo=timezone.utc)


def test_default_is_yesterday_in_jst():
    # 2024-03-01 16:00 UTC is already 2024-03-02 01:00 JST
    now = datetime(2024, 3, 1, 16, 0, tzinfo=timezone.utc)
    assert yesterday(now) == date(2024, 3, 1)
    assert resolve_window(now=now).target_date == date(2024, 3, 1)


def test_reading_at_utc_1500_belongs_to_next_local_day():
    ts = datetime(2024, 1, 14, 15, 0, tzinfo=timezone.utc)
    assert local_day_of(ts) == date(2024, 1, 15)
    assert is_on_local_day(ts, date(2024, 1, 15))
    assert not is_on_local_day(ts - timedelta(seconds=1), date(2024, 1, 15))


def test_naive_timestamp_is_treated_as_utc():
    assert local_day_of(datetime(2024, 1, 14, 15, 0)) == date(2024, 1, 15)


def test_iter_dates_is_inclusive():
    days = list(iter_dates(date(2024, 2, 28), date(2024, 3, 1)))
    assert days == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]


def test_iter_dates_rejects_reversed_range():
    with pytest.raises(ValueError):
        list(iter_dates(date(2024, 1, 3), date(2024, 1, 1)))
