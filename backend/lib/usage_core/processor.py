# backend/lib/usage_core/processor.py
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List
from .errors import MalformedReadingError
from .models import IntervalReading
from .window import is_on_local_day


class EnergyAnalyzer:
    def __init__(self, strict: bool = False):
        """
        strict: when True a reading whose value is not a number fails the day
        with MalformedReadingError. When False (the default) such a value
        counts as 0 kWh and is reported on the console.
        """
        self.strict = strict

    def filter_to_local_day(self, readings: List[IntervalReading], target_date: date) -> List[IntervalReading]:
        """
        Keeps readings whose start falls on target_date in local time.
        Order is preserved; the query window over-fetches, so drops are expected.
        """
        return [r for r in readings if is_on_local_day(r.start_at, target_date)]

    def sum_kwh(self, readings: List[IntervalReading]) -> Decimal:
        """Arithmetic sum of the interval values, negatives included."""
        total = Decimal('0')
        for r in readings:
            total += self._to_decimal(r)
        return total

    def daily_total(self, readings: List[IntervalReading], target_date: date) -> Decimal:
        return self.sum_kwh(self.filter_to_local_day(readings, target_date))

    def _to_decimal(self, reading: IntervalReading) -> Decimal:
        raw = reading.value
        try:
            if isinstance(raw, bool) or raw is None:
                raise InvalidOperation
            value = Decimal(str(raw).strip())
            if not value.is_finite():
                raise InvalidOperation
            return value
        except InvalidOperation:
            if self.strict:
                raise MalformedReadingError(
                    f"Non-numeric value {raw!r} at {reading.start_at.isoformat()}"
                )
            print(f"Non-numeric value {raw!r} at {reading.start_at.isoformat()} counted as 0 kWh")
            return Decimal('0')
