# backend/lib/usage_core/models.py
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Union

KWH_PLACES = Decimal('0.001')
COST_PLACES = Decimal('0.01')


def quantize_kwh(value) -> Decimal:
    return Decimal(str(value)).quantize(KWH_PLACES, rounding=ROUND_HALF_UP)


def quantize_cost(value) -> Decimal:
    return Decimal(str(value)).quantize(COST_PLACES, rounding=ROUND_HALF_UP)


@dataclass
class IntervalReading:
    start_at: datetime
    # raw value from the provider (numeric string or number), summed as-is
    value: Union[str, int, float, None]


@dataclass(frozen=True)
class DailyUsageRecord:
    date: date
    kwh: Decimal
    estimated_cost: Decimal

    @classmethod
    def create(cls, day: date, kwh, estimated_cost) -> "DailyUsageRecord":
        """Build a record rounded to the persisted precision (kWh 3 places, cost 2 places)."""
        return cls(date=day, kwh=quantize_kwh(kwh), estimated_cost=quantize_cost(estimated_cost))

    def to_dict(self) -> Dict[str, str]:
        return {
            'date': self.date.isoformat(),
            'kwh': str(self.kwh),
            'estimated_cost': str(self.estimated_cost),
        }


@dataclass(frozen=True)
class BillingCycle:
    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class BillingCycleSummary:
    start: date
    end: date
    total_kwh: Decimal
    total_cost: Decimal
    days_recorded: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'total_kwh': str(self.total_kwh),
            'total_cost': str(self.total_cost),
            'days_recorded': self.days_recorded,
        }
