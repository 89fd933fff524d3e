# backend/lib/usage_core/estimator.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict

ZERO = Decimal('0')


@dataclass(frozen=True)
class TieredTariff:
    """
    Three-band progressive schedule plus a fixed base charge, in JPY.

    Band 1 covers the first tier1_limit kWh, band 2 runs up to tier2_limit kWh,
    band 3 is everything above tier2_limit.
    """
    base_charge: Decimal = Decimal('29.10')
    tier1_limit: Decimal = Decimal('120')
    tier2_limit: Decimal = Decimal('300')
    rate_tier1: Decimal = Decimal('20.62')
    rate_tier2: Decimal = Decimal('25.29')
    rate_tier3: Decimal = Decimal('27.44')

    def __post_init__(self):
        for name in ('base_charge', 'tier1_limit', 'tier2_limit', 'rate_tier1', 'rate_tier2', 'rate_tier3'):
            value = Decimal(str(getattr(self, name)))
            if not value.is_finite():
                raise ValueError(f"{name} must be a finite number")
            if value < 0:
                raise ValueError(f"{name} must be >= 0")
            object.__setattr__(self, name, value)
        if self.tier1_limit > self.tier2_limit:
            raise ValueError("tier1_limit must not exceed tier2_limit")


class BillingEstimator:
    def __init__(self, tariff: TieredTariff = None):
        self.tariff = tariff or TieredTariff()

    def breakdown(self, total_kwh) -> Dict[str, Decimal]:
        """
        Per-band amounts (unrounded) for total_kwh:
        {'base': ..., 'tier1': ..., 'tier2': ..., 'tier3': ...}
        """
        t = self.tariff
        kwh = Decimal(str(total_kwh))
        tier1_units = max(min(kwh, t.tier1_limit), ZERO)
        tier2_units = min(max(kwh - t.tier1_limit, ZERO), t.tier2_limit - t.tier1_limit)
        tier3_units = max(kwh - t.tier2_limit, ZERO)
        return {
            'base': t.base_charge,
            'tier1': tier1_units * t.rate_tier1,
            'tier2': tier2_units * t.rate_tier2,
            'tier3': tier3_units * t.rate_tier3,
        }

    def estimate_cost(self, total_kwh) -> Decimal:
        """
        total_kwh: energy for the period (Decimal, str or number)
        returns base charge plus banded energy charges rounded to 2 decimals
        """
        cost = sum(self.breakdown(total_kwh).values(), ZERO)
        # round half up, not banker's rounding
        return cost.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
