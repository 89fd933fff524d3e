"""
Daily fetch pipeline.

For each local date:
    account lookup -> readings -> local-day filter + sum -> tariff estimate
    -> store upsert -> billing-cycle summary -> LINE report

The provider token is requested once per run. In range mode every date runs
on its own: a failed date is reported and the loop moves on, sleeping
`delay_seconds` between dates so the provider is not hit in a burst.
"""

import time
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, List, Optional

from backend.lib.config import Settings
from backend.lib.usage_core.billing_cycle import DEFAULT_BOUNDARY_DAY, billing_cycle_for, summarize
from backend.lib.usage_core.errors import (
    AccountLookupError,
    AuthError,
    MalformedReadingError,
    ReadingsFetchError,
)
from backend.lib.usage_core.estimator import BillingEstimator
from backend.lib.usage_core.models import BillingCycleSummary, DailyUsageRecord
from backend.lib.usage_core.processor import EnergyAnalyzer
from backend.lib.usage_core.window import iter_dates, resolve_window

EXIT_OK = 0
EXIT_FAILURE = 1


class DateStatus(Enum):
    PERSISTED = "persisted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class DateResult:
    target_date: date
    status: DateStatus
    record: Optional[DailyUsageRecord] = None
    summary: Optional[BillingCycleSummary] = None
    notified: bool = False
    error: Optional[str] = None


class UsageOrchestrator:
    def __init__(self, reader, store, notifier, estimator: BillingEstimator,
                 email: str, password: str,
                 analyzer: Optional[EnergyAnalyzer] = None,
                 billing_cycle_day: int = DEFAULT_BOUNDARY_DAY,
                 delay_seconds: float = 5.0,
                 sleep: Callable[[float], None] = time.sleep,
                 notify: bool = True):
        """
        reader: KrakenService-like (obtain_token, get_account_number, get_half_hourly_readings)
        store: LocalUsageStore / DynamoDBUsageStore (upsert, query_range)
        notifier: LineService-like (send_daily_report) or None
        delay_seconds / sleep: pause between dates in range mode
        """
        self.reader = reader
        self.store = store
        self.notifier = notifier
        self.estimator = estimator
        self.email = email
        self.password = password
        self.analyzer = analyzer or EnergyAnalyzer()
        self.billing_cycle_day = billing_cycle_day
        self.delay_seconds = delay_seconds
        self.sleep = sleep
        self.notify = notify

    def _acquire_token(self) -> Optional[str]:
        try:
            return self.reader.obtain_token(self.email, self.password)
        except AuthError as e:
            print(f"❌ Token request failed: {e}")
            return None

    def process_date(self, token: str, target_date: date) -> DateResult:
        window = resolve_window(target_date)
        print(f"\n🕒 UTC window: {window.start_iso} ~ {window.end_iso}")
        print(f"🗓 Local date: {target_date.isoformat()} (00:00 ~ 23:59 JST)")

        try:
            account_number = self.reader.get_account_number(token)
            readings = self.reader.get_half_hourly_readings(
                token, account_number, window.start_utc, window.end_utc
            )
            if not readings:
                print(f"⚠️ No readings for {target_date.isoformat()} yet, skipping")
                return DateResult(target_date, DateStatus.SKIPPED)

            day_readings = self.analyzer.filter_to_local_day(readings, target_date)
            if not day_readings:
                print(f"⚠️ No readings on local day {target_date.isoformat()}, skipping")
                return DateResult(target_date, DateStatus.SKIPPED)
            total_kwh = self.analyzer.sum_kwh(day_readings)
        except (AccountLookupError, ReadingsFetchError, MalformedReadingError) as e:
            print(f"❌ {target_date.isoformat()}: {e}")
            return DateResult(target_date, DateStatus.FAILED, error=str(e))

        record = DailyUsageRecord.create(target_date, total_kwh, self.estimator.estimate_cost(total_kwh))
        print(f"✅ {target_date.isoformat()}: {record.kwh} kWh from {len(day_readings)} readings, "
              f"estimated {record.estimated_cost} JPY")

        if not self.store.upsert(record.date, record.kwh, record.estimated_cost):
            print(f"❌ {target_date.isoformat()}: could not store usage")
            return DateResult(target_date, DateStatus.FAILED, record=record, error="store write failed")

        summary = summarize(self.store, billing_cycle_for(target_date, self.billing_cycle_day))
        print(f"📊 Billing cycle {summary.start} ~ {summary.end}: "
              f"{summary.total_kwh} kWh, {summary.total_cost} JPY ({summary.days_recorded} days)")

        notified = False
        if self.notify and self.notifier is not None:
            notified = self.notifier.send_daily_report(record, summary)

        return DateResult(target_date, DateStatus.PERSISTED, record=record, summary=summary, notified=notified)

    def run_date(self, target_date: Optional[date] = None) -> int:
        """Single-day run; yesterday (JST) when no date is given. Returns the exit code."""
        if target_date is None:
            target_date = resolve_window().target_date

        token = self._acquire_token()
        if token is None:
            return EXIT_FAILURE

        result = self.process_date(token, target_date)
        return EXIT_FAILURE if result.status is DateStatus.FAILED else EXIT_OK

    def run_range(self, start: date, end: date) -> int:
        """Inclusive backfill. Returns 1 if the token failed or any date failed."""
        dates = list(iter_dates(start, end))

        token = self._acquire_token()
        if token is None:
            return EXIT_FAILURE

        results: List[DateResult] = []
        for i, day in enumerate(dates):
            if i > 0 and self.delay_seconds > 0:
                self.sleep(self.delay_seconds)
            results.append(self.process_date(token, day))

        failed = [r.target_date.isoformat() for r in results if r.status is DateStatus.FAILED]
        persisted = sum(1 for r in results if r.status is DateStatus.PERSISTED)
        skipped = sum(1 for r in results if r.status is DateStatus.SKIPPED)
        print(f"\nRange {start} ~ {end}: {persisted} stored, {skipped} skipped, {len(failed)} failed")
        if failed:
            print(f"Failed dates: {', '.join(failed)}")
            return EXIT_FAILURE
        return EXIT_OK


def build_orchestrator(settings: Settings, notify: bool = True,
                       delay_seconds: Optional[float] = None) -> UsageOrchestrator:
    """
    Wire the production components from one Settings object.

    Raises:
        ConfigError: provider credentials are missing
    """
    from backend.lib.kraken_service import KrakenService
    from backend.lib.line_service import LineService
    from backend.lib.usage_store import build_usage_store

    settings.require_provider_credentials()

    return UsageOrchestrator(
        reader=KrakenService(settings.kraken_api_url, timeout=settings.http_timeout_seconds),
        store=build_usage_store(settings),
        notifier=LineService(settings.line_channel_token, settings.line_user_id,
                             timeout=settings.http_timeout_seconds),
        estimator=BillingEstimator(settings.tariff),
        email=settings.octopus_email,
        password=settings.octopus_password,
        analyzer=EnergyAnalyzer(strict=settings.strict_readings),
        billing_cycle_day=settings.billing_cycle_day,
        delay_seconds=settings.range_delay_seconds if delay_seconds is None else delay_seconds,
        notify=notify,
    )
