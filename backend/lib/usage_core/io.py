# backend/lib/usage_core/io.py
from datetime import datetime, timezone
from typing import Iterable, List, Mapping
from .errors import MalformedReadingError
from .models import IntervalReading


def parse_timestamp(text: str) -> datetime:
    """
    Parse an ISO8601 timestamp as sent by the provider, e.g. 2024-01-14T15:00:00Z
    or 2024-01-14T15:00:00+00:00. Naive timestamps are taken as UTC.
    """
    # Convert timestamp with Z to +00:00 for fromisoformat
    ts = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def parse_readings(items: Iterable[Mapping]) -> List[IntervalReading]:
    """
    Turn the provider's halfHourlyReadings list ({startAt, value} objects)
    into IntervalReading objects. The value is kept as sent; sum_kwh decides
    what to do with it.
    """
    readings = []
    for item in items:
        start_at = item.get('startAt') if isinstance(item, Mapping) else None
        if not start_at:
            raise MalformedReadingError(f"Missing startAt in reading: {item}")
        try:
            timestamp = parse_timestamp(str(start_at))
        except ValueError as e:
            raise MalformedReadingError(f"Unparseable startAt {start_at!r}") from e
        readings.append(IntervalReading(start_at=timestamp, value=item.get('value')))
    return readings
