"""
Daily usage storage.

Two backends share one small interface:

    upsert(day, kwh, estimated_cost) -> bool
    query_range(start, end) -> list of DailyUsageRecord, oldest first

LocalUsageStore keeps records in a JSON Lines file next to the app and is the
default. DynamoDBUsageStore (backend/lib/dynamodb_service.py) is used when
USE_DYNAMODB=true.
"""

import json
import os
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Union

from backend.lib.config import Settings
from backend.lib.usage_core.models import DailyUsageRecord


class LocalUsageStore:
    """
    JSON Lines file, one object per write:
        {"date": "2024-01-15", "kwh": "8.400", "estimated_cost": "202.31", "updated_at": "..."}

    Writes only ever append. When reading, the last line for a date wins, so
    re-processing a day overwrites it without rewriting the file.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def upsert(self, day: date, kwh: Decimal, estimated_cost: Decimal) -> bool:
        record = DailyUsageRecord.create(day, kwh, estimated_cost)
        line = dict(record.to_dict(), updated_at=datetime.now(timezone.utc).isoformat())
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # a write cut short by a killed process leaves no trailing newline
            prefix = "" if self._ends_with_newline() else "\n"
            with self.path.open("a", encoding="utf-8") as f:
                f.write(prefix + json.dumps(line) + "\n")
                f.flush()
                os.fsync(f.fileno())
            return True
        except OSError as e:
            print(f"Failed to store usage for {record.date}: {e}")
            return False

    def _ends_with_newline(self) -> bool:
        if not self.path.exists() or self.path.stat().st_size == 0:
            return True
        with self.path.open("rb") as f:
            f.seek(-1, os.SEEK_END)
            return f.read(1) == b"\n"

    def _load(self) -> Dict[date, DailyUsageRecord]:
        if not self.path.exists():
            return {}

        # Deduplicate by date; later lines overwrite earlier ones
        seen = {}
        with self.path.open("r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    obj = json.loads(line)
                    day = date.fromisoformat(obj["date"])
                    record = DailyUsageRecord(
                        date=day,
                        kwh=Decimal(obj["kwh"]),
                        estimated_cost=Decimal(obj["estimated_cost"]),
                    )
                except (ValueError, KeyError, TypeError, InvalidOperation) as e:
                    print(f"Skipping unreadable line {line_no} in {self.path}: {e}")
                    continue
                seen[day] = record
        return seen

    def query_range(self, start: date, end: date) -> List[DailyUsageRecord]:
        records = self._load()
        return [records[d] for d in sorted(records) if start <= d <= end]


def build_usage_store(settings: Settings):
    """Pick the backend the configuration asks for."""
    if settings.use_dynamodb:
        from backend.lib.dynamodb_service import DynamoDBUsageStore
        store = DynamoDBUsageStore(
            table_name=settings.dynamodb_table_name,
            series=settings.usage_series,
            region=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            aws_session_token=settings.aws_session_token,
        )
        store.create_table_if_not_exists()
        return store
    return LocalUsageStore(settings.local_store_path)
