# tests/test_app.py
from backend import app as app_module
from backend.lib.usage_store import LocalUsageStore
from datetime import date
from decimal import Decimal
import pytest


@pytest.fixture
def store(tmp_path, monkeypatch):
    store = LocalUsageStore(tmp_path / "usage.jsonl")
    monkeypatch.setattr(app_module, "usage_store", store)
    monkeypatch.setattr(app_module, "today_local", lambda: date(2024, 3, 10))
    return store


@pytest.fixture
def client(store):
    return app_module.app.test_client()


def test_health(client):
    assert client.get("/health").get_json()["status"] == "ok"


def test_usage_defaults_to_current_cycle(client, store):
    store.upsert(date(2024, 2, 22), Decimal("1"), Decimal("1"))
    store.upsert(date(2024, 3, 1), Decimal("8.4"), Decimal("202.31"))

    body = client.get("/usage").get_json()
    assert body["from"] == "2024-02-23"
    assert body["to"] == "2024-03-22"
    assert body["data"] == [{"date": "2024-03-01", "kwh": "8.400", "estimated_cost": "202.31"}]


def test_usage_explicit_range(client, store):
    store.upsert(date(2024, 2, 22), Decimal("1"), Decimal("30.00"))
    body = client.get("/usage?from=2024-02-01&to=2024-02-28").get_json()
    assert [d["date"] for d in body["data"]] == ["2024-02-22"]


def test_usage_rejects_bad_dates(client):
    assert client.get("/usage?from=yesterday").status_code == 400
    assert client.get("/usage?from=2024-03-02&to=2024-03-01").status_code == 400


def test_billing_cycle_summary(client, store):
    store.upsert(date(2024, 3, 23), Decimal("0.8"), Decimal("45.60"))
    store.upsert(date(2024, 4, 1), Decimal("1.2"), Decimal("53.84"))

    body = client.get("/billing-cycle?date=2024-04-01").get_json()
    assert body == {
        "start": "2024-03-23",
        "end": "2024-04-22",
        "total_kwh": "2.000",
        "total_cost": "99.44",
        "days_recorded": 2,
    }


def test_estimate(client):
    body = client.get("/estimate?kwh=0.8").get_json()
    assert body["estimated_cost"] == "45.60"
    assert body["currency"] == "JPY"
    assert set(body["breakdown"]) == {"base", "tier1", "tier2", "tier3"}


def test_estimate_requires_number(client):
    assert client.get("/estimate").status_code == 400
    assert client.get("/estimate?kwh=lots").status_code == 400
