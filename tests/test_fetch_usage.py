# tests/test_fetch_usage.py
from backend import fetch_usage
from backend.lib.config import Settings
from datetime import date
from unittest.mock import MagicMock
import pytest


def test_parse_single_date():
    args = fetch_usage.parse_args(["--date", "2024-01-15"])
    assert args.date == date(2024, 1, 15)
    assert args.date_from is None


def test_parse_range():
    args = fetch_usage.parse_args(["--from", "2024-01-01", "--to", "2024-01-03", "--no-notify"])
    assert (args.date_from, args.date_to) == (date(2024, 1, 1), date(2024, 1, 3))
    assert args.no_notify


@pytest.mark.parametrize("argv", [
    ["--from", "2024-01-01"],
    ["--to", "2024-01-01"],
    ["--date", "2024-01-01", "--from", "2024-01-01", "--to", "2024-01-02"],
    ["--from", "2024-01-03", "--to", "2024-01-01"],
    ["--date", "15/01/2024"],
    ["--delay", "-1"],
])
def test_invalid_arguments_exit_2(argv):
    with pytest.raises(SystemExit) as exc:
        fetch_usage.parse_args(argv)
    assert exc.value.code == 2


def test_main_without_credentials_returns_1(monkeypatch):
    monkeypatch.setattr(fetch_usage, "load_settings", lambda: Settings())
    assert fetch_usage.main(["--date", "2024-01-15"]) == 1


def test_main_dispatches_single_date(monkeypatch):
    orchestrator = MagicMock()
    orchestrator.run_date.return_value = 0
    build = MagicMock(return_value=orchestrator)
    monkeypatch.setattr(fetch_usage, "load_settings", lambda: Settings())
    monkeypatch.setattr(fetch_usage, "build_orchestrator", build)

    assert fetch_usage.main(["--date", "2024-01-15", "--no-notify"]) == 0
    orchestrator.run_date.assert_called_once_with(date(2024, 1, 15))
    assert build.call_args.kwargs == {"notify": False, "delay_seconds": None}


def test_main_dispatches_range(monkeypatch):
    orchestrator = MagicMock()
    orchestrator.run_range.return_value = 1
    monkeypatch.setattr(fetch_usage, "load_settings", lambda: Settings())
    monkeypatch.setattr(fetch_usage, "build_orchestrator", MagicMock(return_value=orchestrator))

    assert fetch_usage.main(["--from", "2024-01-01", "--to", "2024-01-03", "--delay", "0"]) == 1
    orchestrator.run_range.assert_called_once_with(date(2024, 1, 1), date(2024, 1, 3))


def test_main_defaults_to_yesterday(monkeypatch):
    orchestrator = MagicMock()
    orchestrator.run_date.return_value = 0
    monkeypatch.setattr(fetch_usage, "load_settings", lambda: Settings())
    monkeypatch.setattr(fetch_usage, "build_orchestrator", MagicMock(return_value=orchestrator))

    assert fetch_usage.main([]) == 0
    orchestrator.run_date.assert_called_once_with(None)
