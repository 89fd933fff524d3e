# tests/test_line_service.py
from backend.lib.line_service import LINE_PUSH_URL, LineService, format_daily_report
from backend.lib.usage_core.models import BillingCycleSummary, DailyUsageRecord
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock
import requests

RECORD = DailyUsageRecord.create(date(2024, 1, 15), Decimal("8.4"), Decimal("202.31"))
SUMMARY = BillingCycleSummary(date(2023, 12, 23), date(2024, 1, 22),
                              Decimal("190.25"), Decimal("4512.8"), days_recorded=24)


def test_unconfigured_service_is_a_successful_noop():
    session = MagicMock()
    line = LineService(None, "U123", session=session)
    assert not line.enabled
    assert line.send_message("hello") is True
    session.post.assert_not_called()


def test_send_message_pushes_text_to_user():
    session = MagicMock()
    session.post.return_value.status_code = 200
    line = LineService("token-abc", "U123", session=session)

    assert line.send_message("hello") is True
    args, kwargs = session.post.call_args
    assert args[0] == LINE_PUSH_URL
    assert kwargs["headers"]["Authorization"] == "Bearer token-abc"
    assert kwargs["json"] == {"to": "U123", "messages": [{"type": "text", "text": "hello"}]}


def test_non_2xx_response_is_swallowed():
    session = MagicMock()
    session.post.return_value.status_code = 401
    session.post.return_value.text = "invalid token"
    assert LineService("bad", "U123", session=session).send_message("hello") is False


def test_network_error_is_swallowed():
    session = MagicMock()
    session.post.side_effect = requests.Timeout("slow")
    assert LineService("token-abc", "U123", session=session).send_message("hello") is False


def test_format_daily_report():
    text = format_daily_report(RECORD, SUMMARY)
    assert "2024-01-15" in text
    assert "8.400 kWh" in text
    assert "202.31 JPY" in text
    assert "2023-12-23 ~ 2024-01-22" in text
    assert "24 days recorded" in text
    assert "4,512.80 JPY" in text


def test_format_daily_report_without_summary():
    text = format_daily_report(RECORD)
    assert "Billing cycle" not in text
