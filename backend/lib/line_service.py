"""
=============================================================================
LINE SERVICE - LINE Messaging API (push message) Integration
=============================================================================

After each day is stored we push a short report to one LINE user:
yesterday's usage and cost, plus the running billing-cycle totals.

Push API:
---------
POST https://api.line.me/v2/bot/message/push
Authorization: Bearer <channel access token>
{"to": "<user id>", "messages": [{"type": "text", "text": "..."}]}

Notifications are best effort. Without a token or a user id the service
does nothing and reports success; a failed push is printed, never raised,
so it can't undo a day that was already fetched and stored.
=============================================================================
"""

# requests - HTTP client for the push call
import requests

from typing import Optional

from backend.lib.usage_core.models import BillingCycleSummary, DailyUsageRecord

LINE_PUSH_URL = 'https://api.line.me/v2/bot/message/push'

# LINE rejects text messages longer than this
MAX_TEXT_LENGTH = 5000


def format_daily_report(record: DailyUsageRecord, summary: Optional[BillingCycleSummary] = None) -> str:
    """
    Example:
        ⚡ Electricity usage 2024-01-15

        Usage: 8.400 kWh
        Estimated cost: 202.31 JPY

        📊 Billing cycle 2023-12-23 ~ 2024-01-22 (24 days recorded)
        Usage: 190.250 kWh
        Estimated cost: 4,512.80 JPY
    """
    lines = [
        f"⚡ Electricity usage {record.date.isoformat()}",
        "",
        f"Usage: {record.kwh:.3f} kWh",
        f"Estimated cost: {record.estimated_cost:,.2f} JPY",
    ]
    if summary is not None:
        lines += [
            "",
            f"📊 Billing cycle {summary.start.isoformat()} ~ {summary.end.isoformat()}"
            f" ({summary.days_recorded} days recorded)",
            f"Usage: {summary.total_kwh:.3f} kWh",
            f"Estimated cost: {summary.total_cost:,.2f} JPY",
        ]
    return "\n".join(lines)


class LineService:
    """
    Sends text messages to a single LINE user.

    Usage:
        line = LineService(channel_token, user_id)
        line.send_message("hello")
        line.send_daily_report(record, summary)
    """

    def __init__(self, channel_token: Optional[str], user_id: Optional[str],
                 timeout: float = 10.0, session: Optional[requests.Session] = None,
                 push_url: str = LINE_PUSH_URL):
        self.channel_token = channel_token
        self.user_id = user_id
        self.timeout = timeout
        self.push_url = push_url
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.channel_token and self.user_id)

    def send_message(self, text: str) -> bool:
        """
        Push one text message.

        Returns:
            bool: True if sent, or if notifications are not configured;
                  False if the push failed
        """
        if not self.enabled:
            print("LINE notification not configured, skipping")
            return True

        payload = {
            'to': self.user_id,
            'messages': [{'type': 'text', 'text': text[:MAX_TEXT_LENGTH]}],
        }
        headers = {
            'Authorization': f'Bearer {self.channel_token}',
            'Content-Type': 'application/json',
        }

        try:
            response = self.session.post(self.push_url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            print(f"Failed to send LINE message: {e}")
            return False

        if not 200 <= response.status_code < 300:
            print(f"Failed to send LINE message: HTTP {response.status_code} {response.text}")
            return False
        return True

    def send_daily_report(self, record: DailyUsageRecord,
                          summary: Optional[BillingCycleSummary] = None) -> bool:
        return self.send_message(format_daily_report(record, summary))
