# backend/lambda_handlers/fetch_daily_usage.py
"""
Lambda function to fetch and store daily electricity usage
Triggered by a CloudWatch Events / EventBridge schedule (once a day)
"""
import json
from datetime import date

from backend.lib.config import load_settings
from backend.lib.orchestrator import EXIT_OK, build_orchestrator
from backend.lib.usage_core.errors import ConfigError


def lambda_handler(event, context):
    """
    Run the daily fetch.

    Event fields (all optional):
    - date: 'YYYY-MM-DD' single local date (default: yesterday JST)
    - from / to: 'YYYY-MM-DD' inclusive backfill range
    - notify: false to skip the LINE report
    """
    print(f"Received event: {json.dumps(event, default=str)}")
    event = event if isinstance(event, dict) else {}

    try:
        target = _parse_date(event.get('date'))
        date_from = _parse_date(event.get('from'))
        date_to = _parse_date(event.get('to'))
    except ValueError as e:
        return response(400, {'error': str(e)})

    if (date_from is None) != (date_to is None):
        return response(400, {'error': "'from' and 'to' must be given together"})
    if target is not None and date_from is not None:
        return response(400, {'error': "'date' cannot be combined with 'from'/'to'"})
    if date_from is not None and date_from > date_to:
        return response(400, {'error': "'from' must not be after 'to'"})

    try:
        orchestrator = build_orchestrator(load_settings(), notify=_parse_flag(event.get('notify'), True))
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return response(500, {'error': str(e)})

    try:
        if date_from is not None:
            exit_code = orchestrator.run_range(date_from, date_to)
            body = {'from': date_from.isoformat(), 'to': date_to.isoformat()}
        else:
            exit_code = orchestrator.run_date(target)
            body = {'date': target.isoformat() if target else 'yesterday'}
    except ValueError as e:
        return response(400, {'error': str(e)})

    body['exit_code'] = exit_code
    return response(200 if exit_code == EXIT_OK else 500, body)


def _parse_date(value):
    if value in (None, ''):
        return None
    return date.fromisoformat(str(value))


def response(status_code: int, body: dict) -> dict:
    """Create a Lambda response."""
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body)
    }


def _parse_flag(value, default: bool) -> bool:
    """EventBridge input may carry booleans as strings ("false", "0")."""
    if value is None or value == '':
        return default
    if isinstance(value, str):
        return value.strip().lower() not in ('false', '0', 'no', 'off')
    return bool(value)
