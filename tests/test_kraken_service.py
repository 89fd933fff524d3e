# tests/test_kraken_service.py
from backend.lib.kraken_service import KrakenService
from backend.lib.usage_core.errors import AccountLookupError, AuthError, ReadingsFetchError
from datetime import datetime, timezone
from unittest.mock import MagicMock
import json
import pathlib
import pytest
import requests

START = datetime(2024, 1, 14, 15, 0, tzinfo=timezone.utc)
END = datetime(2024, 1, 15, 14, 59, 59, tzinfo=timezone.utc)


def make_service(*bodies):
    session = MagicMock()
    responses = []
    for body in bodies:
        response = MagicMock()
        response.json.return_value = body
        responses.append(response)
    session.post.side_effect = responses
    return KrakenService("https://kraken.test/graphql/", timeout=5, session=session), session


def test_obtain_token_sends_credentials():
    service, session = make_service({"data": {"obtainKrakenToken": {"token": "jwt-123"}}})
    assert service.obtain_token("me@example.com", "secret") == "jwt-123"

    args, kwargs = session.post.call_args
    assert args[0] == "https://kraken.test/graphql/"
    assert kwargs["json"]["variables"] == {"input": {"email": "me@example.com", "password": "secret"}}
    assert "Authorization" not in kwargs["headers"]
    assert kwargs["timeout"] == 5


def test_obtain_token_without_token_is_auth_error():
    service, _ = make_service({"data": {"obtainKrakenToken": None},
                               "errors": [{"message": "Invalid data."}]})
    with pytest.raises(AuthError):
        service.obtain_token("me@example.com", "wrong")


def test_obtain_token_network_error_is_auth_error():
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("down")
    service = KrakenService(session=session)
    with pytest.raises(AuthError):
        service.obtain_token("me@example.com", "secret")


def test_obtain_token_http_error_is_auth_error():
    service, session = make_service({})
    session.post.side_effect = None
    session.post.return_value.raise_for_status.side_effect = requests.HTTPError("502")
    with pytest.raises(AuthError):
        service.obtain_token("me@example.com", "secret")


def test_get_account_number_uses_jwt_header():
    service, session = make_service({"data": {"viewer": {"accounts": [{"number": "A-1234"}, {"number": "A-9"}]}}})
    assert service.get_account_number("jwt-123") == "A-1234"
    assert session.post.call_args.kwargs["headers"]["Authorization"] == "JWT jwt-123"


def test_get_account_number_without_accounts():
    service, _ = make_service({"data": {"viewer": {"accounts": []}}})
    with pytest.raises(AccountLookupError):
        service.get_account_number("jwt-123")


def test_get_account_number_with_null_account_entry():
    service, _ = make_service({"data": {"viewer": {"accounts": [None]}}})
    with pytest.raises(AccountLookupError):
        service.get_account_number("jwt-123")


def test_get_half_hourly_readings_parses_first_supply_point():
    body = json.loads((pathlib.Path(__file__).parent / "sample_readings.json").read_text())
    service, session = make_service(body)

    readings = service.get_half_hourly_readings("jwt-123", "A-1234", START, END)
    assert len(readings) == 6
    assert readings[0].start_at == datetime(2024, 1, 14, 14, 30, tzinfo=timezone.utc)

    variables = session.post.call_args.kwargs["json"]["variables"]
    assert variables == {
        "accountNumber": "A-1234",
        "fromDatetime": "2024-01-14T15:00:00+00:00",
        "toDatetime": "2024-01-15T14:59:59+00:00",
    }


def test_get_half_hourly_readings_empty_is_not_an_error():
    service, _ = make_service({"data": {"account": {"properties": [
        {"electricitySupplyPoints": [{"halfHourlyReadings": []}]}]}}})
    assert service.get_half_hourly_readings("jwt-123", "A-1234", START, END) == []


def test_get_half_hourly_readings_graphql_error():
    service, _ = make_service({"errors": [{"message": "Account not found"}]})
    with pytest.raises(ReadingsFetchError):
        service.get_half_hourly_readings("jwt-123", "A-1234", START, END)


@pytest.mark.parametrize("account", [
    {"properties": [None]},
    {"properties": [{"electricitySupplyPoints": [None]}]},
    {"properties": "unexpected"},
])
def test_get_half_hourly_readings_null_entries_are_empty(account):
    service, _ = make_service({"data": {"account": account}})
    assert service.get_half_hourly_readings("jwt-123", "A-1234", START, END) == []
