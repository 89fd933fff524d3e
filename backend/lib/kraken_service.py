"""
=============================================================================
KRAKEN SERVICE - Octopus Energy Japan (Kraken GraphQL API) Integration
=============================================================================

Octopus Energy Japan exposes account and meter data through the Kraken
GraphQL API. Every call is a POST of {"query": ..., "variables": ...} to a
single endpoint.

Flow for one day of usage:
--------------------------
1. obtainKrakenToken (mutation)   email + password  -> JWT token
2. viewer.accounts                token             -> account number
3. halfHourlyReadings             token + account   -> [{startAt, value}, ...]
                                  + UTC from/to

Authenticated calls send the header:  Authorization: JWT <token>

The token is fetched once per run and reused for every date in a range.
This service never retries; a failed call raises and the caller decides.
=============================================================================
"""

# requests - HTTP client for the GraphQL calls
import requests

from datetime import datetime
from typing import Any, Dict, List, Optional

from backend.lib.config import DEFAULT_KRAKEN_API_URL
from backend.lib.usage_core.errors import AccountLookupError, AuthError, ReadingsFetchError
from backend.lib.usage_core.io import parse_readings
from backend.lib.usage_core.models import IntervalReading


OBTAIN_TOKEN_MUTATION = """
mutation obtainKrakenToken($input: ObtainJSONWebTokenInput!) {
    obtainKrakenToken(input: $input) {
        token
    }
}
"""

ACCOUNT_VIEWER_QUERY = """
query accountViewer {
    viewer {
        accounts {
            number
        }
    }
}
"""

HALF_HOURLY_READINGS_QUERY = """
query halfHourlyReadings($accountNumber: String!, $fromDatetime: DateTime, $toDatetime: DateTime) {
    account(accountNumber: $accountNumber) {
        properties {
            electricitySupplyPoints {
                halfHourlyReadings(fromDatetime: $fromDatetime, toDatetime: $toDatetime) {
                    startAt
                    value
                }
            }
        }
    }
}
"""


def _first(items) -> Dict[str, Any]:
    """First element of a GraphQL list when it is an object, else {}."""
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


class KrakenRequestError(Exception):
    """Transport-level or GraphQL-level failure of one call."""


class KrakenService:
    """
    Reads half-hourly electricity usage from the Kraken API.

    Usage:
        kraken = KrakenService()
        token = kraken.obtain_token("me@example.com", "secret")
        account = kraken.get_account_number(token)
        readings = kraken.get_half_hourly_readings(token, account, start_utc, end_utc)
    """

    def __init__(self, api_url: str = DEFAULT_KRAKEN_API_URL, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        """
        Args:
            api_url: GraphQL endpoint
            timeout: seconds before an HTTP call is abandoned
            session: optional requests.Session (tests pass a mock)
        """
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, query: str, variables: Optional[Dict[str, Any]] = None,
              token: Optional[str] = None) -> Dict[str, Any]:
        """
        Run one GraphQL operation and return its "data" object.

        Raises:
            KrakenRequestError: network error, non-2xx status, non-JSON body,
                                or a GraphQL "errors" list without data
        """
        headers = {'Content-Type': 'application/json'}
        if token:
            headers['Authorization'] = f'JWT {token}'

        payload: Dict[str, Any] = {'query': query}
        if variables:
            payload['variables'] = variables

        try:
            response = self.session.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise KrakenRequestError(str(e)) from e
        except ValueError as e:
            raise KrakenRequestError(f"Response is not JSON: {e}") from e

        data = body.get('data') if isinstance(body, dict) else None
        errors = body.get('errors') if isinstance(body, dict) else None
        if errors and not data:
            messages = '; '.join(str(err.get('message', err)) if isinstance(err, dict) else str(err)
                                 for err in errors)
            raise KrakenRequestError(f"GraphQL error: {messages}")
        return data or {}

    def obtain_token(self, email: str, password: str) -> str:
        """
        Exchange the account login for a JWT.

        Raises:
            AuthError: no token came back (bad credentials, outage, network error)
        """
        try:
            data = self._post(OBTAIN_TOKEN_MUTATION, {'input': {'email': email, 'password': password}})
        except KrakenRequestError as e:
            raise AuthError(f"Token request failed: {e}") from e

        token = (data.get('obtainKrakenToken') or {}).get('token')
        if not token:
            raise AuthError("No token in obtainKrakenToken response")
        return token

    def get_account_number(self, token: str) -> str:
        """
        Raises:
            AccountLookupError: the token has no account, or the call failed
        """
        try:
            data = self._post(ACCOUNT_VIEWER_QUERY, token=token)
        except KrakenRequestError as e:
            raise AccountLookupError(f"Account lookup failed: {e}") from e

        accounts = (data.get('viewer') or {}).get('accounts') or []
        number = _first(accounts).get('number')
        if not number:
            raise AccountLookupError("No account found for token")
        return number

    def get_half_hourly_readings(self, token: str, account_number: str,
                                 start_utc: datetime, end_utc: datetime) -> List[IntervalReading]:
        """
        Readings for the first electricity supply point of the first property
        (one meter per household). An empty list means the provider has no
        data for the window yet.

        Raises:
            ReadingsFetchError: the call failed
            MalformedReadingError: a reading has no usable startAt
        """
        variables = {
            'accountNumber': account_number,
            'fromDatetime': start_utc.isoformat(),
            'toDatetime': end_utc.isoformat(),
        }
        try:
            data = self._post(HALF_HOURLY_READINGS_QUERY, variables, token=token)
        except KrakenRequestError as e:
            raise ReadingsFetchError(f"Readings request failed: {e}") from e

        properties = (data.get('account') or {}).get('properties') or []
        supply_points = _first(properties).get('electricitySupplyPoints') or []
        items = _first(supply_points).get('halfHourlyReadings') or []
        return parse_readings(items)
