"""
=============================================================================
CONFIGURATION - One Settings object built at process start
=============================================================================
Everything the tracker needs from the environment is read here, once, and
handed to the other components as plain values. No other module calls
os.getenv.

A .env file in the working directory is loaded first (python-dotenv), so
secrets such as the Octopus password and the LINE token stay out of the code.

Example .env:
    OCTOPUS_EMAIL=me@example.com
    OCTOPUS_PASSWORD=secret
    LINE_CHANNEL_ACCESS_TOKEN=xxxx
    LINE_USER_ID=Uxxxxxxxx
    USE_DYNAMODB=false
=============================================================================
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from backend.lib.usage_core.billing_cycle import DEFAULT_BOUNDARY_DAY
from backend.lib.usage_core.errors import ConfigError
from backend.lib.usage_core.estimator import TieredTariff

DEFAULT_KRAKEN_API_URL = 'https://api.oejp-kraken.energy/v1/graphql/'
DEFAULT_LOCAL_STORE_PATH = 'backend/data/daily_usage.jsonl'


@dataclass(frozen=True)
class Settings:
    octopus_email: Optional[str] = None
    octopus_password: Optional[str] = None
    kraken_api_url: str = DEFAULT_KRAKEN_API_URL
    http_timeout_seconds: float = 30.0

    line_channel_token: Optional[str] = None
    line_user_id: Optional[str] = None

    tariff: TieredTariff = field(default_factory=TieredTariff)
    billing_cycle_day: int = DEFAULT_BOUNDARY_DAY
    range_delay_seconds: float = 5.0
    strict_readings: bool = False

    use_dynamodb: bool = False
    dynamodb_table_name: str = 'DailyElectricityUsage'
    usage_series: str = 'electricity'
    aws_region: str = 'us-east-1'
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_session_token: Optional[str] = None
    local_store_path: Path = Path(DEFAULT_LOCAL_STORE_PATH)

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.line_channel_token and self.line_user_id)

    def require_provider_credentials(self) -> None:
        """Fetch runs cannot start without the Octopus login."""
        missing = [name for name, value in (
            ('OCTOPUS_EMAIL', self.octopus_email),
            ('OCTOPUS_PASSWORD', self.octopus_password),
        ) if not value]
        if missing:
            raise ConfigError(f"Missing provider credentials: {', '.join(missing)}")


def _text(env: Mapping[str, str], name: str, default: Optional[str] = None) -> Optional[str]:
    value = env.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _decimal(env: Mapping[str, str], name: str, default: Decimal) -> Decimal:
    raw = _text(env, name)
    if raw is None:
        return default
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if not value.is_finite():
        raise ConfigError(f"{name} must be a finite number, got {raw!r}")
    return value


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _text(env, name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _text(env, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _flag(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = _text(env, name)
    if raw is None:
        return default
    return raw.lower() == 'true'


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the process environment (after loading .env), or from
    the given mapping when one is passed (tests).

    Raises:
        ConfigError: a value is present but cannot be parsed
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    defaults = TieredTariff()
    try:
        tariff = TieredTariff(
            base_charge=_decimal(environ, 'TARIFF_BASE_CHARGE', defaults.base_charge),
            tier1_limit=_decimal(environ, 'TARIFF_TIER1_LIMIT_KWH', defaults.tier1_limit),
            tier2_limit=_decimal(environ, 'TARIFF_TIER2_LIMIT_KWH', defaults.tier2_limit),
            rate_tier1=_decimal(environ, 'TARIFF_RATE_TIER1', defaults.rate_tier1),
            rate_tier2=_decimal(environ, 'TARIFF_RATE_TIER2', defaults.rate_tier2),
            rate_tier3=_decimal(environ, 'TARIFF_RATE_TIER3', defaults.rate_tier3),
        )
    except ValueError as e:
        raise ConfigError(f"Invalid tariff: {e}") from e

    cycle_day = _int(environ, 'BILLING_CYCLE_DAY', DEFAULT_BOUNDARY_DAY)
    if not 1 <= cycle_day <= 28:
        raise ConfigError("BILLING_CYCLE_DAY must be between 1 and 28")

    delay = _float(environ, 'RANGE_DELAY_SECONDS', 5.0)
    if delay < 0:
        raise ConfigError("RANGE_DELAY_SECONDS must be >= 0")

    return Settings(
        octopus_email=_text(environ, 'OCTOPUS_EMAIL'),
        octopus_password=_text(environ, 'OCTOPUS_PASSWORD'),
        kraken_api_url=_text(environ, 'KRAKEN_API_URL', DEFAULT_KRAKEN_API_URL),
        http_timeout_seconds=_float(environ, 'HTTP_TIMEOUT_SECONDS', 30.0),
        line_channel_token=_text(environ, 'LINE_CHANNEL_ACCESS_TOKEN'),
        line_user_id=_text(environ, 'LINE_USER_ID'),
        tariff=tariff,
        billing_cycle_day=cycle_day,
        range_delay_seconds=delay,
        strict_readings=_flag(environ, 'STRICT_READINGS'),
        use_dynamodb=_flag(environ, 'USE_DYNAMODB'),
        dynamodb_table_name=_text(environ, 'DYNAMODB_TABLE_NAME', 'DailyElectricityUsage'),
        usage_series=_text(environ, 'USAGE_SERIES', 'electricity'),
        aws_region=_text(environ, 'AWS_REGION', 'us-east-1'),
        aws_access_key_id=_text(environ, 'AWS_ACCESS_KEY_ID'),
        aws_secret_access_key=_text(environ, 'AWS_SECRET_ACCESS_KEY'),
        aws_session_token=_text(environ, 'AWS_SESSION_TOKEN'),
        local_store_path=Path(_text(environ, 'LOCAL_STORE_PATH', DEFAULT_LOCAL_STORE_PATH)),
    )
