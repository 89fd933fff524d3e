# backend/lib/usage_core/errors.py


class UsageTrackerError(Exception):
    """Base class for every error raised by the usage tracker."""


class ConfigError(UsageTrackerError):
    """Missing or malformed configuration value."""


class AuthError(UsageTrackerError):
    """The provider did not hand out a token. Fatal for the whole run."""


class AccountLookupError(UsageTrackerError):
    """No account number found for the token. Fatal for one date only."""


class ReadingsFetchError(UsageTrackerError):
    """The readings query failed (transport or GraphQL error)."""


class MalformedReadingError(UsageTrackerError, ValueError):
    """A reading could not be interpreted (bad startAt, or bad value in strict mode)."""
