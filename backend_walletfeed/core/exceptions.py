"""
Application-level exceptions.

Only InvalidQueryError crosses the API boundary (as HTTP 400); the rest are
raised and handled inside the service, which logs them and degrades to an
empty result.
"""


class WalletFeedError(Exception):
    pass


class ConfigurationError(WalletFeedError):
    """Wallet address or API key missing or malformed."""


class InvalidQueryError(WalletFeedError, ValueError):
    """History query parameters rejected before any upstream call."""
