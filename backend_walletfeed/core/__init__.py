"""
Core — shared application exceptions.
"""

from backend_walletfeed.core.exceptions import (
    ConfigurationError,
    InvalidQueryError,
    WalletFeedError,
)

__all__ = ["ConfigurationError", "InvalidQueryError", "WalletFeedError"]
