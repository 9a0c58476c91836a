"""
Structured logging for Backend Wallet Feed.

JSON logs with timestamp, event_type, wallet_id and signature context;
API keys are redacted from every record. Use get_logger() in all modules.
"""

from backend_walletfeed.walletfeed_logging.logger import (
    configure_logging,
    get_logger,
    redact_api_key,
)

__all__ = ["configure_logging", "get_logger", "redact_api_key"]
