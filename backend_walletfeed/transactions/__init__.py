"""
Transaction pipeline package.

Fetches raw Helius transaction pages for the configured wallet, validates
and normalizes each record, and drives periodic ingestion with a cursor.
"""

from backend_walletfeed.transactions.fetcher import (
    FetchFailure,
    FetchSuccess,
    HeliusTransactionFetcher,
)
from backend_walletfeed.transactions.models import (
    ProcessedTransaction,
    RawTransaction,
    TransactionStatus,
)
from backend_walletfeed.transactions.normalizer import normalize_transaction
from backend_walletfeed.transactions.service import CursorState, TransactionsService
from backend_walletfeed.transactions.validation import (
    Accepted,
    Skipped,
    SkipReason,
    is_valid_wallet_address,
    validate_transaction,
)

__all__ = [
    "Accepted",
    "CursorState",
    "FetchFailure",
    "FetchSuccess",
    "HeliusTransactionFetcher",
    "ProcessedTransaction",
    "RawTransaction",
    "SkipReason",
    "Skipped",
    "TransactionStatus",
    "TransactionsService",
    "is_valid_wallet_address",
    "normalize_transaction",
    "validate_transaction",
]
