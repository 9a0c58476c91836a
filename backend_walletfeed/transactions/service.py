"""
Transactions service — periodic ingestion and on-demand history.

run_scheduled_poll() walks the wallet's history with an in-memory cursor;
get_historical_transactions() fetches one page for a caller without touching
the cursor. Neither lets upstream or configuration failures escape: the poll
becomes a no-op tick and the query returns an empty list.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Callable

from backend_walletfeed.config import Settings, get_settings
from backend_walletfeed.core.exceptions import ConfigurationError, InvalidQueryError
from backend_walletfeed.transactions.fetcher import FetchFailure, HeliusTransactionFetcher
from backend_walletfeed.transactions.models import ProcessedTransaction, RawTransaction
from backend_walletfeed.transactions.normalizer import normalize_transaction
from backend_walletfeed.transactions.validation import (
    Skipped,
    is_valid_wallet_address,
    validate_transaction,
)
from backend_walletfeed.walletfeed_logging import get_logger

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 50


@dataclass
class CursorState:
    """
    Signature of the last transaction processed by the periodic job.

    None means no position yet (fresh process). Lives for the process
    lifetime only; a restart starts again from the newest page.
    """

    last_signature: str | None = None

    def advance(self, signature: str) -> None:
        self.last_signature = signature

    def reset(self) -> None:
        self.last_signature = None


def resolve_credentials(settings: Settings) -> tuple[str, str]:
    """Return (wallet_address, api_key) or raise ConfigurationError."""
    wallet = settings.wallet_address
    if not wallet:
        raise ConfigurationError("WALLET_ADDRESS is not defined in the environment variables.")
    if not is_valid_wallet_address(wallet):
        raise ConfigurationError(f"WALLET_ADDRESS '{wallet}' is not a valid Solana address.")
    if not settings.helius_api_key:
        raise ConfigurationError("HELIUS_API_KEY is not defined in the environment variables.")
    return wallet, settings.helius_api_key


def _normalize_valid(
    transactions: list[RawTransaction],
    on_processed: Callable[[ProcessedTransaction], None] | None = None,
) -> list[ProcessedTransaction]:
    """
    Validate each record in order; skip incomplete ones, normalize the rest.
    A record that fails to normalize is logged and skipped like an incomplete one.
    """
    processed: list[ProcessedTransaction] = []
    for tx in transactions:
        result = validate_transaction(tx)
        if isinstance(result, Skipped):
            logger.warning(
                "transaction_skipped_incomplete",
                signature=result.signature,
                reason=result.reason.value,
            )
            logger.debug(
                "transaction_skipped_raw_payload",
                signature=result.signature,
                raw=json.dumps(tx.raw, default=str),
            )
            continue
        try:
            out = normalize_transaction(result.record)
        except (ValueError, OverflowError, OSError) as e:
            logger.warning(
                "transaction_normalize_failed",
                signature=tx.signature,
                error=str(e) or e.__class__.__name__,
            )
            logger.debug(
                "transaction_normalize_failed_raw_payload",
                signature=tx.signature,
                raw=json.dumps(tx.raw, default=str),
            )
            continue
        logger.debug("transaction_normalized", signature=out.signature, status=out.status.value)
        processed.append(out)
        if on_processed is not None:
            on_processed(out)
    return processed


class TransactionsService:
    """
    Orchestrates fetcher, validation and normalizer for the configured wallet.

    Settings are read through settings_provider on every call. The cursor is
    owned here (or injected) and only run_scheduled_poll() mutates it; ticks
    are serialized with a lock and an overlapping tick is skipped.
    """

    def __init__(
        self,
        fetcher: HeliusTransactionFetcher | None = None,
        *,
        settings_provider: Callable[[], Settings] = get_settings,
        cursor: CursorState | None = None,
    ) -> None:
        self._settings_provider = settings_provider
        if fetcher is None:
            settings = settings_provider()
            fetcher = HeliusTransactionFetcher(
                settings.helius_base_url,
                timeout_sec=settings.request_timeout_sec,
            )
        self._fetcher = fetcher
        self._cursor = cursor if cursor is not None else CursorState()
        self._poll_lock = asyncio.Lock()

    @property
    def cursor(self) -> CursorState:
        return self._cursor

    async def run_scheduled_poll(self) -> list[ProcessedTransaction]:
        """
        One polling tick: fetch the page before the cursor, process oldest
        first, advance the cursor per normalized record. Returns the records
        normalized in this tick (empty on no-op).
        """
        settings = self._settings_provider()
        try:
            wallet, api_key = resolve_credentials(settings)
        except ConfigurationError as e:
            logger.error("transactions_poll_config_error", error=str(e))
            return []

        if self._poll_lock.locked():
            logger.warning("transactions_poll_skipped_in_flight", wallet_id=wallet)
            return []

        async with self._poll_lock:
            before = self._cursor.last_signature
            logger.debug("transactions_poll_started", wallet_id=wallet, before=before)
            result = await self._fetcher.fetch_transactions(
                wallet, api_key, settings.poll_limit, before
            )
            if isinstance(result, FetchFailure):
                logger.error(
                    "transactions_poll_fetch_failed",
                    wallet_id=wallet,
                    kind=result.kind,
                    status_code=result.status_code,
                    error=result.message,
                )
                return []
            if not result.transactions:
                logger.debug("transactions_poll_idle", wallet_id=wallet)
                return []

            # Upstream is newest-first; process oldest-first
            oldest_first = list(reversed(result.transactions))
            processed = _normalize_valid(
                oldest_first, on_processed=lambda tx: self._cursor.advance(tx.signature)
            )
            logger.info(
                "transactions_poll_processed",
                wallet_id=wallet,
                received=len(oldest_first),
                processed=len(processed),
                cursor=self._cursor.last_signature,
            )
            return processed

    async def get_historical_transactions(
        self,
        limit: int = DEFAULT_HISTORY_LIMIT,
        before_signature: str | None = None,
    ) -> list[ProcessedTransaction]:
        """
        Fetch one page of history in upstream order (newest first).

        Raises InvalidQueryError when limit is not a positive integer; every
        other failure is logged and yields [].
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidQueryError("Invalid limit parameter. It must be a positive integer.")

        settings = self._settings_provider()
        try:
            wallet, api_key = resolve_credentials(settings)
        except ConfigurationError as e:
            logger.error("transactions_history_config_error", error=str(e))
            return []

        logger.debug(
            "transactions_history_requested",
            wallet_id=wallet,
            limit=limit,
            before=before_signature,
        )
        result = await self._fetcher.fetch_transactions(wallet, api_key, limit, before_signature)
        if isinstance(result, FetchFailure):
            logger.error(
                "transactions_history_fetch_failed",
                wallet_id=wallet,
                kind=result.kind,
                status_code=result.status_code,
                error=result.message,
            )
            return []
        return _normalize_valid(result.transactions)
