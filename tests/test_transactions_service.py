"""
TransactionsService tests: periodic poll cursor handling and on-demand history.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace
from unittest.mock import AsyncMock

import httpx
import pytest

from backend_walletfeed.config import Settings
from backend_walletfeed.core.exceptions import ConfigurationError, InvalidQueryError
from backend_walletfeed.transactions.fetcher import FetchFailure, FetchSuccess
from backend_walletfeed.transactions.models import RawTransaction
from backend_walletfeed.transactions import service as service_module
from backend_walletfeed.transactions.service import (
    CursorState,
    TransactionsService,
    resolve_credentials,
)

VALID_WALLET = "EgqxBkbNczXsgBmnkQ6VyKF6qRK446UGMgWhMed1L9c6"
API_KEY = "test-api-key"


def _service_with(settings, fetcher, cursor=None):
    return TransactionsService(fetcher, settings_provider=lambda: settings, cursor=cursor)


# -----------------------------------------------------------------------------
# Periodic poll
# -----------------------------------------------------------------------------


def test_poll_processes_oldest_first_and_cursor_ends_on_newest(service, upstream, make_raw_tx):
    """Upstream returns C, B, A (newest first); processing order is A, B, C; cursor = C."""
    upstream.queue_json([make_raw_tx("C"), make_raw_tx("B"), make_raw_tx("A")])
    processed = asyncio.run(service.run_scheduled_poll())
    assert [tx.signature for tx in processed] == ["A", "B", "C"]
    assert service.cursor.last_signature == "C"


def test_poll_uses_cursor_as_before_and_poll_limit(service, upstream, make_raw_tx):
    service.cursor.advance("prev-sig")
    upstream.queue_json([make_raw_tx("X")])
    asyncio.run(service.run_scheduled_poll())
    params = upstream.requests[0].url.params
    assert params["before"] == "prev-sig"
    assert params["limit"] == "10"
    assert service.cursor.last_signature == "X"


def test_first_poll_sends_no_before(service, upstream):
    upstream.queue_json([])
    asyncio.run(service.run_scheduled_poll())
    assert "before" not in upstream.requests[0].url.params


def test_empty_page_is_idle_tick(service, upstream):
    service.cursor.advance("keep-me")
    upstream.queue_json([])
    assert asyncio.run(service.run_scheduled_poll()) == []
    assert service.cursor.last_signature == "keep-me"


def test_fetch_failure_leaves_cursor_unchanged(service, upstream):
    service.cursor.advance("before-failure")
    upstream.queue_json({"error": "boom"}, status_code=500)
    assert asyncio.run(service.run_scheduled_poll()) == []
    assert service.cursor.last_signature == "before-failure"


def test_transport_failure_leaves_cursor_unchanged(service, upstream):
    upstream.queue(httpx.ReadTimeout("timed out"))
    assert asyncio.run(service.run_scheduled_poll()) == []
    assert service.cursor.last_signature is None


def test_incomplete_records_skipped_and_cursor_on_last_valid(service, upstream, make_raw_tx):
    newest_incomplete = make_raw_tx("C")
    del newest_incomplete["meta"]
    no_message = make_raw_tx("B", transaction={"signatures": ["B"]})
    upstream.queue_json([newest_incomplete, no_message, make_raw_tx("A")])
    processed = asyncio.run(service.run_scheduled_poll())
    assert [tx.signature for tx in processed] == ["A"]
    assert service.cursor.last_signature == "A"


def test_all_incomplete_keeps_cursor(service, upstream, make_raw_tx):
    service.cursor.advance("old")
    item = make_raw_tx("Z")
    del item["meta"]
    upstream.queue_json([item])
    assert asyncio.run(service.run_scheduled_poll()) == []
    assert service.cursor.last_signature == "old"


def test_poll_out_of_range_numbers_do_not_abort_tick(service, upstream, make_raw_tx):
    """Upstream blockTime in ms (too large for datetime) and fee=Infinity still normalize."""
    bad = make_raw_tx("B", blockTime=10**15)
    bad["meta"]["fee"] = float("inf")
    upstream.queue(
        httpx.Response(
            200,
            content=json.dumps([make_raw_tx("C"), bad, make_raw_tx("A")]).encode(),
            headers={"content-type": "application/json"},
        )
    )
    processed = asyncio.run(service.run_scheduled_poll())
    assert [tx.signature for tx in processed] == ["A", "B", "C"]
    assert processed[1].block_time is None
    assert processed[1].fee is None
    assert service.cursor.last_signature == "C"


def test_poll_skips_record_that_fails_to_normalize(service, upstream, make_raw_tx, monkeypatch):
    real_normalize = service_module.normalize_transaction

    def flaky(record):
        if record.signature == "C":
            raise ValueError("year 31690708 is out of range")
        return real_normalize(record)

    monkeypatch.setattr(service_module, "normalize_transaction", flaky)
    upstream.queue_json([make_raw_tx("C"), make_raw_tx("B"), make_raw_tx("A")])
    processed = asyncio.run(service.run_scheduled_poll())
    assert [tx.signature for tx in processed] == ["A", "B"]
    assert service.cursor.last_signature == "B"


@pytest.mark.parametrize(
    "overrides",
    [
        {"wallet_address": None},
        {"wallet_address": "not-base58-0OIl"},
        {"wallet_address": "short"},
        {"helius_api_key": None},
    ],
)
def test_poll_config_errors_skip_fetch(settings, overrides):
    bad = replace(settings, **overrides)
    fetcher = AsyncMock()
    svc = _service_with(bad, fetcher)
    assert asyncio.run(svc.run_scheduled_poll()) == []
    fetcher.fetch_transactions.assert_not_called()
    assert svc.cursor.last_signature is None


def test_overlapping_tick_is_skipped(settings, make_raw_tx):
    """A tick that starts while another is in flight does not fetch."""
    calls: list[str | None] = []

    class SlowFetcher:
        def __init__(self) -> None:
            self.gate = asyncio.Event()

        async def fetch_transactions(self, wallet, api_key, limit, before_signature=None):
            calls.append(before_signature)
            await self.gate.wait()
            return FetchSuccess([RawTransaction.from_api_item(make_raw_tx("A"))])

    async def run():
        fetcher = SlowFetcher()
        svc = _service_with(settings, fetcher)
        first = asyncio.create_task(svc.run_scheduled_poll())
        await asyncio.sleep(0)
        second = await svc.run_scheduled_poll()
        fetcher.gate.set()
        return svc, await first, second

    svc, first, second = asyncio.run(run())
    assert second == []
    assert [tx.signature for tx in first] == ["A"]
    assert calls == [None]
    assert svc.cursor.last_signature == "A"


def test_shared_cursor_state_injected(settings, make_raw_tx):
    cursor = CursorState()
    fetcher = AsyncMock()
    fetcher.fetch_transactions.return_value = FetchSuccess(
        [RawTransaction.from_api_item(make_raw_tx("N"))]
    )
    svc = _service_with(settings, fetcher, cursor=cursor)
    asyncio.run(svc.run_scheduled_poll())
    assert cursor.last_signature == "N"
    cursor.reset()
    assert svc.cursor.last_signature is None


# -----------------------------------------------------------------------------
# On-demand history
# -----------------------------------------------------------------------------


def test_history_preserves_upstream_order_and_cursor(service, upstream, make_raw_tx):
    service.cursor.advance("poll-cursor")
    upstream.queue_json([make_raw_tx("C"), make_raw_tx("B"), make_raw_tx("A")])
    out = asyncio.run(service.get_historical_transactions(3, "D"))
    assert [tx.signature for tx in out] == ["C", "B", "A"]
    params = upstream.requests[0].url.params
    assert params["limit"] == "3"
    assert params["before"] == "D"
    assert service.cursor.last_signature == "poll-cursor"


def test_history_default_limit(service, upstream):
    asyncio.run(service.get_historical_transactions())
    assert upstream.requests[0].url.params["limit"] == "50"
    assert "before" not in upstream.requests[0].url.params


def test_history_skips_incomplete(service, upstream, make_raw_tx):
    incomplete = make_raw_tx("B")
    del incomplete["transaction"]
    upstream.queue_json([make_raw_tx("C"), incomplete, make_raw_tx("A")])
    out = asyncio.run(service.get_historical_transactions(10))
    assert [tx.signature for tx in out] == ["C", "A"]


def test_history_out_of_range_numbers_keep_siblings(service, upstream, make_raw_tx):
    bad = make_raw_tx("B", blockTime=10**15)
    bad["meta"]["fee"] = float("inf")
    bad["transaction"]["message"]["instructions"][0]["parsed"]["info"]["lamports"] = float("inf")
    upstream.queue(
        httpx.Response(
            200,
            content=json.dumps([make_raw_tx("C"), bad, make_raw_tx("A")]).encode(),
            headers={"content-type": "application/json"},
        )
    )
    out = asyncio.run(service.get_historical_transactions(3))
    assert [tx.signature for tx in out] == ["C", "B", "A"]
    assert (out[1].block_time, out[1].fee, out[1].amount) == (None, None, None)


def test_history_skips_record_that_fails_to_normalize(service, upstream, make_raw_tx, monkeypatch):
    def broken(record):
        raise OverflowError("cannot convert float infinity to integer")

    monkeypatch.setattr(service_module, "normalize_transaction", broken)
    upstream.queue_json([make_raw_tx("C"), make_raw_tx("B")])
    assert asyncio.run(service.get_historical_transactions(2)) == []


@pytest.mark.parametrize("limit", [0, -5])
def test_history_rejects_non_positive_limit_before_fetch(settings, limit):
    fetcher = AsyncMock()
    svc = _service_with(settings, fetcher)
    with pytest.raises(InvalidQueryError):
        asyncio.run(svc.get_historical_transactions(limit))
    fetcher.fetch_transactions.assert_not_called()


def test_history_invalid_wallet_returns_empty_without_fetch(settings):
    bad = replace(settings, wallet_address="0OIl-not-an-address")
    fetcher = AsyncMock()
    svc = _service_with(bad, fetcher)
    assert asyncio.run(svc.get_historical_transactions(10)) == []
    fetcher.fetch_transactions.assert_not_called()


def test_history_missing_api_key_returns_empty(settings):
    bad = replace(settings, helius_api_key=None)
    fetcher = AsyncMock()
    svc = _service_with(bad, fetcher)
    assert asyncio.run(svc.get_historical_transactions(10)) == []
    fetcher.fetch_transactions.assert_not_called()


def test_history_upstream_failure_returns_empty(settings):
    fetcher = AsyncMock()
    fetcher.fetch_transactions.return_value = FetchFailure(
        "http_status", "Helius returned HTTP 429", status_code=429, body={"error": "rate"}
    )
    svc = _service_with(settings, fetcher)
    assert asyncio.run(svc.get_historical_transactions(10)) == []


def test_resolve_credentials(settings):
    assert resolve_credentials(settings) == (VALID_WALLET, API_KEY)
    with pytest.raises(ConfigurationError, match="WALLET_ADDRESS"):
        resolve_credentials(Settings(helius_api_key=API_KEY))
    with pytest.raises(ConfigurationError, match="not a valid Solana address"):
        resolve_credentials(Settings(wallet_address="abc", helius_api_key=API_KEY))
    with pytest.raises(ConfigurationError, match="HELIUS_API_KEY"):
        resolve_credentials(Settings(wallet_address=VALID_WALLET))
