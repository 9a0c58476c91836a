"""
Pytest fixtures for wallet feed tests.

Upstream Helius calls are served by httpx.MockTransport; no network access.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from backend_walletfeed.config import Settings
from backend_walletfeed.transactions.fetcher import HeliusTransactionFetcher
from backend_walletfeed.transactions.service import CursorState, TransactionsService

# Valid Solana pubkey (base58, 44 chars)
VALID_WALLET = "EgqxBkbNczXsgBmnkQ6VyKF6qRK446UGMgWhMed1L9c6"
DEST_WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
API_KEY = "test-api-key"
BASE_URL = "https://helius.test/v0"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep a developer's real env / .env from leaking into tests."""
    for name in (
        "WALLET_ADDRESS",
        "HELIUS_API_KEY",
        "HELIUS_BASE_URL",
        "HELIUS_TIMEOUT_SEC",
        "POLL_INTERVAL_SEC",
        "POLL_LIMIT",
        "POLL_ENABLED",
        "API_HOST",
        "API_PORT",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(
        "backend_walletfeed.config.env.load_walletfeed_env", lambda: None
    )


@pytest.fixture
def make_raw_tx() -> Callable[..., dict[str, Any]]:
    """Factory for a complete upstream transaction item; override any top-level key."""

    def _make(signature: str = "sig-1", **overrides: Any) -> dict[str, Any]:
        item: dict[str, Any] = {
            "signature": signature,
            "slot": 250_000_000,
            "blockTime": 1700000000,
            "meta": {
                "fee": 5000,
                "err": None,
                "preBalances": [2_000_000, 0],
                "postBalances": [995_000, 1_000_000],
                "innerInstructions": [],
                "logMessages": ["Program 11111111111111111111111111111111 success"],
            },
            "transaction": {
                "message": {
                    "accountKeys": [VALID_WALLET, DEST_WALLET],
                    "instructions": [
                        {
                            "program": "system",
                            "programId": "11111111111111111111111111111111",
                            "parsed": {
                                "type": "transfer",
                                "info": {
                                    "source": VALID_WALLET,
                                    "destination": DEST_WALLET,
                                    "lamports": 1_000_000,
                                },
                            },
                        }
                    ],
                    "recentBlockhash": "EkSnNWid2cvwEVnVx9aBqawnmiCNiDgp3gUdkDPTKN1N",
                },
                "signatures": [signature],
            },
        }
        item.update(overrides)
        return item

    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(
        wallet_address=VALID_WALLET,
        helius_api_key=API_KEY,
        helius_base_url=BASE_URL,
        poll_limit=10,
    )


class RecordingHandler:
    """MockTransport handler: records requests and replays queued responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | Exception] = []

    def queue(self, response: httpx.Response | Exception) -> None:
        self._responses.append(response)

    def queue_json(self, payload: Any, status_code: int = 200) -> None:
        self.queue(httpx.Response(status_code, json=payload))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            return httpx.Response(200, json=[])
        nxt = self._responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


@pytest.fixture
def upstream() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def fetcher(upstream) -> HeliusTransactionFetcher:
    return HeliusTransactionFetcher(BASE_URL, transport=httpx.MockTransport(upstream))


@pytest.fixture
def service(fetcher, settings) -> TransactionsService:
    return TransactionsService(fetcher, settings_provider=lambda: settings, cursor=CursorState())
