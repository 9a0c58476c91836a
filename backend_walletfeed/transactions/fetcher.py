"""
Helius transaction fetcher — one GET per call, no retry.

GET {base}/addresses/{wallet}/transactions?api-key={key}&limit={n}[&before={sig}]
returns a JSON array, newest first. Outcomes are returned as FetchSuccess /
FetchFailure values so callers decide how to degrade; expected failures
(non-2xx, network, bad body) never raise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from backend_walletfeed.config.env import DEFAULT_TIMEOUT_SEC, HELIUS_BASE_URL
from backend_walletfeed.transactions.models import RawTransaction
from backend_walletfeed.walletfeed_logging import get_logger

logger = get_logger(__name__)

FAILURE_HTTP_STATUS = "http_status"
FAILURE_TRANSPORT = "transport"
FAILURE_DECODE = "decode"


@dataclass(frozen=True)
class FetchSuccess:
    transactions: list[RawTransaction] = field(default_factory=list)


@dataclass(frozen=True)
class FetchFailure:
    kind: str  # http_status | transport | decode
    message: str
    status_code: int | None = None
    body: Any = None


FetchResult = FetchSuccess | FetchFailure


def build_transactions_url(
    base_url: str,
    wallet_address: str,
    api_key: str,
    limit: int,
    before_signature: str | None = None,
) -> httpx.URL:
    """Build the history URL; before is appended only when a cursor is given."""
    params: dict[str, Any] = {"api-key": api_key, "limit": limit}
    if before_signature:
        params["before"] = before_signature
    return httpx.URL(
        f"{base_url.rstrip('/')}/addresses/{wallet_address}/transactions",
        params=params,
    )


def _response_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _parse_items(items: list[Any]) -> list[RawTransaction]:
    """Parse array items; drop malformed ones (not an object / no signature)."""
    out: list[RawTransaction] = []
    for item in items:
        try:
            out.append(RawTransaction.from_api_item(item))
        except (ValueError, OverflowError) as e:
            logger.warning("helius_fetch_malformed_item", error=str(e))
    return out


class HeliusTransactionFetcher:
    """
    Fetch raw transaction pages for a wallet from the Helius enhanced API.

    A fresh httpx.AsyncClient is opened per call unless one is injected.
    transport is passed through to the client (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str = HELIUS_BASE_URL,
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url must be non-empty")
        if timeout_sec <= 0:
            raise ValueError("timeout_sec must be positive")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_sec
        self._client = client
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    async def fetch_transactions(
        self,
        wallet_address: str,
        api_key: str,
        limit: int,
        before_signature: str | None = None,
    ) -> FetchResult:
        url = build_transactions_url(
            self._base_url, wallet_address, api_key, limit, before_signature
        )
        logger.debug(
            "helius_fetch_request",
            wallet_id=wallet_address,
            url=str(url),  # api-key is masked by the logging processors
            limit=limit,
            before=before_signature,
        )
        try:
            if self._client is not None:
                resp = await self._client.get(url)
            else:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self._timeout),
                    transport=self._transport,
                ) as client:
                    resp = await client.get(url)
        except httpx.HTTPError as e:
            logger.error(
                "helius_fetch_transport_error",
                wallet_id=wallet_address,
                error=str(e) or e.__class__.__name__,
            )
            return FetchFailure(FAILURE_TRANSPORT, str(e) or e.__class__.__name__)

        if not resp.is_success:
            body = _response_body(resp)
            logger.error(
                "helius_fetch_http_error",
                wallet_id=wallet_address,
                status_code=resp.status_code,
                body=body,
            )
            return FetchFailure(
                FAILURE_HTTP_STATUS,
                f"Helius returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                body=body,
            )

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("helius_fetch_decode_error", wallet_id=wallet_address, error=str(e))
            return FetchFailure(FAILURE_DECODE, f"invalid JSON body: {e}", status_code=resp.status_code)
        if not isinstance(data, list):
            logger.error(
                "helius_fetch_unexpected_payload",
                wallet_id=wallet_address,
                payload_type=type(data).__name__,
            )
            return FetchFailure(
                FAILURE_DECODE,
                f"expected a JSON array, got {type(data).__name__}",
                status_code=resp.status_code,
                body=data,
            )

        transactions = _parse_items(data)
        logger.debug(
            "helius_fetch_done",
            wallet_id=wallet_address,
            received=len(data),
            parsed=len(transactions),
        )
        return FetchSuccess(transactions)
