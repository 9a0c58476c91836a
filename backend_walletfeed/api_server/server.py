"""
FastAPI server — transaction history endpoint plus the periodic poll loop.

GET /transactions/history?limit=20&beforeSignature=abc123 returns normalized
transactions for the configured wallet. The lifespan starts the poll loop as
a background task (unless POLL_ENABLED is off) and stops it on shutdown.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Literal

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from backend_walletfeed import __version__
from backend_walletfeed.config import get_settings
from backend_walletfeed.core.exceptions import InvalidQueryError
from backend_walletfeed.transactions.models import ProcessedTransaction
from backend_walletfeed.transactions.poller import run_poll_loop, stop_poll_loop
from backend_walletfeed.transactions.service import DEFAULT_HISTORY_LIMIT, TransactionsService
from backend_walletfeed.walletfeed_logging import configure_logging, get_logger

logger = get_logger(__name__)

INVALID_LIMIT_DETAIL = "Invalid limit parameter. It must be a positive integer."


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------

class ProcessedTransactionResponse(BaseModel):
    """One normalized transaction as served by GET /transactions/history."""

    model_config = ConfigDict(populate_by_name=True)

    signature: str = Field(..., description="Transaction signature (base58)")
    slot: int = Field(..., description="Slot containing the transaction")
    block_time: datetime | None = Field(None, alias="blockTime", description="UTC block time, ms precision")
    fee: int | None = Field(None, description="Fee in lamports")
    status: Literal["success", "failed"] = Field(..., description="failed iff meta.err was set")
    memo: str | None = Field(None, description="Memo instruction text")
    source_address: str | None = Field(None, alias="sourceAddress", description="First account key")
    destination_address: str | None = Field(
        None, alias="destinationAddress", description="Second account key"
    )
    amount: int | None = Field(None, description="Transfer amount in lamports")

    @classmethod
    def from_processed(cls, tx: ProcessedTransaction) -> "ProcessedTransactionResponse":
        return cls(
            signature=tx.signature,
            slot=tx.slot,
            block_time=tx.block_time,
            fee=tx.fee,
            status=tx.status.value,
            memo=tx.memo,
            source_address=tx.source_address,
            destination_address=tx.destination_address,
            amount=tx.amount,
        )


# -----------------------------------------------------------------------------
# Dependencies and parameter parsing
# -----------------------------------------------------------------------------

def get_transactions_service(request: Request) -> TransactionsService:
    """Dependency: app-scoped service (created by lifespan, or lazily on first request)."""
    service = getattr(request.app.state, "transactions_service", None)
    if service is None:
        service = TransactionsService(settings_provider=get_settings)
        request.app.state.transactions_service = service
    return service


def parse_limit(raw: str | None) -> int:
    """Absent/empty -> default 50; non-numeric or <= 0 -> InvalidQueryError."""
    if raw is None or not raw.strip():
        return DEFAULT_HISTORY_LIMIT
    text = raw.strip()
    # ASCII digits only: int() would also take "1_000", "+5" and non-Latin numerals
    if not (text.isascii() and text.isdigit()):
        raise InvalidQueryError(INVALID_LIMIT_DETAIL)
    limit = int(text)
    if limit <= 0:
        raise InvalidQueryError(INVALID_LIMIT_DETAIL)
    return limit


# -----------------------------------------------------------------------------
# Lifespan: start the poll loop in the background (never blocks the API)
# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    service = TransactionsService(settings_provider=get_settings)
    app.state.transactions_service = service

    stop_event = asyncio.Event()
    task: asyncio.Task | None = None
    if settings.poll_enabled:
        task = asyncio.create_task(
            run_poll_loop(service, settings.poll_interval_sec, stop_event),
            name="transactions-poll-loop",
        )
        logger.info("api_poll_loop_started", interval_sec=settings.poll_interval_sec)
    else:
        logger.info("api_poll_loop_disabled")

    yield

    if task is not None:
        await stop_poll_loop(task, stop_event)
        logger.info("api_poll_loop_stopped")


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

app = FastAPI(
    title="Backend Wallet Feed API",
    description="Normalized Solana transaction history for the configured wallet.",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/transactions/history", response_model=list[ProcessedTransactionResponse])
async def get_history(
    limit: str | None = Query(None, description="Page size (positive integer, default 50)"),
    before_signature: str | None = Query(
        None, alias="beforeSignature", description="Return transactions before this signature"
    ),
    service: TransactionsService = Depends(get_transactions_service),
) -> list[ProcessedTransactionResponse]:
    """
    Return historical transactions for the configured wallet, newest first.

    Upstream and configuration failures yield an empty list; only an invalid
    limit is reported as an error (400).
    """
    try:
        parsed_limit = parse_limit(limit)
        transactions = await service.get_historical_transactions(
            parsed_limit, before_signature or None
        )
    except InvalidQueryError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return [ProcessedTransactionResponse.from_processed(tx) for tx in transactions]


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )
