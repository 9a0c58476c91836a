"""
Periodic poll loop — the trigger for TransactionsService.run_scheduled_poll().

Runs inside the API's event loop as a background task. Ticks are sequential
(the next wait starts after the previous tick returns) so they never overlap.
"""

from __future__ import annotations

import asyncio

from backend_walletfeed.transactions.service import TransactionsService
from backend_walletfeed.walletfeed_logging import get_logger

logger = get_logger(__name__)

SHUTDOWN_JOIN_TIMEOUT_SEC = 15.0


async def run_poll_loop(
    service: TransactionsService,
    interval_sec: float,
    stop_event: asyncio.Event,
) -> None:
    """Poll immediately, then every interval_sec until stop_event is set."""
    if interval_sec <= 0:
        raise ValueError("interval_sec must be positive")
    logger.info("poll_loop_started", interval_sec=interval_sec)
    while not stop_event.is_set():
        try:
            await service.run_scheduled_poll()
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.exception("poll_loop_tick_error", error=str(e))
        if stop_event.is_set():
            break
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_sec)
        except asyncio.TimeoutError:
            pass
    logger.info("poll_loop_exited")


async def stop_poll_loop(
    task: asyncio.Task,
    stop_event: asyncio.Event,
    timeout_sec: float = SHUTDOWN_JOIN_TIMEOUT_SEC,
) -> None:
    """Signal the loop to stop and wait for it; cancel if it does not exit in time."""
    stop_event.set()
    try:
        await asyncio.wait_for(task, timeout=timeout_sec)
    except asyncio.TimeoutError:
        logger.warning("poll_loop_shutdown_timeout", timeout_sec=timeout_sec)
