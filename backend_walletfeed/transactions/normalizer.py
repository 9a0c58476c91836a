"""
Transaction normalizer — validated Helius records to ProcessedTransaction.

Pure and deterministic: the same CompleteTransaction always yields the same
output. Only the first memo and the first transfer instruction are read.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from backend_walletfeed.transactions.models import (
    CompleteTransaction,
    ProcessedTransaction,
    RawInstruction,
    TransactionStatus,
)

MEMO_INSTRUCTION_TYPE = "memo"
TRANSFER_INSTRUCTION_TYPE = "transfer"


def _has_error(err: Any) -> bool:
    """Truthiness as upstream clients read err: null, false, 0, NaN and "" mean ok."""
    if err is None or isinstance(err, (bool, str)):
        return bool(err)
    if isinstance(err, (int, float)):
        return err == err and err != 0
    return True


def _block_time(seconds: int | float | None) -> datetime | None:
    """Epoch seconds to a UTC datetime via milliseconds; 0/None or unrepresentable means unset."""
    if not seconds:
        return None
    try:
        millis = round(seconds * 1000)
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        # inf, NaN or outside the platform datetime range
        return None


def _first_of_type(instructions: list[RawInstruction], ix_type: str) -> RawInstruction | None:
    for ix in instructions:
        if ix.parsed is not None and ix.parsed.type == ix_type:
            return ix
    return None


def _memo(instructions: list[RawInstruction]) -> str | None:
    ix = _first_of_type(instructions, MEMO_INSTRUCTION_TYPE)
    if ix is None or ix.parsed is None:
        return None
    memo = ix.parsed.info.get("memo")
    return memo if isinstance(memo, str) and memo else None


def _amount(instructions: list[RawInstruction]) -> int | None:
    ix = _first_of_type(instructions, TRANSFER_INSTRUCTION_TYPE)
    if ix is None or ix.parsed is None:
        return None
    lamports = ix.parsed.info.get("lamports")
    if lamports is None or isinstance(lamports, bool):
        return None
    try:
        return int(lamports)
    except (TypeError, ValueError, OverflowError):
        return None


def normalize_transaction(tx: CompleteTransaction) -> ProcessedTransaction:
    keys = tx.message.account_keys
    instructions = tx.message.instructions
    return ProcessedTransaction(
        signature=tx.signature,
        slot=tx.slot,
        block_time=_block_time(tx.block_time),
        fee=tx.meta.fee,
        status=TransactionStatus.FAILED if _has_error(tx.meta.err) else TransactionStatus.SUCCESS,
        memo=_memo(instructions),
        source_address=keys[0] if len(keys) > 0 else None,
        destination_address=keys[1] if len(keys) > 1 else None,
        amount=_amount(instructions),
    )
