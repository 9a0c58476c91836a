"""
Record validation and wallet address checks.

validate_transaction() turns a RawTransaction into either Accepted (a
CompleteTransaction ready for normalization) or Skipped (with a reason).
Skips are expected upstream behaviour, not errors.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from backend_walletfeed.transactions.models import CompleteTransaction, RawTransaction

# Solana addresses are base58-encoded and 32-44 characters long
BASE58_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


class SkipReason(str, Enum):
    MISSING_META = "missing_meta"
    MISSING_MESSAGE = "missing_message"


@dataclass(frozen=True)
class Accepted:
    record: CompleteTransaction


@dataclass(frozen=True)
class Skipped:
    signature: str
    reason: SkipReason


ValidationResult = Accepted | Skipped


def is_valid_wallet_address(address: str | None) -> bool:
    if not address:
        return False
    return BASE58_ADDRESS_RE.fullmatch(address) is not None


def validate_transaction(tx: RawTransaction) -> ValidationResult:
    """Check meta first, then transaction.message."""
    if tx.meta is None:
        return Skipped(tx.signature, SkipReason.MISSING_META)
    if tx.transaction is None or tx.transaction.message is None:
        return Skipped(tx.signature, SkipReason.MISSING_MESSAGE)
    return Accepted(
        CompleteTransaction(
            signature=tx.signature,
            slot=tx.slot,
            block_time=tx.block_time,
            meta=tx.meta,
            message=tx.transaction.message,
        )
    )
