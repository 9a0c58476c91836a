"""
Data models for the transaction feed.

Raw* types mirror the Helius enhanced-transactions payload with every nested
block optional; CompleteTransaction is a raw record that passed validation;
ProcessedTransaction is the normalized output served to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class TransactionStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


def _int_or_none(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _int_list(values: Any) -> list[int]:
    if not isinstance(values, list):
        return []
    out: list[int] = []
    for v in values:
        n = _int_or_none(v)
        if n is not None:
            out.append(n)
    return out


@dataclass(frozen=True)
class ParsedInstruction:
    """jsonParsed instruction payload: type tag plus type-specific info."""

    type: str | None
    info: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api_item(cls, item: Any) -> "ParsedInstruction | None":
        if not isinstance(item, dict):
            return None
        info = item.get("info")
        return cls(
            type=item.get("type") if isinstance(item.get("type"), str) else None,
            info=info if isinstance(info, dict) else {},
        )


@dataclass(frozen=True)
class RawInstruction:
    program: str | None
    program_id: str | None
    parsed: ParsedInstruction | None

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "RawInstruction":
        return cls(
            program=item.get("program"),
            program_id=item.get("programId"),
            parsed=ParsedInstruction.from_api_item(item.get("parsed")),
        )


def _account_keys(raw_keys: Any) -> list[str]:
    """Resolve accountKeys to base58 strings (plain strings or jsonParsed {"pubkey": ...})."""
    if not isinstance(raw_keys, list):
        return []
    out: list[str] = []
    for k in raw_keys:
        if isinstance(k, str):
            out.append(k)
        elif isinstance(k, dict) and k.get("pubkey"):
            out.append(str(k["pubkey"]))
    return out


@dataclass(frozen=True)
class RawMessage:
    account_keys: list[str]
    instructions: list[RawInstruction]
    recent_blockhash: str | None = None

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "RawMessage":
        instructions = item.get("instructions")
        return cls(
            account_keys=_account_keys(item.get("accountKeys")),
            instructions=[
                RawInstruction.from_api_item(ix)
                for ix in (instructions if isinstance(instructions, list) else [])
                if isinstance(ix, dict)
            ],
            recent_blockhash=item.get("recentBlockhash"),
        )


@dataclass(frozen=True)
class RawTransactionBody:
    message: RawMessage | None
    signatures: list[str] = field(default_factory=list)

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "RawTransactionBody":
        message = item.get("message")
        signatures = item.get("signatures")
        return cls(
            message=RawMessage.from_api_item(message) if isinstance(message, dict) else None,
            signatures=[s for s in signatures if isinstance(s, str)] if isinstance(signatures, list) else [],
        )


@dataclass(frozen=True)
class RawMeta:
    fee: int | None
    err: Any  # None if success; dict/str from upstream if failed
    pre_balances: list[int] = field(default_factory=list)
    post_balances: list[int] = field(default_factory=list)
    inner_instructions: list[Any] = field(default_factory=list)
    log_messages: list[str] = field(default_factory=list)

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "RawMeta":
        inner = item.get("innerInstructions")
        logs = item.get("logMessages")
        return cls(
            fee=_int_or_none(item.get("fee")),
            err=item.get("err"),
            pre_balances=_int_list(item.get("preBalances")),
            post_balances=_int_list(item.get("postBalances")),
            inner_instructions=list(inner) if isinstance(inner, list) else [],
            log_messages=[m for m in logs if isinstance(m, str)] if isinstance(logs, list) else [],
        )


@dataclass(frozen=True)
class RawTransaction:
    """
    One upstream transaction record, untrusted.

    meta and transaction (and transaction.message) may be absent; that is an
    incomplete record to skip, not a malformed one.
    """

    signature: str
    slot: int
    block_time: int | float | None
    meta: RawMeta | None
    transaction: RawTransactionBody | None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api_item(cls, item: Any) -> "RawTransaction":
        """
        Build from a single item of the upstream JSON array.

        Raises ValueError when the item is not an object, has no string
        signature, or carries a non-integer slot.
        """
        if not isinstance(item, dict):
            raise ValueError(f"transaction item is not an object: {type(item).__name__}")
        signature = item.get("signature")
        if not isinstance(signature, str) or not signature:
            raise ValueError("transaction item has no signature")
        slot = _int_or_none(item.get("slot", 0))
        if slot is None:
            raise ValueError(f"transaction {signature} has a non-integer slot")
        block_time = item.get("blockTime")
        if isinstance(block_time, bool) or not isinstance(block_time, (int, float)):
            block_time = None
        meta = item.get("meta")
        transaction = item.get("transaction")
        return cls(
            signature=signature,
            slot=slot,
            block_time=block_time,
            meta=RawMeta.from_api_item(meta) if isinstance(meta, dict) else None,
            transaction=(
                RawTransactionBody.from_api_item(transaction)
                if isinstance(transaction, dict)
                else None
            ),
            raw=item,
        )


@dataclass(frozen=True)
class CompleteTransaction:
    """A RawTransaction known to carry meta and transaction.message."""

    signature: str
    slot: int
    block_time: int | float | None
    meta: RawMeta
    message: RawMessage


@dataclass(frozen=True)
class ProcessedTransaction:
    """
    Normalized transaction. Schema is stable regardless of upstream shape.
    """

    signature: str
    """Transaction signature (base58); primary identity."""
    slot: int
    block_time: datetime | None
    """UTC block time at millisecond precision; None if upstream had none."""
    fee: int | None
    """Fee in lamports."""
    status: TransactionStatus
    memo: str | None
    source_address: str | None
    """First account key (fee payer)."""
    destination_address: str | None
    """Second account key."""
    amount: int | None
    """Lamports from the first transfer instruction."""

    @property
    def block_time_ms(self) -> int | None:
        if self.block_time is None:
            return None
        return round(self.block_time.timestamp() * 1000)
