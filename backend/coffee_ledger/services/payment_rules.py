"""Payment status rules and transaction identifiers."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from ..models import PAYMENT_STATUSES

TRANSACTION_ID_PREFIX = "TXN"
TERMINAL_PAYMENT_STATUSES: set[str] = {"completed", "failed"}
_ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"processing", "completed", "failed"},
    "processing": {"completed", "failed"},
    "completed": set(),
    "failed": set(),
}


class InvalidTransition(ValueError):
    """Requested payment status move is not allowed."""


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def generate_transaction_id() -> str:
    return f"{TRANSACTION_ID_PREFIX}-{uuid4()}"


def normalize_payment_status(status: str | None) -> str:
    if not status:
        return "pending"
    return status.strip().lower()


def validate_status_transition(*, current_status: str | None, next_status: str) -> str:
    current = normalize_payment_status(current_status)
    nxt = (next_status or "").strip().lower()
    if nxt not in PAYMENT_STATUSES:
        raise ValueError(f"Unknown payment status: {next_status}")
    if nxt == current:
        return nxt
    if nxt not in _ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransition(f"Invalid payment status transition: {current} -> {nxt}")
    return nxt


def processed_at_for(*, next_status: str, processed_at: datetime | None, at: datetime | None = None) -> datetime | None:
    """Stamp processed_at once, when the payment reaches a terminal status."""
    if normalize_payment_status(next_status) in TERMINAL_PAYMENT_STATUSES and processed_at is None:
        return at or now_utc()
    return processed_at
