"""Coffee lot lifecycle invariant helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from ..models import LOT_GRADES, LOT_STATUSES

INITIAL_LOT_STATUS = "harvested"
GRADEABLE_STATUSES: set[str] = {"quality_testing", "ready_for_auction"}
_ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "harvested": {"wet_processing", "dry_processing"},
    "wet_processing": {"dry_processing", "quality_testing"},
    "dry_processing": {"quality_testing"},
    "quality_testing": {"ready_for_auction"},
    "ready_for_auction": {"sold"},
    "sold": {"exported", "roasted"},
    "exported": {"roasted"},
    "roasted": {"retail"},
    "retail": set(),
}


class InvalidTransition(ValueError):
    """Requested lot status move is not in the transition table."""


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def normalize_lot_status(status: str | None) -> str:
    if not status:
        return INITIAL_LOT_STATUS
    return status.strip().lower()


def is_known_status(status: str | None) -> bool:
    return normalize_lot_status(status) in LOT_STATUSES


def allowed_next_statuses(status: str | None) -> set[str]:
    return set(_ALLOWED_TRANSITIONS.get(normalize_lot_status(status), set()))


def is_terminal_status(status: str | None) -> bool:
    return not allowed_next_statuses(status)


def validate_status_transition(*, current_status: str | None, next_status: str) -> str:
    current = normalize_lot_status(current_status)
    # Only the stored status defaults to harvested; a blank target is invalid.
    nxt = (next_status or "").strip().lower()
    if nxt not in LOT_STATUSES:
        raise ValueError(f"Unknown lot status: {next_status}")

    if nxt == current:
        return nxt

    if nxt not in _ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransition(f"Invalid lot status transition: {current} -> {nxt}")
    return nxt


def ensure_gradeable(*, status: str | None, grade: str) -> None:
    if grade not in LOT_GRADES:
        raise ValueError(f"Unknown grade: {grade}")
    if normalize_lot_status(status) not in GRADEABLE_STATUSES:
        raise InvalidTransition(f"Cannot grade a lot in status {normalize_lot_status(status)}")


def generate_lot_code(*, prefix: str, suffix_length: int = 10, at: datetime | None = None) -> str:
    """Build a lot identifier like ``KC-2026-3F9A0C21D4``.

    The season tag is the UTC year; the suffix comes from a UUID4 so codes
    generated concurrently do not depend on clock resolution.
    """
    season = (at or now_utc()).year
    suffix = uuid4().hex[:suffix_length].upper()
    return f"{prefix}-{season}-{suffix}"
