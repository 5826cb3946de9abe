"""Auction state machine and bid ordering helpers."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Protocol
from uuid import UUID

ACTIVE_STATUS = "active"
_TERMINAL_STATUSES: set[str] = {"closed", "cancelled"}
_ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "active": {"closed", "cancelled"},
    "closed": set(),
    "cancelled": set(),
}


class BidLike(Protocol):
    bidder_id: UUID
    amount: Decimal
    bid_time: datetime


def normalize_auction_status(status: str | None) -> str:
    if not status:
        return ACTIVE_STATUS
    return status.strip().lower()


def is_terminal_status(status: str | None) -> bool:
    return normalize_auction_status(status) in _TERMINAL_STATUSES


def validate_status_transition(*, current_status: str | None, next_status: str) -> str:
    current = normalize_auction_status(current_status)
    nxt = normalize_auction_status(next_status)
    if nxt not in _ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(f"Invalid auction status transition: {current} -> {nxt}")
    return nxt


def price_floor(*, starting_price: Decimal, current_price: Decimal | None) -> Decimal:
    """Amount a new bid must strictly exceed."""
    return current_price if current_price is not None else starting_price


def is_bid_high_enough(*, amount: Decimal, starting_price: Decimal, current_price: Decimal | None) -> bool:
    return amount > price_floor(starting_price=starting_price, current_price=current_price)


def bid_display_order_key(bid: BidLike) -> tuple[Decimal, datetime]:
    # Highest amount first, earlier bid first among equal amounts.
    return (-bid.amount, bid.bid_time)


def order_bids(bids: Iterable[BidLike]) -> list[BidLike]:
    return sorted(bids, key=bid_display_order_key)


def select_winning_bid(bids: Iterable[BidLike]) -> BidLike | None:
    ordered = order_bids(bids)
    return ordered[0] if ordered else None
