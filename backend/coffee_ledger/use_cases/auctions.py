"""Auction lifecycle and bidding use-cases."""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from ..domain_errors import ConflictError, DomainError, NotFoundError
from ..models import Auction, Bid
from ..schemas import AuctionCreate, BidCreate
from ..services.auction_rules import (
    ACTIVE_STATUS,
    is_bid_high_enough,
    normalize_auction_status,
    price_floor,
    select_winning_bid,
    validate_status_transition,
)
from ..services.lot_rules import now_utc
from .lot_registry import get_lot_or_404

logger = logging.getLogger(__name__)


def _get_auction_or_404(*, db: Session, auction_id: UUID, for_update: bool = False) -> Auction:
    query = db.query(Auction).filter(Auction.id == auction_id)
    if for_update:
        # Row lock on backends that support it; SQLite ignores FOR UPDATE.
        query = query.with_for_update()
    auction = query.first()
    if not auction:
        raise NotFoundError(
            code="AUCTION_NOT_FOUND",
            message="Auction not found",
            details={"auctionId": str(auction_id)},
        )
    return auction


def _auction_closed_error(auction: Auction) -> ConflictError:
    return ConflictError(
        code="AUCTION_CLOSED",
        message="Auction is not accepting bids",
        details={"auctionId": str(auction.id), "status": auction.status},
    )


def _bid_too_low_error(auction: Auction, amount) -> ConflictError:
    floor = price_floor(starting_price=auction.starting_price, current_price=auction.current_price)
    return ConflictError(
        code="BID_TOO_LOW",
        message=f"Bid must exceed {floor}",
        details={"auctionId": str(auction.id), "amount": str(amount), "minimumExclusive": str(floor)},
    )


def get_auction_use_case(*, db: Session, auction_id: UUID) -> Auction:
    return _get_auction_or_404(db=db, auction_id=auction_id)


def open_auction_use_case(*, db: Session, data: AuctionCreate) -> Auction:
    """Open an auction for a lot; a lot can have one active auction at a time."""
    lot = get_lot_or_404(db=db, lot_pk=data.lot_id)

    existing = db.query(Auction).filter(
        Auction.lot_id == lot.id,
        Auction.status == ACTIVE_STATUS,
    ).first()
    if existing:
        raise ConflictError(
            code="AUCTION_ALREADY_ACTIVE",
            message="Lot already has an active auction",
            details={"auctionId": str(existing.id), "lotId": lot.lot_id},
        )

    now = now_utc()
    auction = Auction(
        lot_id=lot.id,
        starting_price=data.starting_price,
        current_price=None,
        seller_id=data.seller_id,
        status=ACTIVE_STATUS,
        start_time=now,
        created_at=now,
    )
    db.add(auction)
    db.commit()
    db.refresh(auction)
    logger.info(f"Opened auction {auction.id} for lot {lot.lot_id} at {auction.starting_price}")
    return auction


def place_bid_use_case(*, db: Session, data: BidCreate) -> Bid:
    """
    Accept a bid if it strictly exceeds the current price.

    The price check and the price update are one conditional UPDATE
    (compare-and-set on COALESCE(current_price, starting_price)), so two
    concurrent bids cannot both pass against the same stale price. The bid
    row is written in the same transaction.
    """
    auction = _get_auction_or_404(db=db, auction_id=data.auction_id, for_update=True)

    if normalize_auction_status(auction.status) != ACTIVE_STATUS:
        raise _auction_closed_error(auction)
    if not is_bid_high_enough(
        amount=data.amount,
        starting_price=auction.starting_price,
        current_price=auction.current_price,
    ):
        logger.warning(f"Rejected bid {data.amount} on auction {auction.id}: below {auction.current_price or auction.starting_price}")
        raise _bid_too_low_error(auction, data.amount)

    result = db.execute(
        update(Auction)
        .where(
            Auction.id == auction.id,
            Auction.status == ACTIVE_STATUS,
            func.coalesce(Auction.current_price, Auction.starting_price) < data.amount,
        )
        .values(current_price=data.amount, leading_bidder_id=data.bidder_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # Lost the race: another bid or a close landed first. Report against fresh state.
        db.rollback()
        fresh = _get_auction_or_404(db=db, auction_id=data.auction_id)
        logger.warning(f"Rejected bid {data.amount} on auction {fresh.id}: concurrent update")
        if normalize_auction_status(fresh.status) != ACTIVE_STATUS:
            raise _auction_closed_error(fresh)
        raise _bid_too_low_error(fresh, data.amount)

    bid = Bid(
        auction_id=auction.id,
        bidder_id=data.bidder_id,
        amount=data.amount,
        bid_time=now_utc(),
    )
    db.add(bid)
    db.commit()
    db.refresh(bid)
    logger.info(f"Accepted bid {bid.amount} from {bid.bidder_id} on auction {auction.id}")
    return bid


def _finish_auction(*, auction: Auction, next_status: str) -> None:
    try:
        auction.status = validate_status_transition(current_status=auction.status, next_status=next_status)
    except ValueError as exc:
        raise ConflictError(
            code="AUCTION_CLOSED",
            message=str(exc),
            details={"auctionId": str(auction.id), "status": auction.status},
        ) from exc
    auction.end_time = now_utc()


def close_auction_use_case(*, db: Session, auction_id: UUID) -> Auction:
    """Close an active auction and record the authoritative winner."""
    auction = _get_auction_or_404(db=db, auction_id=auction_id, for_update=True)
    _finish_auction(auction=auction, next_status="closed")

    bids = db.query(Bid).filter(Bid.auction_id == auction.id).all()
    winning_bid = select_winning_bid(bids)
    auction.winner_id = winning_bid.bidder_id if winning_bid else None

    db.commit()
    db.refresh(auction)
    logger.info(f"Closed auction {auction.id}; winner {auction.winner_id} at {auction.current_price}")
    return auction


def cancel_auction_use_case(*, db: Session, auction_id: UUID, seller_id: UUID) -> Auction:
    """Seller withdraws the lot; no winner is recorded."""
    auction = _get_auction_or_404(db=db, auction_id=auction_id, for_update=True)
    if auction.seller_id != seller_id:
        raise DomainError(
            code="AUCTION_CANCEL_FORBIDDEN",
            http_status=403,
            message="Only the seller can cancel the auction",
        )
    _finish_auction(auction=auction, next_status="cancelled")

    db.commit()
    db.refresh(auction)
    logger.info(f"Cancelled auction {auction.id}")
    return auction


def list_active_auctions_use_case(*, db: Session) -> list[Auction]:
    return (
        db.query(Auction)
        .filter(Auction.status == ACTIVE_STATUS)
        .order_by(Auction.created_at.desc())
        .all()
    )


def list_bids_use_case(*, db: Session, auction_id: UUID) -> list[Bid]:
    """Bids by amount descending; earlier bid first among equal amounts."""
    _get_auction_or_404(db=db, auction_id=auction_id)
    return (
        db.query(Bid)
        .filter(Bid.auction_id == auction_id)
        .order_by(Bid.amount.desc(), Bid.bid_time.asc())
        .all()
    )
