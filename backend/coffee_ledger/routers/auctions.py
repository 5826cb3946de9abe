"""Auction and bid endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import AuctionCancel, AuctionCreate, AuctionResponse, BidCreate, BidResponse
from ..use_cases.auctions import (
    cancel_auction_use_case,
    close_auction_use_case,
    get_auction_use_case,
    list_active_auctions_use_case,
    list_bids_use_case,
    open_auction_use_case,
    place_bid_use_case,
)

router = APIRouter(tags=["auctions"])


@router.post("/auctions", response_model=AuctionResponse)
def open_auction(data: AuctionCreate, db: Session = Depends(get_db)):
    return open_auction_use_case(db=db, data=data)


@router.get("/auctions", response_model=list[AuctionResponse])
def list_active_auctions(db: Session = Depends(get_db)):
    """Active auctions, newest first."""
    return list_active_auctions_use_case(db=db)


@router.get("/auctions/{auction_id}", response_model=AuctionResponse)
def get_auction(auction_id: UUID, db: Session = Depends(get_db)):
    return get_auction_use_case(db=db, auction_id=auction_id)


@router.post("/auctions/{auction_id}/close", response_model=AuctionResponse)
def close_auction(auction_id: UUID, db: Session = Depends(get_db)):
    return close_auction_use_case(db=db, auction_id=auction_id)


@router.post("/auctions/{auction_id}/cancel", response_model=AuctionResponse)
def cancel_auction(auction_id: UUID, data: AuctionCancel, db: Session = Depends(get_db)):
    return cancel_auction_use_case(db=db, auction_id=auction_id, seller_id=data.seller_id)


@router.get("/auctions/{auction_id}/bids", response_model=list[BidResponse])
def list_bids(auction_id: UUID, db: Session = Depends(get_db)):
    return list_bids_use_case(db=db, auction_id=auction_id)


@router.post("/bids", response_model=BidResponse)
def place_bid(data: BidCreate, db: Session = Depends(get_db)):
    return place_bid_use_case(db=db, data=data)
