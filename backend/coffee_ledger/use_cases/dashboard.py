"""Dashboard aggregate counts."""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Auction, CoffeeLot, Farmer
from ..schemas import DashboardStats


def dashboard_stats_use_case(*, db: Session) -> DashboardStats:
    farmer_count = db.query(func.count(Farmer.id)).scalar()
    lot_count, total_quantity = db.query(
        func.count(CoffeeLot.id),
        func.coalesce(func.sum(CoffeeLot.quantity), 0),
    ).one()
    active_auctions = db.query(func.count(Auction.id)).filter(Auction.status == "active").scalar()

    return DashboardStats(
        active_farmers=int(farmer_count or 0),
        coffee_lots=int(lot_count or 0),
        total_inventory=Decimal(str(total_quantity or 0)),
        active_auctions=int(active_auctions or 0),
    )
