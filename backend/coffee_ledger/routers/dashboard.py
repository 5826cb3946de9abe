"""Dashboard endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import DashboardStats
from ..use_cases.dashboard import dashboard_stats_use_case

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(db: Session = Depends(get_db)):
    """Farmer, lot, inventory and active auction totals."""
    return dashboard_stats_use_case(db=db)
