"""Cooperative endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import CooperativeCreate, CooperativeResponse
from ..use_cases.identity import create_cooperative_use_case, list_cooperatives_use_case

router = APIRouter(prefix="/cooperatives", tags=["cooperatives"])


@router.post("", response_model=CooperativeResponse)
def create_cooperative(data: CooperativeCreate, db: Session = Depends(get_db)):
    return create_cooperative_use_case(db=db, data=data)


@router.get("", response_model=list[CooperativeResponse])
def list_cooperatives(db: Session = Depends(get_db)):
    """List cooperatives by name."""
    return list_cooperatives_use_case(db=db)
