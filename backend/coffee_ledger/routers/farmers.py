"""Farmer registry endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import FarmerCreate, FarmerResponse
from ..use_cases.identity import create_farmer_use_case, list_farmers_use_case

router = APIRouter(prefix="/farmers", tags=["farmers"])


@router.post("", response_model=FarmerResponse)
def create_farmer(data: FarmerCreate, db: Session = Depends(get_db)):
    return create_farmer_use_case(db=db, data=data)


@router.get("", response_model=list[FarmerResponse])
def list_farmers(
    cooperative_id: Optional[UUID] = Query(default=None, alias="cooperativeId"),
    db: Session = Depends(get_db),
):
    """List farmers, optionally for one cooperative."""
    return list_farmers_use_case(db=db, cooperative_id=cooperative_id)
