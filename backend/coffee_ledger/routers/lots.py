"""Coffee lot endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import LotCreate, LotGradeUpdate, LotResponse, LotStatusUpdate, LotTraceRequest
from ..use_cases.lot_registry import (
    assign_lot_grade_use_case,
    create_lot_use_case,
    get_lot_by_code_or_404,
    get_lot_or_404,
    list_lots_use_case,
    trace_lot_use_case,
    update_lot_status_use_case,
)

router = APIRouter(prefix="/lots", tags=["lots"])


@router.post("", response_model=LotResponse)
def create_lot(data: LotCreate, db: Session = Depends(get_db)):
    """Create a lot with a generated lot ID and QR traceability code."""
    return create_lot_use_case(db=db, data=data)


@router.get("", response_model=list[LotResponse])
def list_lots(
    farmer_id: Optional[UUID] = Query(default=None, alias="farmerId"),
    status: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    return list_lots_use_case(db=db, farmer_id=farmer_id, status=status)


@router.get("/by-code/{lot_code}", response_model=LotResponse)
def get_lot_by_code(lot_code: str, db: Session = Depends(get_db)):
    return get_lot_by_code_or_404(db=db, lot_code=lot_code)


@router.post("/trace", response_model=LotResponse)
def trace_lot(data: LotTraceRequest, db: Session = Depends(get_db)):
    """Resolve a scanned QR payload to its lot."""
    return trace_lot_use_case(db=db, raw_payload=data.payload)


@router.get("/{lot_pk}", response_model=LotResponse)
def get_lot(lot_pk: UUID, db: Session = Depends(get_db)):
    return get_lot_or_404(db=db, lot_pk=lot_pk)


@router.put("/{lot_pk}/status", response_model=LotResponse)
def update_lot_status(lot_pk: UUID, data: LotStatusUpdate, db: Session = Depends(get_db)):
    return update_lot_status_use_case(db=db, lot_pk=lot_pk, status=data.status)


@router.put("/{lot_pk}/grade", response_model=LotResponse)
def assign_lot_grade(lot_pk: UUID, data: LotGradeUpdate, db: Session = Depends(get_db)):
    return assign_lot_grade_use_case(db=db, lot_pk=lot_pk, grade=data.grade)
