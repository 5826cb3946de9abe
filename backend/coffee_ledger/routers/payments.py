"""Payment ledger endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import PaymentCreate, PaymentResponse, PaymentStatusUpdate
from ..use_cases.payments import (
    create_payment_use_case,
    list_user_payments_use_case,
    update_payment_status_use_case,
)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=PaymentResponse)
def create_payment(data: PaymentCreate, db: Session = Depends(get_db)):
    return create_payment_use_case(db=db, data=data)


@router.get("/{user_id}", response_model=list[PaymentResponse])
def list_user_payments(user_id: UUID, db: Session = Depends(get_db)):
    """Payments sent or received by the user, newest first."""
    return list_user_payments_use_case(db=db, user_id=user_id)


@router.put("/{payment_id}/status", response_model=PaymentResponse)
def update_payment_status(payment_id: UUID, data: PaymentStatusUpdate, db: Session = Depends(get_db)):
    return update_payment_status_use_case(db=db, payment_id=payment_id, status=data.status)
