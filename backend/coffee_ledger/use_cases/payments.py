"""Payment ledger use-cases."""
from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..domain_errors import ConflictError, NotFoundError, ValidationError
from ..models import Payment
from ..schemas import PaymentCreate
from ..services.lot_rules import now_utc
from ..services.payment_rules import (
    InvalidTransition,
    generate_transaction_id,
    processed_at_for,
    validate_status_transition,
)
from .lot_registry import get_lot_or_404

logger = logging.getLogger(__name__)


def get_payment_or_404(*, db: Session, payment_id: UUID) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise NotFoundError(
            code="PAYMENT_NOT_FOUND",
            message="Payment not found",
            details={"paymentId": str(payment_id)},
        )
    return payment


def create_payment_use_case(
    *,
    db: Session,
    data: PaymentCreate,
    new_transaction_id: Callable[[], str] = generate_transaction_id,
) -> Payment:
    """Record a pending payment under a fresh transaction id."""
    if data.lot_id is not None:
        get_lot_or_404(db=db, lot_pk=data.lot_id)

    payment = Payment(
        transaction_id=new_transaction_id(),
        lot_id=data.lot_id,
        payer_id=data.payer_id,
        payee_id=data.payee_id,
        amount=data.amount,
        status="pending",
        payment_method=data.payment_method,
        created_at=now_utc(),
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info(f"Recorded payment {payment.transaction_id}: {payment.amount} via {payment.payment_method}")
    return payment


def update_payment_status_use_case(*, db: Session, payment_id: UUID, status: str) -> Payment:
    payment = get_payment_or_404(db=db, payment_id=payment_id)

    old_status = payment.status
    try:
        new_status = validate_status_transition(current_status=old_status, next_status=status)
    except InvalidTransition as exc:
        raise ConflictError(
            code="PAYMENT_INVALID_TRANSITION",
            message=str(exc),
            details={"from": old_status, "to": status},
        ) from exc
    except ValueError as exc:
        raise ValidationError(
            code="PAYMENT_STATUS_INVALID",
            message=str(exc),
            details={"status": status},
        ) from exc

    if new_status == old_status:
        return payment

    payment.status = new_status
    payment.processed_at = processed_at_for(next_status=new_status, processed_at=payment.processed_at)
    db.commit()
    db.refresh(payment)
    logger.info(f"Payment {payment.transaction_id} status {old_status} -> {new_status}")
    return payment


def list_user_payments_use_case(*, db: Session, user_id: UUID) -> list[Payment]:
    """Payments where the user is payer or payee, newest first."""
    return (
        db.query(Payment)
        .filter(or_(Payment.payer_id == user_id, Payment.payee_id == user_id))
        .order_by(Payment.created_at.desc())
        .all()
    )
