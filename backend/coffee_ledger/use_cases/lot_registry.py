"""Coffee lot registry use-cases: creation, status moves, grading and lookups."""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..domain_errors import ConflictError, ExternalServiceError, NotFoundError, ValidationError
from ..models import CoffeeLot
from ..schemas import LotCreate
from ..services.lot_rules import (
    INITIAL_LOT_STATUS,
    InvalidTransition,
    ensure_gradeable,
    generate_lot_code,
    now_utc,
    validate_status_transition,
)
from ..services.traceability import (
    QrEncodingError,
    build_trace_payload,
    encode_payload,
    parse_trace_payload,
    render_qr_data_url,
)

logger = logging.getLogger(__name__)


def get_lot_or_404(*, db: Session, lot_pk: UUID) -> CoffeeLot:
    lot = db.query(CoffeeLot).filter(CoffeeLot.id == lot_pk).first()
    if not lot:
        raise NotFoundError(
            code="LOT_NOT_FOUND",
            message="Coffee lot not found",
            details={"id": str(lot_pk)},
        )
    return lot


def get_lot_by_code_or_404(*, db: Session, lot_code: str) -> CoffeeLot:
    lot = db.query(CoffeeLot).filter(CoffeeLot.lot_id == lot_code).first()
    if not lot:
        raise NotFoundError(
            code="LOT_NOT_FOUND",
            message="Coffee lot not found",
            details={"lotId": lot_code},
        )
    return lot


def _build_lot(
    *,
    data: LotCreate,
    lot_code: str,
    created_at: datetime,
    render_qr: Callable[[str], str],
) -> CoffeeLot:
    payload = build_trace_payload(
        lot_id=lot_code,
        farmer_id=data.farmer_id,
        quantity=data.quantity,
        processing_method=data.processing_method,
        timestamp=created_at,
    )
    try:
        qr_code = render_qr(encode_payload(payload))
    except QrEncodingError as exc:
        raise ExternalServiceError(
            code="QR_ENCODING_FAILED",
            message="Failed to generate QR code",
            details={"lotId": lot_code},
        ) from exc

    return CoffeeLot(
        lot_id=lot_code,
        farmer_id=data.farmer_id,
        quantity=data.quantity,
        grade=data.grade,
        processing_method=data.processing_method,
        status=INITIAL_LOT_STATUS,
        qr_code=qr_code,
        harvest_date=created_at,
        current_location=data.current_location,
        created_at=created_at,
    )


def create_lot_use_case(
    *,
    db: Session,
    data: LotCreate,
    render_qr: Callable[[str], str] = render_qr_data_url,
    generate_code: Callable[[], str] | None = None,
) -> CoffeeLot:
    """
    Create a lot with a fresh lot code and its QR traceability image.

    The QR image is rendered before anything is written, so an encoder failure
    leaves no row behind. A lot-code collision (unique constraint) rolls the
    insert back and retries with a fresh code.
    """
    make_code = generate_code or (
        lambda: generate_lot_code(prefix=settings.LOT_ID_PREFIX, suffix_length=settings.LOT_ID_SUFFIX_LENGTH)
    )

    for attempt in range(1, settings.LOT_ID_MAX_ATTEMPTS + 1):
        created_at = now_utc()
        lot = _build_lot(data=data, lot_code=make_code(), created_at=created_at, render_qr=render_qr)

        db.add(lot)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Lot code collision on {lot.lot_id} (attempt {attempt})")
            continue

        db.refresh(lot)
        logger.info(f"Created lot {lot.lot_id} for farmer {lot.farmer_id} ({lot.quantity} kg, {lot.processing_method})")
        return lot

    raise ConflictError(
        code="LOT_ID_EXHAUSTED",
        message="Could not allocate a unique lot ID",
        details={"attempts": settings.LOT_ID_MAX_ATTEMPTS},
    )


def update_lot_status_use_case(*, db: Session, lot_pk: UUID, status: str) -> CoffeeLot:
    lot = get_lot_or_404(db=db, lot_pk=lot_pk)

    old_status = lot.status
    try:
        new_status = validate_status_transition(current_status=old_status, next_status=status)
    except InvalidTransition as exc:
        raise ConflictError(
            code="LOT_INVALID_TRANSITION",
            message=str(exc),
            details={"from": old_status, "to": status},
        ) from exc
    except ValueError as exc:
        raise ValidationError(
            code="LOT_STATUS_INVALID",
            message=str(exc),
            details={"status": status},
        ) from exc

    # Idempotent: same status is a no-op.
    if new_status == old_status:
        return lot

    lot.status = new_status
    db.commit()
    db.refresh(lot)
    logger.info(f"Lot {lot.lot_id} status {old_status} -> {new_status}")
    return lot


def assign_lot_grade_use_case(*, db: Session, lot_pk: UUID, grade: str) -> CoffeeLot:
    lot = get_lot_or_404(db=db, lot_pk=lot_pk)
    try:
        ensure_gradeable(status=lot.status, grade=grade)
    except InvalidTransition as exc:
        raise ConflictError(
            code="LOT_INVALID_TRANSITION",
            message=str(exc),
            details={"status": lot.status},
        ) from exc
    except ValueError as exc:
        raise ValidationError(code="LOT_GRADE_INVALID", message=str(exc)) from exc

    lot.grade = grade
    db.commit()
    db.refresh(lot)
    logger.info(f"Lot {lot.lot_id} graded {grade}")
    return lot


def trace_lot_use_case(*, db: Session, raw_payload: str) -> CoffeeLot:
    """Resolve a scanned QR payload to its lot."""
    try:
        payload = parse_trace_payload(raw_payload)
    except ValueError as exc:
        raise ValidationError(code="LOT_TRACE_PAYLOAD_INVALID", message=str(exc)) from exc
    return get_lot_by_code_or_404(db=db, lot_code=payload["lotId"])


def list_lots_use_case(
    *,
    db: Session,
    farmer_id: UUID | None = None,
    status: str | None = None,
) -> list[CoffeeLot]:
    """Newest first; farmer filter wins over status filter when both are given."""
    query = db.query(CoffeeLot)
    if farmer_id is not None:
        query = query.filter(CoffeeLot.farmer_id == farmer_id)
    elif status:
        query = query.filter(CoffeeLot.status == status.strip().lower())
    return query.order_by(CoffeeLot.created_at.desc()).all()
