"""Inventory ledger use-cases: per-facility lot quantities."""
from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain_errors import ConflictError, MissingParameterError, NotFoundError
from ..models import InventoryRecord
from ..schemas import InventoryCreate
from ..services.lot_rules import now_utc
from .lot_registry import get_lot_or_404

logger = logging.getLogger(__name__)


def _find_record(*, db: Session, lot_id: UUID, facility_id: str) -> InventoryRecord | None:
    return db.query(InventoryRecord).filter(
        InventoryRecord.lot_id == lot_id,
        InventoryRecord.facility_id == facility_id,
    ).first()


def record_inventory_use_case(*, db: Session, data: InventoryCreate) -> InventoryRecord:
    """Create the (lot, facility) record or replace its quantity if it exists."""
    lot = get_lot_or_404(db=db, lot_pk=data.lot_id)

    record = _find_record(db=db, lot_id=lot.id, facility_id=data.facility_id)
    if record is None:
        record = InventoryRecord(
            lot_id=lot.id,
            facility_type=data.facility_type,
            facility_id=data.facility_id,
            quantity=data.quantity,
            updated_at=now_utc(),
        )
        db.add(record)
    else:
        record.facility_type = data.facility_type
        record.quantity = data.quantity
        record.updated_at = now_utc()

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(
            code="INVENTORY_RECORD_CONFLICT",
            message="Inventory record for this lot and facility was created concurrently",
            details={"lotId": str(data.lot_id), "facilityId": data.facility_id},
        ) from exc
    db.refresh(record)
    logger.info(f"Inventory {lot.lot_id} @ {data.facility_type}/{data.facility_id} = {data.quantity}")
    return record


def update_inventory_quantity_use_case(
    *,
    db: Session,
    lot_id: UUID,
    facility_id: str,
    quantity: Decimal,
) -> InventoryRecord:
    record = _find_record(db=db, lot_id=lot_id, facility_id=facility_id)
    if record is None:
        raise NotFoundError(
            code="INVENTORY_RECORD_NOT_FOUND",
            message="Inventory record not found",
            details={"lotId": str(lot_id), "facilityId": facility_id},
        )
    record.quantity = quantity
    record.updated_at = now_utc()
    db.commit()
    db.refresh(record)
    return record


def get_inventory_use_case(
    *,
    db: Session,
    facility_type: str | None,
    facility_id: str | None,
) -> list[InventoryRecord]:
    missing = [
        name
        for name, value in (("facilityType", facility_type), ("facilityId", facility_id))
        if value is None or not value.strip()
    ]
    if missing:
        raise MissingParameterError(
            message="facilityType and facilityId are required",
            details={"missing": missing},
        )

    return (
        db.query(InventoryRecord)
        .filter(
            InventoryRecord.facility_type == facility_type.strip(),
            InventoryRecord.facility_id == facility_id.strip(),
        )
        .order_by(InventoryRecord.updated_at.desc())
        .all()
    )
