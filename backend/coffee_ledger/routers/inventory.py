"""Inventory ledger endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import InventoryCreate, InventoryQuantityUpdate, InventoryResponse
from ..use_cases.inventory_ledger import (
    get_inventory_use_case,
    record_inventory_use_case,
    update_inventory_quantity_use_case,
)

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("", response_model=list[InventoryResponse])
def get_inventory(
    facility_type: Optional[str] = Query(default=None, alias="facilityType"),
    facility_id: Optional[str] = Query(default=None, alias="facilityId"),
    db: Session = Depends(get_db),
):
    # Both parameters are required; checked in the use-case so a missing one is a 400, not a 422.
    return get_inventory_use_case(db=db, facility_type=facility_type, facility_id=facility_id)


@router.post("", response_model=InventoryResponse)
def record_inventory(data: InventoryCreate, db: Session = Depends(get_db)):
    return record_inventory_use_case(db=db, data=data)


@router.put("/{lot_id}/{facility_id}", response_model=InventoryResponse)
def update_inventory_quantity(
    lot_id: UUID,
    facility_id: str,
    data: InventoryQuantityUpdate,
    db: Session = Depends(get_db),
):
    return update_inventory_quantity_use_case(
        db=db,
        lot_id=lot_id,
        facility_id=facility_id,
        quantity=data.quantity,
    )
