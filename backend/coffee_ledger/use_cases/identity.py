"""User, cooperative and farmer registration use-cases."""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain_errors import ConflictError, NotFoundError
from ..models import Cooperative, Farmer, User
from ..schemas import CooperativeCreate, FarmerCreate, UserCreate

logger = logging.getLogger(__name__)


def _get_cooperative_or_404(*, db: Session, cooperative_id: UUID) -> Cooperative:
    cooperative = db.query(Cooperative).filter(Cooperative.id == cooperative_id).first()
    if not cooperative:
        raise NotFoundError(
            code="COOPERATIVE_NOT_FOUND",
            message="Cooperative not found",
            details={"cooperativeId": str(cooperative_id)},
        )
    return cooperative


def create_user_use_case(*, db: Session, data: UserCreate) -> User:
    if data.cooperative_id is not None:
        _get_cooperative_or_404(db=db, cooperative_id=data.cooperative_id)

    if data.email:
        taken = db.query(User).filter(User.email == data.email).first()
        if taken:
            raise ConflictError(code="USER_EMAIL_TAKEN", message="Email is already registered")

    user = User(
        name=data.name,
        email=data.email,
        phone=data.phone,
        role=data.role,
        cooperative_id=data.cooperative_id,
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(code="USER_EMAIL_TAKEN", message="Email is already registered") from exc
    db.refresh(user)
    logger.info(f"Registered user {user.id} ({user.role})")
    return user


def list_users_by_role_use_case(*, db: Session, role: str) -> list[User]:
    return db.query(User).filter(User.role == role).order_by(User.name.asc()).all()


def create_cooperative_use_case(*, db: Session, data: CooperativeCreate) -> Cooperative:
    cooperative = Cooperative(
        name=data.name,
        location=data.location,
        contact_email=data.contact_email,
        contact_phone=data.contact_phone,
    )
    db.add(cooperative)
    db.commit()
    db.refresh(cooperative)
    logger.info(f"Registered cooperative {cooperative.id} ({cooperative.name})")
    return cooperative


def list_cooperatives_use_case(*, db: Session) -> list[Cooperative]:
    return db.query(Cooperative).order_by(Cooperative.name.asc()).all()


def create_farmer_use_case(*, db: Session, data: FarmerCreate) -> Farmer:
    """Register a farmer profile; farm_id is unique across the registry."""
    if data.cooperative_id is not None:
        _get_cooperative_or_404(db=db, cooperative_id=data.cooperative_id)

    if db.query(Farmer).filter(Farmer.farm_id == data.farm_id).first():
        raise ConflictError(
            code="FARM_ID_TAKEN",
            message="Farm ID is already registered",
            details={"farmId": data.farm_id},
        )

    farmer = Farmer(
        user_id=data.user_id,
        farm_id=data.farm_id,
        farm_size=data.farm_size,
        location=data.location,
        cooperative_id=data.cooperative_id,
    )
    db.add(farmer)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(
            code="FARM_ID_TAKEN",
            message="Farm ID is already registered",
            details={"farmId": data.farm_id},
        ) from exc
    db.refresh(farmer)
    logger.info(f"Registered farmer {farmer.id} (farm {farmer.farm_id})")
    return farmer


def list_farmers_use_case(*, db: Session, cooperative_id: UUID | None = None) -> list[Farmer]:
    query = db.query(Farmer)
    if cooperative_id is not None:
        query = query.filter(Farmer.cooperative_id == cooperative_id)
    return query.order_by(Farmer.created_at.asc()).all()
