"""User endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import UserCreate, UserResponse, UserRole
from ..use_cases.identity import create_user_use_case, list_users_by_role_use_case

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse)
def create_user(data: UserCreate, db: Session = Depends(get_db)):
    """Register a supply-chain actor."""
    return create_user_use_case(db=db, data=data)


@router.get("/{role}", response_model=list[UserResponse])
def get_users_by_role(role: UserRole, db: Session = Depends(get_db)):
    """Get users by role."""
    return list_users_by_role_use_case(db=db, role=role)
