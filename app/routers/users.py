"""Users API — the current user and the staff directory."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_staff, require_user
from ..models import User
from ..schemas.auth import UserUpdate
from ..services import user_service
from ..services.auth_service import user_to_dict

router = APIRouter(tags=["users"])


@router.get("/api/users/me")
def get_me(user: User = Depends(require_user)):
    return user_to_dict(user)


@router.patch("/api/users/me")
def update_me(payload: UserUpdate, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return user_to_dict(user_service.update_me(db, user, payload))


@router.get("/api/users/staff")
def list_staff(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    """Active staff members, for request assignment pickers."""
    return user_service.list_active_staff(db)
