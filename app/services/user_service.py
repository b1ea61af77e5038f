"""User service — current-user profile and the staff directory."""

from loguru import logger
from sqlalchemy.orm import Session

from ..database import utcnow
from ..models import Staff, User
from ..schemas.auth import UserUpdate


def update_me(db: Session, user: User, payload: UserUpdate) -> User:
    if payload.name is not None:
        user.name = payload.name
        user.updated_at = utcnow()
        db.commit()
        db.refresh(user)
        logger.info("User {} renamed", user.email)
    return user


def list_active_staff(db: Session) -> list[dict]:
    rows = (
        db.query(User)
        .join(Staff, Staff.user_id == User.id)
        .filter(Staff.is_active.is_(True))
        .order_by(User.name)
        .all()
    )
    return [{"id": u.id, "name": u.name, "email": u.email} for u in rows]
