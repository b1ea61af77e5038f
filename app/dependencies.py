"""
dependencies.py — Shared FastAPI Dependencies

Reusable dependency functions for authentication and authorization.
All routers import from here instead of defining their own auth logic.

Business Rules:
- get_user returns None if not logged in (non-throwing)
- require_user raises 401 if not logged in, 403 if a deactivated staff member
- require_staff raises 403 unless the user has an active staff record
- require_scholar raises 403 for non-scholars, 404 when the scholar profile is missing
- get_scholar_for_user is the non-throwing lookup used by "my-*" endpoints

Called by: all routers
Depends on: models, database
"""

from fastapi import Depends, HTTPException, Request
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .database import get_db
from .models import Scholar, User


# ── Authentication ────────────────────────────────────────────────────


def get_user(request: Request, db: Session) -> User | None:
    """Return current user from session, or None if not logged in."""
    uid = request.session.get("user_id")
    if not uid:
        return None
    try:
        user = db.get(User, uid)
    except SQLAlchemyError:
        logger.warning("Session user lookup failed, clearing session")
        request.session.clear()
        return None
    if user is None:
        request.session.clear()
    return user


def require_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Dependency: raises 401 if no authenticated user, 403 if deactivated."""
    user = get_user(request, db)
    if not user:
        raise HTTPException(401, "Not authenticated")
    if user.user_type == "staff" and user.staff is not None and not user.staff.is_active:
        request.session.clear()
        raise HTTPException(403, "Account deactivated, contact an administrator")
    return user


def is_staff(user: User) -> bool:
    """True for users with an active staff record."""
    return user.user_type == "staff" and user.staff is not None and user.staff.is_active


def require_staff(user: User = Depends(require_user)) -> User:
    """Dependency: raises 403 unless the user is active staff."""
    if not is_staff(user):
        raise HTTPException(403, "Staff access required")
    return user


# ── Scholar profile ───────────────────────────────────────────────────


def get_scholar_for_user(db: Session, user: User) -> Scholar | None:
    return db.query(Scholar).filter(Scholar.user_id == user.id).first()


def require_scholar(user: User = Depends(require_user), db: Session = Depends(get_db)) -> Scholar:
    """Dependency: the caller's scholar profile."""
    if user.user_type != "scholar":
        raise HTTPException(403, "Scholar access required")
    scholar = get_scholar_for_user(db, user)
    if not scholar:
        raise HTTPException(404, "Scholar not found for this user")
    return scholar
