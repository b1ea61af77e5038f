"""
routers/auth.py — Authentication & Session Routes

Email/password sign-up and sign-in backed by a signed session cookie.

Business Rules:
- Sign-up is invitation-only; the account type comes from the invitation
- Sign-in and sign-up are rate limited per client IP
- Session stores only user_id; sign-out clears it
- GET session never fails: {"user": null} when signed out
- change-password re-checks the current password, session stays valid

Called by: main.py (router mount)
Depends on: dependencies, services/auth_service.py, rate_limit
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import get_user, require_user
from ..rate_limit import limiter
from ..models import User
from ..schemas.auth import ChangePassword, SignIn, SignUp
from ..services import auth_service

router = APIRouter(tags=["auth"])


@router.post("/api/auth/sign-up/email", status_code=201)
@limiter.limit(settings.rate_limit_auth)
def sign_up(payload: SignUp, request: Request, db: Session = Depends(get_db)):
    """Create an account from a pending invitation and start a session."""
    user = auth_service.sign_up(db, payload)
    request.session["user_id"] = user.id
    return {"user": auth_service.user_to_dict(user)}


@router.post("/api/auth/sign-in/email")
@limiter.limit(settings.rate_limit_auth)
def sign_in(payload: SignIn, request: Request, db: Session = Depends(get_db)):
    user = auth_service.sign_in(db, payload)
    request.session.clear()
    request.session["user_id"] = user.id
    return {"user": auth_service.user_to_dict(user)}


@router.post("/api/auth/sign-out")
def sign_out(request: Request):
    request.session.clear()
    return {"success": True}


@router.get("/api/auth/session")
def session_status(request: Request, db: Session = Depends(get_db)):
    user = get_user(request, db)
    return {"user": auth_service.user_to_dict(user) if user else None}


@router.post("/api/auth/change-password")
@limiter.limit(settings.rate_limit_auth)
def change_password(
    payload: ChangePassword,
    request: Request,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    auth_service.change_password(db, user, payload)
    return {"success": True}
