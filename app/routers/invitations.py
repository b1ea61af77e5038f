"""
routers/invitations.py — Invitation management

Business Rules:
- validate/{token} is public (the sign-up page calls it before login)
- Everything else is staff-only

Called by: main.py (router mount)
Depends on: dependencies, services/invitation_service.py
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_staff
from ..models import User
from ..schemas.invitations import InvitationCreate, InvitationResend
from ..services import invitation_service

router = APIRouter(tags=["invitations"])


@router.get("/api/invitations/validate/{token}")
def validate_token(token: str, db: Session = Depends(get_db)):
    return invitation_service.validate_token(db, token)


@router.post("/api/invitations", status_code=201)
async def create_invitation(
    payload: InvitationCreate,
    user: User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return await invitation_service.create_invitation(db, payload, user)


@router.post("/api/invitations/resend")
async def resend_invitation(
    payload: InvitationResend,
    user: User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return await invitation_service.resend_invitation(db, payload.invitation_id, user)


@router.get("/api/invitations")
def list_invitations(
    status: Optional[Literal["pending", "accepted", "expired", "cancelled"]] = Query(None),
    user: User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return invitation_service.list_invitations(db, status)


@router.delete("/api/invitations/{invitation_id}")
def cancel_invitation(invitation_id: str, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return invitation_service.cancel_invitation(db, invitation_id, user)
