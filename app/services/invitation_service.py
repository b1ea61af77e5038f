"""Invitation service — the only way a new account comes into existence.

Business Rules:
- One invitation row per email; existing users cannot be invited (409)
- A pending, unexpired invitation blocks a new one (409)
- A stale invitation (pending but expired, expired, or cancelled) is
  reissued in place with a fresh token and expiry
- Tokens are 32 random alphanumerics; invitations expire after 7 days
- Resend only works on pending, unexpired invitations, at most 5 times
- Email failures are logged and never fail the request

Called by: routers/invitations.py, services/auth_service.py
Depends on: models, email_service, config
"""

import json
import secrets
import string
from datetime import timedelta

from fastapi import HTTPException
from loguru import logger
from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..config import settings
from ..database import utcnow
from ..email_service import send_invitation_email
from ..models import Invitation, User
from ..schemas.invitations import InvitationCreate
from ..utils import iso, parse_json

TOKEN_ALPHABET = string.ascii_letters + string.digits
TOKEN_LENGTH = 32


def generate_token() -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


def invitation_to_dict(inv: Invitation) -> dict:
    return {
        "id": inv.id,
        "email": inv.email,
        "userType": inv.user_type,
        "status": inv.status,
        "expiresAt": iso(inv.expires_at),
        "acceptedAt": iso(inv.accepted_at),
        "sentAt": iso(inv.sent_at),
        "lastResentAt": iso(inv.last_resent_at),
        "resentCount": inv.resent_count,
        "invitedBy": inv.invited_by,
        "createdAt": iso(inv.created_at),
    }


def build_invite_url(token: str, user_type: str) -> str:
    base = settings.staff_app_url if user_type == "staff" else settings.scholar_app_url
    return f"{base.rstrip('/')}/signup?token={token}"


def is_expired(inv: Invitation) -> bool:
    return utcnow() > inv.expires_at


# ── Validate / accept ────────────────────────────────────────────────


def validate_token(db: Session, token: str) -> dict:
    inv = db.query(Invitation).filter(Invitation.token == token).first()
    if not inv:
        raise HTTPException(404, "Invalid invitation token")
    if inv.status != "pending":
        raise HTTPException(400, f"Invitation is no longer valid (status: {inv.status})")
    if is_expired(inv):
        raise HTTPException(400, "Invitation has expired")
    return {
        "email": inv.email,
        "userType": inv.user_type,
        "scholarData": parse_json(inv.scholar_data),
        "expiresAt": iso(inv.expires_at),
    }


def find_open_invitation(db: Session, email: str) -> Invitation | None:
    """Pending, unexpired invitation for this email, if any."""
    inv = db.query(Invitation).filter(Invitation.email == email, Invitation.status == "pending").first()
    if inv and not is_expired(inv):
        return inv
    return None


def mark_accepted(inv: Invitation, user: User) -> None:
    inv.status = "accepted"
    inv.accepted_at = utcnow()
    inv.user_id = user.id
    inv.updated_at = utcnow()


# ── Staff operations ─────────────────────────────────────────────────


async def create_invitation(db: Session, payload: InvitationCreate, invited_by: User) -> dict:
    email = payload.email
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(409, "A user with this email already exists")

    now = utcnow()
    expires_at = now + timedelta(days=settings.invitation_expiry_days)
    scholar_data = (
        json.dumps(payload.scholar_data.model_dump(exclude_none=True)) if payload.scholar_data else None
    )

    inv = db.query(Invitation).filter(Invitation.email == email).first()
    if inv:
        if inv.status == "pending" and not is_expired(inv):
            raise HTTPException(409, "An active invitation already exists for this email")
        previous = "expired" if inv.status == "pending" else inv.status
        logger.info("Reissuing {} invitation {} for {}", previous, inv.id, email)
        inv.status = "pending"
        inv.user_type = payload.user_type
        inv.invited_by = invited_by.id
        inv.token = generate_token()
        inv.scholar_data = scholar_data
        inv.expires_at = expires_at
        inv.accepted_at = None
        inv.user_id = None
        inv.last_resent_at = None
        inv.resent_count = 0
        inv.created_at = now
        inv.updated_at = now
    else:
        inv = Invitation(
            email=email,
            user_type=payload.user_type,
            invited_by=invited_by.id,
            token=generate_token(),
            scholar_data=scholar_data,
            expires_at=expires_at,
            status="pending",
            resent_count=0,
        )
        db.add(inv)
    db.commit()
    db.refresh(inv)

    await send_invitation_email(email, build_invite_url(inv.token, inv.user_type), inv.user_type)
    inv.sent_at = utcnow()
    db.commit()
    db.refresh(inv)
    logger.info("Invitation {} ({}) sent to {} by {}", inv.id, inv.user_type, email, invited_by.email)
    return invitation_to_dict(inv)


async def resend_invitation(db: Session, invitation_id: str, user: User) -> dict:
    inv = db.get(Invitation, invitation_id)
    if not inv:
        raise HTTPException(404, "Invitation not found")
    if inv.status != "pending":
        raise HTTPException(400, f"Cannot resend invitation with status: {inv.status}")
    if is_expired(inv):
        raise HTTPException(400, "Invitation has expired. Please create a new invitation.")
    if inv.resent_count >= settings.invitation_max_resends:
        raise HTTPException(400, "Maximum resend limit reached for this invitation")

    await send_invitation_email(inv.email, build_invite_url(inv.token, inv.user_type), inv.user_type)
    now = utcnow()
    inv.last_resent_at = now
    inv.resent_count += 1
    inv.updated_at = now
    db.commit()
    logger.info("Invitation {} resent by {} ({} resends)", inv.id, user.email, inv.resent_count)
    return {"message": "Invitation resent successfully", "resentCount": inv.resent_count}


def list_invitations(db: Session, status: str | None = None) -> list[dict]:
    q = db.query(Invitation)
    if status:
        q = q.filter(Invitation.status == status)
    return [invitation_to_dict(inv) for inv in q.order_by(desc(Invitation.created_at)).all()]


def cancel_invitation(db: Session, invitation_id: str, user: User) -> dict:
    inv = db.get(Invitation, invitation_id)
    if not inv:
        raise HTTPException(404, "Invitation not found")
    if inv.status != "pending":
        raise HTTPException(400, f"Cannot cancel invitation with status: {inv.status}")
    inv.status = "cancelled"
    inv.updated_at = utcnow()
    db.commit()
    logger.info("Invitation {} cancelled by {}", inv.id, user.email)
    return {"message": "Invitation cancelled successfully"}
