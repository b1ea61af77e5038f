"""Auth service — password hashing, invitation-gated sign-up, sign-in.

Passwords are stored as "pbkdf2_sha256$<iterations>$<salt b64>$<hash b64>".

Business Rules:
- Sign-up requires a pending, unexpired invitation for the email
- The new account takes the invitation's user type; the invitation is
  marked accepted and linked to the user
- Staff start as active viewers; scholars start active with "TBD"
  placeholders for missing program/year/university
- Sign-in failures never reveal whether the email exists
- Deactivated staff cannot sign in
- Changing a password requires the current one

Called by: routers/auth.py
Depends on: models, services/invitation_service.py
"""

import base64
import hashlib
import hmac
import secrets

from fastapi import HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from ..database import utcnow
from ..models import Scholar, Staff, User
from ..schemas.auth import ChangePassword, SignIn, SignUp
from ..utils import iso, parse_json
from .invitation_service import find_open_invitation, mark_accepted

PBKDF2_ITERATIONS = 310_000
PLACEHOLDER = "TBD"


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return "pbkdf2_sha256${}${}${}".format(
        PBKDF2_ITERATIONS,
        base64.b64encode(salt).decode("utf-8"),
        base64.b64encode(digest).decode("utf-8"),
    )


def verify_password(password: str, stored: str | None) -> bool:
    if not stored:
        return False
    try:
        algorithm, iterations, salt_b64, hash_b64 = stored.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), base64.b64decode(salt_b64), int(iterations)
    )
    return hmac.compare_digest(base64.b64encode(digest).decode("utf-8"), hash_b64)


def user_to_dict(user: User) -> dict:
    row = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "emailVerified": user.email_verified,
        "image": user.image,
        "userType": user.user_type,
        "createdAt": iso(user.created_at),
        "updatedAt": iso(user.updated_at),
    }
    if user.staff is not None:
        row["role"] = user.staff.role
        row["isActive"] = user.staff.is_active
    if user.scholar is not None:
        row["scholarId"] = user.scholar.id
    return row


def sign_up(db: Session, payload: SignUp) -> User:
    email = payload.email
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(400, "An account with this email already exists")

    invitation = find_open_invitation(db, email)
    if not invitation:
        raise HTTPException(400, "A valid invitation is required to sign up")

    user = User(
        name=payload.name,
        email=email,
        user_type=invitation.user_type,
        password_hash=hash_password(payload.password),
        email_verified=True,
    )
    db.add(user)
    db.flush()
    mark_accepted(invitation, user)

    if invitation.user_type == "staff":
        db.add(Staff(user_id=user.id, role="viewer", is_active=True))
    else:
        prefill = parse_json(invitation.scholar_data) or {}

        def pick(field: str):
            return getattr(payload, field) or prefill.get(field)

        db.add(
            Scholar(
                user_id=user.id,
                program=pick("program") or PLACEHOLDER,
                year=pick("year") or PLACEHOLDER,
                university=pick("university") or PLACEHOLDER,
                location=pick("location"),
                phone=pick("phone"),
                bio=pick("bio"),
                status="active",
                start_date=utcnow(),
            )
        )
    db.commit()
    db.refresh(user)
    logger.info("User {} signed up as {} via invitation {}", user.email, user.user_type, invitation.id)
    return user


def sign_in(db: Session, payload: SignIn) -> User:
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.warning("Failed sign-in for {}", payload.email)
        raise HTTPException(401, "Invalid email or password")
    if user.user_type == "staff" and user.staff is not None and not user.staff.is_active:
        raise HTTPException(403, "Account deactivated, contact an administrator")
    if user.scholar is not None:
        user.scholar.last_activity = utcnow()
        db.commit()
    logger.info("User {} signed in", user.email)
    return user


def change_password(db: Session, user: User, payload: ChangePassword) -> None:
    if not verify_password(payload.current_password, user.password_hash):
        logger.warning("Rejected password change for {}", user.email)
        raise HTTPException(401, "Current password is incorrect")
    if payload.new_password == payload.current_password:
        raise HTTPException(400, "New password must differ from the current password")
    user.password_hash = hash_password(payload.new_password)
    user.updated_at = utcnow()
    db.commit()
    logger.info("User {} changed their password", user.email)
