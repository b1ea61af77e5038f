"""
Transactional email — invitations sent through the Resend HTTP API.

When no RESEND_API_KEY is configured (local dev, tests) the message is
logged instead of sent so invite links can still be copied from the logs.

Called by: services/invitation_service.py
Depends on: http_client, config
"""

import httpx
from loguru import logger

from .config import settings
from .http_client import get_http

RESEND_URL = "https://api.resend.com/emails"


class EmailDeliveryError(Exception):
    """Resend rejected the message or could not be reached."""


async def send_email(to: str, subject: str, html: str, text: str) -> str | None:
    """Send one email. Returns the provider message id, or None when only logged."""
    if not settings.resend_api_key:
        logger.info("Email not sent (Resend not configured): to={} subject={!r}\n{}", to, subject, text)
        return None

    try:
        resp = await get_http().post(
            RESEND_URL,
            json={"from": settings.email_from, "to": [to], "subject": subject, "html": html, "text": text},
            headers={"Authorization": f"Bearer {settings.resend_api_key}"},
            timeout=15,
        )
    except httpx.HTTPError as e:
        raise EmailDeliveryError(f"Resend unreachable: {e}") from e

    if resp.status_code >= 400:
        raise EmailDeliveryError(f"Resend returned {resp.status_code}: {resp.text[:200]}")

    message_id = resp.json().get("id")
    logger.info("Email {} sent to {}", message_id, to)
    return message_id


def _role_phrase(user_type: str) -> str:
    return "a staff member" if user_type == "staff" else "a scholar"


def build_invitation_email(invite_url: str, user_type: str, expiry_days: int) -> tuple[str, str, str]:
    """Return (subject, html, text) for an invitation."""
    role = _role_phrase(user_type)
    subject = f"You're invited to join Ashinaga as {role}"
    html = f"""
      <h2>Welcome to Ashinaga!</h2>
      <p>You have been invited to join the Ashinaga platform as {role}.</p>
      <p>Click the link below to complete your registration:</p>
      <p><a href="{invite_url}" style="display: inline-block; padding: 10px 20px; background-color: #0D9488; color: white; text-decoration: none; border-radius: 5px;">Complete Registration</a></p>
      <p>Or copy and paste this link into your browser:</p>
      <p>{invite_url}</p>
      <p>This invitation will expire in {expiry_days} days.</p>
      <p>If you did not expect this invitation, please ignore this email.</p>
    """
    text = (
        "Welcome to Ashinaga!\n\n"
        f"You have been invited to join the Ashinaga platform as {role}.\n\n"
        f"Complete your registration at:\n{invite_url}\n\n"
        f"This invitation will expire in {expiry_days} days.\n"
        "If you did not expect this invitation, please ignore this email.\n"
    )
    return subject, html, text


async def send_invitation_email(email: str, invite_url: str, user_type: str) -> bool:
    """Send an invitation. Failures are logged, never raised."""
    subject, html, text = build_invitation_email(invite_url, user_type, settings.invitation_expiry_days)
    try:
        await send_email(email, subject, html, text)
    except EmailDeliveryError as e:
        logger.error("Failed to send invitation email to {}: {}", email, e)
        return False
    return True
